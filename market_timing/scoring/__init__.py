"""
Scoring core: pure functions over immutable inputs, no DB or I/O.

Modules
-------
composite  : IndicatorStatistic + CompositeStatistics + calculate_composite_score()
             — weighted Z-score of the five core indicators.
indicators : IndicatorSpec + IndicatorScore + calculate_indicator_scores()
             — normalise, extreme-cap, momentum, timing blend.
commentary : percentile_rank() + generate_extreme_commentary().
stance     : determine_stance() + get_stance_info() + get_stance_probability().
"""
