"""
Dashboard view assembly.

``build_dashboard()`` turns the stored history (plus an optional live
snapshot) into everything the overview screen shows:

  - composite score, rounded to an integer for display and classification
  - investment stance with its static metadata and backtest probabilities
  - per-indicator scores, split core / reference and grouped by timing
  - commentary on core indicators at historically extreme levels
  - rank of today's score within the last year and all history
  - position on the historical score distribution

The view is a pure function of its inputs; nothing here touches the database.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from market_timing.models.market import MarketHistoryRecord, MarketIndicators
from market_timing.reporting.markets import (
    CompositeRanking,
    DistributionPosition,
    composite_ranking,
    distribution_position,
)
from market_timing.scoring.commentary import generate_extreme_commentary
from market_timing.scoring.composite import calculate_composite_score
from market_timing.scoring.indicators import (
    IndicatorScore,
    calculate_indicator_scores,
    group_by_timing,
    split_core_and_reference,
)
from market_timing.scoring.stance import (
    StanceInfo,
    StanceProbability,
    determine_stance,
    get_stance_info,
    get_stance_probability,
)
from market_timing.taxonomy.indicators import IndicatorTiming, InvestmentStance
from market_timing.utils.math_utils import round_int
from market_timing.utils.time_utils import utc_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    """Everything the overview screen renders for one snapshot.

    Attributes:
        as_of: Day the snapshot describes.
        snapshot: Indicator values being scored.
        composite_score: Engine output, 2 decimals.
        display_score: ``composite_score`` rounded half-up to an integer; the
            stance is classified from this value.
        stance / stance_info / stance_probability: Classification and metadata.
        scores: All indicator scores, table order.
        core_scores / reference_scores: Composite-weighted vs. informative.
        scores_by_timing: Leading / coincident / lagging buckets.
        commentary: At most two extreme-level commentary lines.
        ranking: Rank of ``display_score`` in the last year and all history.
        distribution: Position on the historical score curve.
    """

    as_of: Optional[date]
    snapshot: MarketIndicators
    composite_score: float
    display_score: int
    stance: InvestmentStance
    stance_info: StanceInfo
    stance_probability: StanceProbability
    scores: list[IndicatorScore]
    core_scores: list[IndicatorScore]
    reference_scores: list[IndicatorScore]
    scores_by_timing: dict[IndicatorTiming, list[IndicatorScore]]
    commentary: list[str]
    ranking: CompositeRanking
    distribution: DistributionPosition
    history_size: int = field(default=0)


def select_record(
    history: Sequence[MarketHistoryRecord],
    day: Optional[date] = None,
) -> Optional[MarketHistoryRecord]:
    """The record for ``day``, or the newest record when ``day`` is None."""
    if not history:
        return None
    if day is None:
        return max(history, key=lambda r: r.date)
    for record in history:
        if record.date == day:
            return record
    return None


def build_dashboard(
    history: Sequence[MarketHistoryRecord],
    snapshot: Optional[MarketIndicators] = None,
    today: Optional[date] = None,
) -> DashboardView:
    """Assemble the dashboard view.

    Args:
        history: Stored daily records, any order (sorted chronologically here).
        snapshot: Indicator values to score; defaults to the newest record.
        today: Reference day for the 1-year ranking window; defaults to the
            current UTC date.

    Raises:
        ValueError: If there is neither a snapshot nor any history.
    """
    ordered = sorted(history, key=lambda r: r.date)
    if snapshot is None:
        latest = select_record(ordered)
        if latest is None:
            raise ValueError("No market data available: history is empty and no snapshot given.")
        snapshot = MarketIndicators.from_history_record(latest)

    composite = calculate_composite_score(snapshot)
    display_score = round_int(composite)
    stance = determine_stance(display_score)

    scores = calculate_indicator_scores(snapshot, ordered)
    core, reference = split_core_and_reference(scores)
    commentary = generate_extreme_commentary(core, ordered)

    ranking = composite_ranking(ordered, display_score, today or utc_today())

    logger.debug(
        "Dashboard built | as_of=%s | score=%d | stance=%s | indicators=%d",
        snapshot.last_updated, display_score, stance, len(scores),
    )

    return DashboardView(
        as_of=snapshot.last_updated,
        snapshot=snapshot,
        composite_score=composite,
        display_score=display_score,
        stance=stance,
        stance_info=get_stance_info(stance),
        stance_probability=get_stance_probability(stance),
        scores=scores,
        core_scores=core,
        reference_scores=reference,
        scores_by_timing=group_by_timing(scores),
        commentary=commentary,
        ranking=ranking,
        distribution=distribution_position(display_score),
        history_size=len(ordered),
    )
