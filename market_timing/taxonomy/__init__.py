"""
Closed vocabularies shared by models, scoring and presentation.

Submodules:
  indicators — IndicatorKind, IndicatorTiming, IndicatorCategory, InvestmentStance
"""
