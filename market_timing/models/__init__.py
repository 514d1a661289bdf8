"""
Domain models (pydantic, frozen unless noted).

Modules
-------
indicator : IndicatorObservation, CompositeScoreInput + ordered alias resolution.
market    : MarketHistoryRecord (persisted daily row), MarketIndicators
            (current snapshot), GlobalIndexRecord.
meta      : RunMetadata — pipeline audit record (mutable).
"""
