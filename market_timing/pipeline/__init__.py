"""
Pipeline stages.

Modules
-------
base    : PipelineStage ABC — run metadata and failure recording.
collect : CollectMarketDataStage, CollectGlobalIndicesStage.
"""
