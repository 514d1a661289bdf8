"""
Repositories — explicit SQL in, Pydantic models out.

  history_repo      — MarketHistoryRepository (market_indicators_history)
  global_index_repo — GlobalIndexRepository   (global_indices_history)
  run_repo          — RunMetadataRepository   (run_metadata)
"""
