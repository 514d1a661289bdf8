"""
Ingestion layer — provider clients, series catalog and pure derivations.

Submodules:
  fred_client       — FRED series observations (needs FRED_API_KEY)
  yahoo_client      — Yahoo Finance chart endpoint (no credentials)
  fear_greed_client — CNN Fear & Greed index (no credentials)
  catalog           — which series / symbols are collected, and how many prints
  derive            — raw series → stored indicator values (pure)

Credential placement (.env, gitignored):
  FRED_API_KEY      — FRED API key
"""
