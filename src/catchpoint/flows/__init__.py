"""
Prefect flows for scheduled pipeline work.

Flows:
- enrich: One weather enrichment pass over the on-disk record store

Usage (local):
    python -m catchpoint.flows.enrich

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'enrich-weather/default'
"""
