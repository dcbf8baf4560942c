"""
Prefect flows.

Flows:
- warm: Load and validate every taxon's snapshot and occurrence table

Usage (local):
    python -m redlist_explorer.flows.warm
    redlist-explorer warm

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'warm-snapshots/default'
"""
