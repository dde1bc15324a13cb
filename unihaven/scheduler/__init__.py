"""Scheduler module for the periodic reconciliation pass.

Schedule overview:
  - every 60s (RECONCILE_INTERVAL_SECONDS) - one pass:
      1. lift suspensions whose end date has passed
      2. deactivate ads whose end date has passed
      3. remind advertisers of ads ending within 3 days (once per 24h)
"""
