"""Services layer - business logic and external integrations.

This module is organized into domain-based subpackages:
- analytics/: Performance, sensitivity and deposit insurance coverage
- currency/: Rate cache and reporting-currency consolidation
- market_data/: External rate, benchmark and quote feeds
- portfolio/: Valuation, benchmarks, snapshots and position edits
- repositories/: Data access layer
- shared/: Shared utilities
"""
