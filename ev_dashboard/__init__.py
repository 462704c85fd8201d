"""Core (UI-agnostic) EV population dashboard logic.

This package contains:
- CSV parsing into an immutable record set (CSV -> pandas)
- dataset loading with an explicit error state
- aggregation functions for chart series
- the table query engine (search, filters, sort, pagination)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
