"""Core (UI-agnostic) deal dashboard logic.

This package contains:
- data loading (static JSON -> pandas)
- heatmap aggregation, filters and search
- view state reducer, colour scale and layouts (grid / bubble / treemap)
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict) and exports
"""
