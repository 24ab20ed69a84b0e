"""Core (UI-agnostic) dashboard logic.

This package contains:
- data loading (CSV/GeoJSON -> pandas, explicit per-table schema)
- selection normalization and the selection controller
- per-chart compute functions (JSON-serializable payloads)
- encodings (scales, domains, palettes) and chart helpers (Altair -> Vega-Lite spec dict)
"""
