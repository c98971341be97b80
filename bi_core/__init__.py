"""Core (UI-agnostic) dashboard logic.

This package contains:
- data loading (CSV/XLSX -> pandas snapshot of the five entity collections)
- filter normalization and matcher compilation
- the cross-entity filter engine, facet option counts and revenue bounds
- chart helpers (Altair -> Vega-Lite spec dict)
"""
