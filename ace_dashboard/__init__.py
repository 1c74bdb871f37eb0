"""Core (UI-agnostic) dashboard logic.

This package contains:
- data loading (XLSX/CSV -> pandas) and value cleaning
- selection normalization and row filtering
- chart rendering (Altair -> Vega-Lite spec dict)
- the session object that keeps controls and derived outputs in sync
"""
