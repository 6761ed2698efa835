"""Core (UI-agnostic) Play Store analytics logic.

This package contains:
- field normalizers (raw CSV strings -> typed values)
- data loading (CSV -> typed pandas frames)
- filter criteria and the app -> review filter propagation
- the aggregation library and page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
