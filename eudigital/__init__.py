"""UI-agnostic logic for the Eurostat digitalisation dashboard.

This package contains:
- cell parsing and sheet -> series extraction
- asset loading (XLSX/GeoJSON -> raw sheets)
- selection state (year, country, drill-down, animation)
- chart compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict, Plotly -> figure dict)
"""
