# cabinet_project_root/visualization/__init__.py
# ROBUST & EXPLICIT PACKAGE API

"""
Initializes the visualization package, defining its public API.
This file explicitly exports all public-facing functions from its submodules,
providing a single, consistent import point for the pages.
"""

# --- Core Plotting Functions from plots.py ---
from .plots import (
    set_plotly_theme,
    create_empty_figure,
    plot_bar_chart,
    plot_donut_chart,
    plot_stock_levels,
)

# --- Custom UI Element Renderers from ui_elements.py ---
from .ui_elements import (
    STOCK_STATUS_LEVELS,
    format_kpi_value,
    load_and_inject_css,
    render_kpi_card,
    render_stock_badge,
    render_traffic_light_indicator,
)

# --- Define the canonical public API for the package ---
__all__ = [
    # from plots.py
    "set_plotly_theme",
    "create_empty_figure",
    "plot_bar_chart",
    "plot_donut_chart",
    "plot_stock_levels",

    # from ui_elements.py
    "STOCK_STATUS_LEVELS",
    "format_kpi_value",
    "load_and_inject_css",
    "render_kpi_card",
    "render_stock_badge",
    "render_traffic_light_indicator",
]
