# cabinet_project_root/visualization/ui_elements.py
# THEME-AWARE UI COMPONENTS

import html
import logging
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd
import streamlit as st

from analytics.metrics import StockStatus

logger = logging.getLogger(__name__)

# Stock statuses map onto the traffic-light classes in style.css.
STOCK_STATUS_LEVELS = {
    StockStatus.OUT_OF_STOCK.value: "high-risk",
    StockStatus.LOW.value: "moderate-concern",
    StockStatus.AVAILABLE.value: "acceptable",
}

@st.cache_resource
def load_and_inject_css(css_path: Union[str, Path]):
    """Loads a CSS file and injects it into the Streamlit application."""
    path = Path(css_path)
    if not path.is_file():
        logger.warning(f"CSS file not found at: {path}. UI may not be styled correctly.")
        return
    try:
        with path.open("r", encoding="utf-8") as f:
            st.markdown(f'<style>{f.read()}</style>', unsafe_allow_html=True)
        logger.debug(f"Successfully loaded and injected CSS from {path}.")
    except OSError as e:
        logger.error(f"Error loading CSS from {path}: {e}", exc_info=True)


def format_kpi_value(value: Any) -> str:
    """Whole numbers get thousands separators, other floats two decimals, strings pass through."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return "N/A"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.2f}"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{int(value):,}"
    return str(value)


def render_kpi_card(
    title: str,
    value: Any,
    unit: str = "",
    status_level: Optional[str] = None,
    help_text: Optional[str] = None,
    icon: str = "💡"
) -> None:
    """
    Renders a rich, custom HTML KPI card in Streamlit.
    """
    value_str = format_kpi_value(value)
    status_class = f"status-{status_level.lower().replace('_', '-')}" if status_level else ""
    tooltip_attr = f'title="{html.escape(help_text)}"' if help_text else ""
    unit_html = f'<span class="kpi-units">{html.escape(unit)}</span>' if unit else ""

    card_html = f"""
    <div class="kpi-card {status_class}" {tooltip_attr}>
        <div class="kpi-header">
            <span class="kpi-icon">{html.escape(icon)}</span>
            <div class="kpi-title">{html.escape(title)}</div>
        </div>
        <div class="kpi-body">
            <p class="kpi-value">{html.escape(value_str)}{unit_html}</p>
        </div>
    </div>
    """
    st.markdown(card_html, unsafe_allow_html=True)

def render_traffic_light_indicator(
    message: str,
    status_level: str,
    details: Optional[str] = None
) -> None:
    """Renders a custom HTML traffic light status indicator."""
    status_class = f"status-{status_level.lower().replace('_', '-')}"
    details_html = f'<div class="traffic-light-details">{html.escape(details)}</div>' if details else ""

    indicator_html = f"""
    <div class="traffic-light-indicator">
        <div class="traffic-light-dot {status_class}"></div>
        <div class="traffic-light-message">{html.escape(message)}</div>
        {details_html}
    </div>
    """
    st.markdown(indicator_html, unsafe_allow_html=True)


def render_stock_badge(medication: pd.Series) -> None:
    """Traffic-light line for one medication row carrying a stock_status column."""
    status = medication.get('stock_status', StockStatus.AVAILABLE.value)
    render_traffic_light_indicator(
        message=f"{medication.get('nom', '')}: {status}",
        status_level=STOCK_STATUS_LEVELS.get(status, "acceptable"),
        details=f"{format_kpi_value(medication.get('stock_actuel'))} in stock / minimum {format_kpi_value(medication.get('stock_minimum'))}",
    )
