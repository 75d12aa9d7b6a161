# cabinet_project_root/tests/test_visualization.py
# VISUALIZATION & UI TESTS

import html
from unittest.mock import MagicMock, patch

import pandas as pd
import plotly.graph_objects as go
import pytest

from analytics import classify_inventory
from data_processing import summarize_by_age_band, summarize_by_specialty, top_medications
from visualization import (create_empty_figure, format_kpi_value, plot_bar_chart,
                           plot_donut_chart, plot_stock_levels, render_kpi_card,
                           render_stock_badge, set_plotly_theme)

# Fixtures are sourced from conftest.py

@pytest.fixture(scope="module", autouse=True)
def apply_theme():
    """Apply the custom Plotly theme for all tests in this module."""
    set_plotly_theme()

# --- Plotting Tests ---
def test_create_empty_figure_properties():
    """Verifies that empty figures are created with the correct message and layout."""
    fig = create_empty_figure(title="Empty Test", message="No data here.")
    assert isinstance(fig, go.Figure)
    assert "Empty Test" in fig.layout.title.text
    assert fig.layout.annotations[0].text == "No data here."

def test_charts_fall_back_to_empty_figure():
    assert plot_bar_chart(pd.DataFrame(), 'band', 'count', "Ages").layout.annotations[0].text == "No data available."
    assert len(plot_donut_chart(None, 'name', 'count', "Specialties").data) == 0
    assert len(plot_stock_levels(pd.DataFrame(), "Stock").data) == 0

def test_plot_bar_chart_structure(patients_df):
    fig = plot_bar_chart(summarize_by_age_band(patients_df), x_col='band', y_col='count', title="Age Distribution")
    assert len(fig.data) > 0 and fig.data[0].type == 'bar'
    assert "Age Distribution" in fig.layout.title.text

def test_horizontal_bar_chart_ranks_top_down(patients_df):
    fig = plot_bar_chart(top_medications(patients_df), x_col='count', y_col='name',
                         title="Top Medications", orientation='h')
    assert fig.data[0].orientation == 'h'
    assert fig.layout.yaxis.autorange == 'reversed'

def test_plot_donut_chart_structure(patients_df):
    fig = plot_donut_chart(summarize_by_specialty(patients_df), label_col='name', value_col='count', title="Specialties")
    assert fig.data[0].type == 'pie'
    assert fig.data[0].hole > 0.4

def test_plot_stock_levels_adds_minimum_markers(medications_df):
    fig = plot_stock_levels(classify_inventory(medications_df), "Stock vs. Minimum")
    assert any(trace.type == 'bar' for trace in fig.data)
    assert fig.data[-1].name == 'Minimum'

# --- UI Element Tests ---
@pytest.mark.parametrize("value, expected", [
    (1234, "1,234"), (25.6, "25.60"), (12.0, "12"), ("24.9", "24.9"), (None, "N/A"), (float('nan'), "N/A"),
])
def test_format_kpi_value(value, expected):
    assert format_kpi_value(value) == expected

@patch('visualization.ui_elements.st')
def test_render_kpi_card_html(mock_st):
    """Tests that KPI cards render with the correct HTML structure and classes."""
    mock_st.markdown = MagicMock()
    render_kpi_card(
        title="Obesity Alerts", value=3, unit="patients",
        status_level="HIGH_RISK", help_text="BMI above 30."
    )

    html_out, kwargs = mock_st.markdown.call_args
    html_content = html_out[0]

    assert 'class="kpi-card status-high-risk"' in html_content
    assert f'title="{html.escape("BMI above 30.")}"' in html_content
    assert '<div class="kpi-title">Obesity Alerts</div>' in html_content
    assert '<p class="kpi-value">3' in html_content
    assert '<span class="kpi-units">patients</span>' in html_content
    assert kwargs['unsafe_allow_html'] is True

@patch('visualization.ui_elements.st')
def test_render_stock_badge_maps_status(mock_st, medications_df):
    row = classify_inventory(medications_df).iloc[0]
    render_stock_badge(row)
    html_content = mock_st.markdown.call_args[0][0]
    assert 'traffic-light-dot status-high-risk' in html_content
    assert 'Paracetamol: Out of stock' in html_content
