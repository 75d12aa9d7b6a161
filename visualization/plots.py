# cabinet_project_root/visualization/plots.py
# CENTRALIZED PLOTTING FACTORY FOR DASHBOARD & PHARMACY CHARTS

import html
import logging
from typing import Any, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import plotly.io as pio

from config import settings

logger = logging.getLogger(__name__)

# --- Theme Setup ---
def set_plotly_theme():
    """Sets the custom cabinet theme as the default for all Plotly charts."""
    base_layout = {
        'font': {'family': "sans-serif", 'size': 12, 'color': settings.COLOR_TEXT_PRIMARY},
        'title': {'x': 0.5, 'xanchor': 'center', 'font': {'size': 18, 'color': settings.COLOR_TEXT_HEADINGS}},
        'paper_bgcolor': settings.COLOR_BACKGROUND_CONTENT,
        'plot_bgcolor': settings.COLOR_BACKGROUND_CONTENT,
        'margin': dict(l=60, r=40, t=60, b=60),
        'legend': dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1, font={'size': 10}),
        'xaxis': {'showgrid': False, 'zeroline': False},
        'yaxis': {'gridcolor': '#e9ecef', 'zeroline': False},
    }
    cabinet_template = go.layout.Template(layout=base_layout)
    cabinet_template.layout.colorway = settings.PLOTLY_COLORWAY
    pio.templates['cabinet'] = cabinet_template
    pio.templates.default = 'cabinet'
    logger.debug("Custom 'cabinet' Plotly theme applied.")

# --- Factory Functions for Charts ---
def create_empty_figure(title: str, message: str = "No data available.") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(
        title_text=f"<b>{html.escape(title)}</b>",
        xaxis={"visible": False}, yaxis={"visible": False},
        annotations=[{"text": html.escape(message), "xref": "paper", "yref": "paper", "showarrow": False,
                      "font": {"size": 14, "color": settings.COLOR_TEXT_MUTED}}]
    )
    return fig

def plot_bar_chart(
    df: pd.DataFrame, x_col: str, y_col: str, title: str,
    x_title: Optional[str] = None, y_title: Optional[str] = None, **px_kwargs: Any
) -> go.Figure:
    """Creates a themed count bar chart. Counts are whole numbers, so the axis starts at zero with integer ticks."""
    if not isinstance(df, pd.DataFrame) or df.empty:
        return create_empty_figure(title)

    try:
        axis_labels = {
            x_col: x_title or x_col.replace('_', ' ').title(),
            y_col: y_title or y_col.replace('_', ' ').title()
        }
        orientation = px_kwargs.get('orientation', 'v')

        fig = px.bar(
            df, x=x_col, y=y_col, title=f"<b>{html.escape(title)}</b>",
            text_auto=True,
            labels=axis_labels,
            **px_kwargs
        )
        fig.update_traces(texttemplate='%{x:,.0f}' if orientation == 'h' else '%{y:,.0f}', textposition='outside')
        if orientation == 'h':
            # Highest count on top, matching the ranked table order.
            fig.update_yaxes(autorange='reversed')
            fig.update_xaxes(tickformat='d', rangemode='tozero')
        else:
            fig.update_yaxes(tickformat='d', rangemode='tozero')
        return fig
    except Exception as e:
        logger.error(f"Failed to create bar chart '{title}': {e}", exc_info=True)
        return create_empty_figure(title, "Error generating chart.")

def plot_donut_chart(df: pd.DataFrame, label_col: str, value_col: str, title: str) -> go.Figure:
    if not isinstance(df, pd.DataFrame) or df.empty:
        return create_empty_figure(title)
    try:
        fig = px.pie(df, names=label_col, values=value_col, title=f"<b>{html.escape(title)}</b>", hole=0.5)
        fig.update_traces(textinfo='percent+label', textposition='inside', insidetextorientation='radial',
                          marker_line_width=2, marker_line_color=settings.COLOR_BACKGROUND_CONTENT,
                          hovertemplate='<b>%{label}</b><br>Patients: %{value}<br>Share: %{percent}<extra></extra>')
        fig.update_layout(legend_title_text=label_col.replace("_", " ").title())
        return fig
    except Exception as e:
        logger.error(f"Failed to create donut chart '{title}': {e}", exc_info=True)
        return create_empty_figure(title, "Error generating chart.")

def plot_stock_levels(df: pd.DataFrame, title: str) -> go.Figure:
    """
    Horizontal bars of current stock per medication, coloured by stock status,
    with each item's minimum threshold drawn as a marker.
    """
    required = {'nom', 'stock_actuel', 'stock_minimum', 'stock_status'}
    if not isinstance(df, pd.DataFrame) or df.empty or not required.issubset(df.columns):
        return create_empty_figure(title, "No medications in inventory.")
    try:
        fig = px.bar(
            df, x='stock_actuel', y='nom', color='stock_status', orientation='h',
            color_discrete_map=settings.STOCK_STATUS_COLORS,
            title=f"<b>{html.escape(title)}</b>",
            labels={'stock_actuel': 'Units in stock', 'nom': 'Medication', 'stock_status': 'Status'},
        )
        fig.add_trace(go.Scatter(
            x=df['stock_minimum'], y=df['nom'], mode='markers', name='Minimum',
            marker=dict(symbol='line-ns-open', size=16, color=settings.COLOR_TEXT_HEADINGS, line=dict(width=2)),
            hovertemplate='<b>%{y}</b><br>Minimum: %{x}<extra></extra>',
        ))
        fig.update_xaxes(tickformat='d', rangemode='tozero')
        fig.update_layout(height=max(300, 28 * len(df) + 120))
        return fig
    except Exception as e:
        logger.error(f"Failed to create stock chart '{title}': {e}", exc_info=True)
        return create_empty_figure(title, "Error generating chart.")
