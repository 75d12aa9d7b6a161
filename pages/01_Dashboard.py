# cabinet_project_root/pages/01_Dashboard.py
# PRACTICE-WIDE PATIENT DASHBOARD

import logging
from typing import Tuple

import pandas as pd
import streamlit as st

from config import settings
from data_processing import (compute_dashboard_summary, get_cached_patients_frame,
                             get_cached_specialties_frame, get_record_store)
from records import RecordStoreError
from visualization import (load_and_inject_css, plot_bar_chart, plot_donut_chart,
                           render_kpi_card, set_plotly_theme)

# --- Page Setup ---
st.set_page_config(page_title="Dashboard", page_icon="📊", layout="wide")
logger = logging.getLogger(__name__)
load_and_inject_css(settings.STYLE_CSS_PATH)
set_plotly_theme()


def get_snapshots() -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Fresh patients and specialties when the store answers; otherwise the last good pair."""
    store = get_record_store()
    try:
        patients_df = get_cached_patients_frame(store, store.database_url)
        specialties_df = get_cached_specialties_frame(store, store.database_url)
        st.session_state['dashboard_last_snapshot'] = (patients_df, specialties_df)
        return patients_df, specialties_df
    except RecordStoreError as e:
        logger.error(f"Dashboard snapshot refresh failed: {e}")
        st.toast("Could not refresh patient data; showing the last loaded snapshot.", icon="⚠️")
        return st.session_state.get('dashboard_last_snapshot', (pd.DataFrame(), pd.DataFrame()))


def render_kpis(summary: dict):
    alerts = summary['alerts']
    cols = st.columns(4)
    with cols[0]:
        render_kpi_card("Total Patients", summary['total_patients'], icon="👥")
    with cols[1]:
        render_kpi_card("Average Age", summary['average_age'], unit="yrs", icon="🎂")
    with cols[2]:
        render_kpi_card("Average BMI", summary['average_bmi'], unit="kg/m²", icon="⚖️")
    with cols[3]:
        render_kpi_card("Specialties", summary['specialty_count'], icon="🏥",
                        help_text="Specialties defined in the practice.")

    alert_cols = st.columns(3)
    with alert_cols[0]:
        obese = alerts['obesity_count']
        render_kpi_card("Obesity Alerts", obese, icon="🚨",
                        status_level="HIGH_RISK" if obese else "ACCEPTABLE",
                        help_text=f"Patients with BMI above {settings.THRESHOLDS.obesity_alert_bmi:g}.")
    with alert_cols[1]:
        elderly = alerts['elderly_count']
        render_kpi_card("Elderly Patients", elderly, icon="🧓",
                        status_level="MODERATE_CONCERN" if elderly else "ACCEPTABLE",
                        help_text=f"Patients older than {settings.THRESHOLDS.elderly_alert_age}.")
    with alert_cols[2]:
        unassigned = alerts['unassigned_specialty_count']
        render_kpi_card("No Specialty", unassigned, icon="🏷️",
                        status_level="MODERATE_CONCERN" if unassigned else "ACCEPTABLE",
                        help_text="Patients whose specialty field is empty.")


def render_distributions(summary: dict):
    col1, col2 = st.columns(2, gap="large")
    with col1:
        st.plotly_chart(plot_donut_chart(summary['by_specialty'], 'name', 'count', "Patients by Specialty"), use_container_width=True)
        if not summary['by_specialty'].empty:
            st.dataframe(summary['by_specialty'], hide_index=True, use_container_width=True,
                         column_config={"name": "Specialty", "count": "Patients",
                                        "percentage": st.column_config.NumberColumn("Share", format="%d%%")})
    with col2:
        st.plotly_chart(plot_bar_chart(summary['by_age_band'], 'band', 'count', "Age Distribution",
                                       x_title="Age band", y_title="Patients"), use_container_width=True)

    col3, col4 = st.columns(2, gap="large")
    with col3:
        st.plotly_chart(plot_bar_chart(summary['by_bmi_band'], 'band', 'count', "BMI Categories",
                                       x_title="BMI band", y_title="Patients"), use_container_width=True)
    with col4:
        st.plotly_chart(plot_bar_chart(summary['top_medications'], 'count', 'name', "Most Prescribed Medications",
                                       x_title="Patients", y_title="Medication", orientation='h'), use_container_width=True)


def main():
    st.title("📊 Practice Dashboard")
    st.markdown("Live indicators across every registered patient. Figures refresh as soon as a record changes.")
    st.divider()

    patients_df, specialties_df = get_snapshots()
    summary = compute_dashboard_summary(patients_df, specialties_df)

    if summary['total_patients'] == 0:
        st.info("No patients registered yet. Add patients from the Patients page to populate the dashboard.")

    render_kpis(summary)
    st.divider()
    render_distributions(summary)

    with st.sidebar:
        if st.button("🔄 Refresh now", use_container_width=True):
            get_cached_patients_frame.clear()
            get_cached_specialties_frame.clear()
            st.rerun()
        st.caption(settings.APP_FOOTER_TEXT)

    logger.info(f"Dashboard rendered for {summary['total_patients']} patients.")


if __name__ == "__main__":
    main()
