# cabinet_project_root/pages/03_Pharmacy.py
# PHARMACY INVENTORY, RESTOCK ALERTS & PRESCRIPTION DISPENSING

import logging
from typing import Dict, Optional

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from analytics import (classify_inventory, compute_inventory_kpis, filter_medications,
                       group_by_family, plan_prescription, restock_alerts)
from config import settings
from data_processing import (get_cached_families_frame, get_cached_medications_frame,
                             get_record_store)
from records import MedicationCreate, MedicationUpdate, RecordStoreError
from visualization import (load_and_inject_css, plot_stock_levels, render_kpi_card,
                           render_stock_badge, set_plotly_theme)

# --- Page Setup ---
st.set_page_config(page_title="Pharmacy", page_icon="💊", layout="wide")
logger = logging.getLogger(__name__)
load_and_inject_css(settings.STYLE_CSS_PATH)
set_plotly_theme()

NO_FAMILY = ""


def _report_failure(action: str, error: Exception):
    if isinstance(error, ValidationError):
        fields = ", ".join(str(err['loc'][0]) for err in error.errors() if err.get('loc'))
        message = f"Invalid input ({fields})." if fields else "Invalid input."
    else:
        message = str(error)
    logger.warning(f"Failed to {action}: {message}")
    st.error(f"Could not {action}: {message}")


# --- Overview ---
def render_inventory_kpis(medications_df: pd.DataFrame):
    kpis = compute_inventory_kpis(medications_df)
    cols = st.columns(4)
    with cols[0]:
        render_kpi_card("Medications", kpis['total_items'], icon="💊")
    with cols[1]:
        render_kpi_card("Out of Stock", kpis['out_of_stock_count'], icon="⛔",
                        status_level="HIGH_RISK" if kpis['out_of_stock_count'] else "ACCEPTABLE")
    with cols[2]:
        render_kpi_card("Low Stock", kpis['low_stock_count'], icon="⚠️",
                        status_level="MODERATE_CONCERN" if kpis['low_stock_count'] else "ACCEPTABLE")
    with cols[3]:
        render_kpi_card("Stock Value", kpis['total_stock_value'], icon="💶")


def render_restock_alerts(medications_df: pd.DataFrame):
    st.subheader("🚨 Restock Alerts")
    alerts = restock_alerts(medications_df)
    if alerts.empty:
        st.success("Every medication is above its minimum stock level.")
        return
    for _, medication in alerts.iterrows():
        render_stock_badge(medication)


def render_inventory(medications_df: pd.DataFrame, families_df: pd.DataFrame):
    st.subheader("📦 Inventory")
    family_options = {NO_FAMILY: "All families", **dict(zip(families_df['id'], families_df['nom']))}
    c1, c2 = st.columns([0.6, 0.4])
    search = c1.text_input("Search medication or family", key='med_search')
    famille_id = c2.selectbox("Family", options=list(family_options.keys()),
                              format_func=lambda fid: family_options[fid], key='med_family_filter')

    filtered = classify_inventory(filter_medications(medications_df, search, famille_id or None))
    if filtered.empty:
        st.info("No medication matches these filters." if search or famille_id else "The inventory is empty.")
        return

    view = st.radio("View", ["Table", "By family", "Chart"], horizontal=True, key='inventory_view')
    columns = ['nom', 'famille_nom', 'dosage', 'forme', 'stock_actuel', 'stock_minimum', 'prix_unitaire', 'stock_status']
    column_config = {
        "nom": "Medication", "famille_nom": "Family", "dosage": "Dosage", "forme": "Form",
        "stock_actuel": "In stock", "stock_minimum": "Minimum",
        "prix_unitaire": st.column_config.NumberColumn("Unit price", format="%.2f"),
        "stock_status": "Status",
    }
    if view == "Table":
        st.dataframe(filtered[columns], hide_index=True, use_container_width=True, column_config=column_config)
    elif view == "By family":
        grouped = group_by_family(filtered, families_df)
        for family_name, members in grouped.items():
            st.markdown(f"**{family_name}** ({len(members)})")
            st.dataframe(members[columns], hide_index=True, use_container_width=True, column_config=column_config)
        ungrouped = filtered[filtered['famille_nom'] == ""]
        if not ungrouped.empty:
            st.markdown(f"**No family** ({len(ungrouped)})")
            st.dataframe(ungrouped[columns], hide_index=True, use_container_width=True, column_config=column_config)
    else:
        st.plotly_chart(plot_stock_levels(filtered, "Stock vs. Minimum"), use_container_width=True)


# --- Catalogue Management ---
def render_medication_form(store, families_df: pd.DataFrame, medication: Optional[pd.Series] = None):
    """Create form when `medication` is None, edit form otherwise."""
    family_options = {NO_FAMILY: "No family", **dict(zip(families_df['id'], families_df['nom']))}
    form_key = f"edit_med_{medication['id']}" if medication is not None else "new_med"
    current = medication if medication is not None else pd.Series(dtype=object)

    with st.form(form_key, clear_on_submit=medication is None):
        c1, c2 = st.columns(2)
        nom = c1.text_input("Name *", value=current.get('nom', ""))
        family_ids = list(family_options.keys())
        current_family = current.get('famille_id') if isinstance(current.get('famille_id'), str) else NO_FAMILY
        famille_id = c2.selectbox("Family", options=family_ids, format_func=lambda fid: family_options[fid],
                                  index=family_ids.index(current_family) if current_family in family_ids else 0)
        c3, c4 = st.columns(2)
        dosage = c3.text_input("Dosage", value=current.get('dosage', ""))
        forme = c4.text_input("Form", value=current.get('forme', ""))
        c5, c6, c7 = st.columns(3)
        stock_actuel = c5.number_input("In stock", min_value=0, step=1, value=int(current.get('stock_actuel', 0)))
        stock_minimum = c6.number_input("Minimum", min_value=0, step=1,
                                        value=int(current.get('stock_minimum', settings.THRESHOLDS.default_stock_minimum)))
        prix_unitaire = c7.number_input("Unit price", min_value=0.0, step=0.1, format="%.2f",
                                        value=float(current.get('prix_unitaire', 0.0)))
        description = st.text_area("Description", value=current.get('description', ""))
        submitted = st.form_submit_button("Save" if medication is not None else "Add medication")

    if not submitted:
        return
    fields = dict(nom=nom.strip(), famille_id=famille_id or None, dosage=dosage, forme=forme,
                  stock_actuel=int(stock_actuel), stock_minimum=int(stock_minimum),
                  prix_unitaire=float(prix_unitaire), description=description)
    try:
        if medication is None:
            record = store.create_medication(MedicationCreate(**fields))
            st.toast(f"{record.nom} added to the inventory.", icon="✅")
        else:
            record = store.update_medication(medication['id'], MedicationUpdate(**fields))
            st.toast(f"{record.nom} updated.", icon="✅")
        st.rerun()
    except (ValidationError, RecordStoreError) as e:
        _report_failure("save the medication", e)


def render_catalogue_management(store, medications_df: pd.DataFrame, families_df: pd.DataFrame):
    st.subheader("🗂️ Catalogue")
    with st.expander("➕ Add medication"):
        render_medication_form(store, families_df)

    with st.expander("✏️ Edit or delete a medication"):
        if medications_df.empty:
            st.caption("No medication to edit.")
        else:
            labels = dict(zip(medications_df['id'], medications_df['nom']))
            selected_id = st.selectbox("Medication", options=list(labels.keys()),
                                       format_func=lambda mid: labels[mid], key='edit_med_select')
            medication = medications_df.loc[medications_df['id'] == selected_id].iloc[0]
            render_medication_form(store, families_df, medication)
            if st.button("🗑️ Delete medication", key=f"del_med_{selected_id}"):
                try:
                    store.delete_medication(selected_id)
                    st.toast(f"{medication['nom']} deleted.", icon="🗑️")
                    st.rerun()
                except RecordStoreError as e:
                    _report_failure("delete the medication", e)

    with st.expander("🏷️ Add medication family"):
        with st.form("new_family", clear_on_submit=True):
            nom = st.text_input("Family name *")
            description = st.text_input("Description")
            if st.form_submit_button("Add family"):
                try:
                    store.create_medication_family(nom, description)
                    st.toast(f"Family '{nom.strip()}' added.", icon="✅")
                    st.rerun()
                except RecordStoreError as e:
                    _report_failure("add the family", e)


# --- Prescription ---
def render_prescription(store, medications_df: pd.DataFrame):
    st.subheader("📝 Prescription")
    if medications_df.empty:
        st.caption("Add medications to the inventory to dispense them.")
        return

    by_id: Dict[str, pd.Series] = {row['id']: row for _, row in medications_df.iterrows()}
    lines = st.session_state.setdefault('prescription_lines', [])

    c1, c2, c3 = st.columns([0.6, 0.2, 0.2])
    med_id = c1.selectbox("Medication", options=list(by_id.keys()),
                          format_func=lambda mid: f"{by_id[mid]['nom']} ({int(by_id[mid]['stock_actuel'])} in stock)",
                          key='rx_med')
    qty = c2.number_input("Quantity", min_value=1, step=1, value=1, key='rx_qty')
    c3.markdown("&nbsp;")
    if c3.button("Add line"):
        lines.append({'id': med_id, 'qty': int(qty)})
        st.rerun()

    if not lines:
        st.caption("No lines yet.")
        return

    for idx, line in enumerate(lines):
        medication = by_id.get(line['id'])
        name = medication['nom'] if medication is not None else "Deleted medication"
        lc1, lc2 = st.columns([0.85, 0.15])
        lc1.markdown(f"- {name} × {line['qty']}")
        if lc2.button("✖", key=f"rx_remove_{idx}"):
            lines.pop(idx)
            st.rerun()

    bc1, bc2 = st.columns(2)
    if bc2.button("Clear prescription"):
        st.session_state['prescription_lines'] = []
        st.rerun()
    if not bc1.button("Dispense", type="primary"):
        return

    planned = [(by_id.get(line['id'], {'id': line['id'], 'stock_actuel': 0}), line['qty']) for line in lines]
    results = plan_prescription(planned)
    totals: Dict[str, int] = {}
    for result in results:
        if result.accepted:
            totals[result.medication_id] = totals.get(result.medication_id, 0) + result.requested_qty
    try:
        # All-or-nothing: a failure leaves every stock level and the lines untouched.
        dispensed = {record.id: record for record in store.dispense(totals)}
    except RecordStoreError as e:
        _report_failure("record the dispensation", e)
        return

    for result in results:
        name = by_id[result.medication_id]['nom'] if result.medication_id in by_id else result.medication_id
        if result.accepted:
            st.success(f"{name}: dispensed {result.requested_qty}, "
                       f"{dispensed[result.medication_id].stock_actuel} left.")
        else:
            st.error(f"{name}: {result.reason}")
    st.session_state['prescription_lines'] = []


def main():
    st.title("💊 Pharmacy")
    store = get_record_store()
    try:
        medications_df = get_cached_medications_frame(store, store.database_url)
        families_df = get_cached_families_frame(store, store.database_url)
    except RecordStoreError as e:
        logger.error(f"Pharmacy page could not load records: {e}")
        st.error("The record store is unavailable. Please try again shortly.")
        st.stop()

    render_inventory_kpis(medications_df)
    st.divider()

    main_col, side_col = st.columns([0.65, 0.35], gap="large")
    with main_col:
        render_inventory(medications_df, families_df)
        st.divider()
        render_catalogue_management(store, medications_df, families_df)
    with side_col:
        render_restock_alerts(medications_df)
        st.divider()
        render_prescription(store, medications_df)


if __name__ == "__main__":
    main()
