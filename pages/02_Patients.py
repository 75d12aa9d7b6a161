# cabinet_project_root/pages/02_Patients.py
# PATIENT REGISTRY: INTAKE, SEARCH, EDIT & SPECIALTY MANAGEMENT

import logging
from typing import Dict, List

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from analytics import classify_bmi, compute_bmi
from config import settings
from data_processing import (filter_patients, get_cached_patients_frame,
                             get_cached_specialties_frame, get_record_store)
from records import PatientCreate, PatientUpdate, RecordStoreError
from visualization import load_and_inject_css

# --- Page Setup ---
st.set_page_config(page_title="Patients", page_icon="🧑‍⚕️", layout="wide")
logger = logging.getLogger(__name__)
load_and_inject_css(settings.STYLE_CSS_PATH)

INTAKE_KEYS = ['new_prenom', 'new_nom', 'new_age', 'new_glycemie', 'new_ta', 'new_taille',
               'new_poids', 'new_specialite', 'new_medicaments', 'new_notes', 'new_specialite_ids']


def _report_failure(action: str, error: Exception):
    """One place for the user-facing message and the log line of a failed write."""
    if isinstance(error, ValidationError):
        fields = ", ".join(str(err['loc'][0]) for err in error.errors() if err.get('loc'))
        message = f"Invalid input ({fields})." if fields else "Invalid input."
    else:
        message = str(error)
    logger.warning(f"Failed to {action}: {message}")
    st.error(f"Could not {action}: {message}")


def _bmi_caption(weight, height) -> str:
    bmi = compute_bmi(weight, height)
    if bmi is None:
        return "BMI: enter height and weight"
    band = classify_bmi(bmi)
    return f"BMI: **{bmi:.2f}** ({band.value})"


# --- Intake ---
def render_intake_form(store, specialty_options: Dict[str, str]):
    st.subheader("➕ New Patient")
    c1, c2, c3 = st.columns(3)
    prenom = c1.text_input("First name *", key='new_prenom')
    nom = c2.text_input("Last name *", key='new_nom')
    age = c3.number_input("Age *", min_value=0, max_value=130, step=1, key='new_age')

    c4, c5, c6 = st.columns(3)
    taille = c4.number_input("Height (cm)", min_value=0.0, max_value=260.0, value=None, step=1.0, key='new_taille')
    poids = c5.number_input("Weight (kg)", min_value=0.0, max_value=400.0, value=None, step=0.5, key='new_poids')
    c6.markdown("&nbsp;")
    c6.markdown(_bmi_caption(poids, taille))

    c7, c8 = st.columns(2)
    glycemie = c7.text_input("Blood glucose", key='new_glycemie')
    ta = c8.text_input("Blood pressure", placeholder="e.g. 12/8", key='new_ta')

    specialite = st.text_input("Primary specialty", key='new_specialite')
    specialite_ids = st.multiselect("Assigned specialties", options=list(specialty_options.keys()),
                                    format_func=lambda sid: specialty_options[sid], key='new_specialite_ids')
    medicaments = st.text_area("Medications (comma-separated)", key='new_medicaments')
    notes = st.text_area("Notes", key='new_notes')

    if st.button("Save patient", type="primary"):
        try:
            payload = PatientCreate(prenom=prenom, nom=nom, age=int(age), glycemie=glycemie, ta=ta,
                                    taille=taille, poids=poids, specialite=specialite,
                                    medicaments=medicaments, notes=notes, specialite_ids=specialite_ids)
            record = store.create_patient(payload)
        except (ValidationError, RecordStoreError) as e:
            _report_failure("save the patient", e)
            return
        for key in INTAKE_KEYS:
            st.session_state.pop(key, None)
        st.toast(f"Patient {record.prenom} {record.nom} saved.", icon="✅")
        st.rerun()


# --- Edit / Delete ---
def render_patient_editor(store, patient: pd.Series, specialty_options: Dict[str, str]):
    pid = patient['id']
    with st.form(key=f"edit_{pid}"):
        c1, c2, c3 = st.columns(3)
        prenom = c1.text_input("First name", value=patient['prenom'])
        nom = c2.text_input("Last name", value=patient['nom'])
        age = c3.number_input("Age", min_value=0, max_value=130, step=1, value=int(patient['age']))
        c4, c5, c6, c7 = st.columns(4)
        taille = c4.number_input("Height (cm)", min_value=0.0, max_value=260.0, step=1.0,
                                 value=None if pd.isna(patient['taille']) else float(patient['taille']))
        poids = c5.number_input("Weight (kg)", min_value=0.0, max_value=400.0, step=0.5,
                                value=None if pd.isna(patient['poids']) else float(patient['poids']))
        glycemie = c6.text_input("Blood glucose", value=patient['glycemie'])
        ta = c7.text_input("Blood pressure", value=patient['ta'])
        specialite = st.text_input("Primary specialty", value=patient['specialite'])
        medicaments = st.text_area("Medications", value=patient['medicaments'])
        notes = st.text_area("Notes", value=patient['notes'])
        submitted = st.form_submit_button("Update")

    if submitted:
        try:
            changes = PatientUpdate(prenom=prenom, nom=nom, age=int(age), glycemie=glycemie, ta=ta,
                                    taille=taille, poids=poids, specialite=specialite,
                                    medicaments=medicaments, notes=notes)
            store.update_patient(pid, changes)
            st.toast("Patient updated.", icon="✅")
            st.rerun()
        except (ValidationError, RecordStoreError) as e:
            _report_failure("update the patient", e)

    assigned: List[str] = list(patient['specialite_ids']) if isinstance(patient['specialite_ids'], list) else []
    st.markdown("**Specialties**")
    for sid in assigned:
        label = specialty_options.get(sid, sid)
        c1, c2 = st.columns([0.85, 0.15])
        c1.markdown(f"- {label}")
        if c2.button("Remove", key=f"detach_{pid}_{sid}"):
            try:
                store.detach_specialty(pid, sid)
                st.rerun()
            except RecordStoreError as e:
                _report_failure("remove the specialty", e)

    available = {sid: name for sid, name in specialty_options.items() if sid not in assigned}
    if available:
        to_add = st.multiselect("Add specialties", options=list(available.keys()),
                                format_func=lambda sid: available[sid], key=f"add_spec_{pid}")
        if to_add and st.button("Assign", key=f"assign_{pid}"):
            try:
                store.assign_specialties(pid, to_add)
                st.rerun()
            except RecordStoreError as e:
                _report_failure("assign specialties", e)

    st.divider()
    confirm = st.checkbox("Confirm deletion", key=f"confirm_del_{pid}")
    if st.button("🗑️ Delete patient", key=f"delete_{pid}", disabled=not confirm):
        try:
            store.delete_patient(pid)
            st.toast("Patient deleted.", icon="🗑️")
            st.rerun()
        except RecordStoreError as e:
            _report_failure("delete the patient", e)


def render_patient_list(store, patients_df: pd.DataFrame, specialty_options: Dict[str, str]):
    st.subheader("🔎 Registered Patients")
    search = st.text_input("Search by name or specialty", key='patient_search')
    filtered = filter_patients(patients_df, search)
    st.caption(f"{len(filtered)} of {len(patients_df)} patients")

    if filtered.empty:
        st.info("No patient matches this search." if search else "No patients registered yet.")
        return

    for _, patient in filtered.iterrows():
        bmi = patient['imc']
        bmi_text = f"BMI {bmi:.1f}" if bmi and bmi > 0 else "BMI n/a"
        title = f"{patient['prenom']} {patient['nom']} · {int(patient['age'])} yrs · {bmi_text}"
        if patient['specialites_label']:
            title += f" · {patient['specialites_label']}"
        with st.expander(title):
            render_patient_editor(store, patient, specialty_options)


# --- Specialty Manager ---
def render_specialty_manager(store, specialties_df: pd.DataFrame):
    st.subheader("🏷️ Specialties")
    with st.form("new_specialty", clear_on_submit=True):
        name = st.text_input("New specialty")
        if st.form_submit_button("Add specialty"):
            try:
                store.create_specialty(name)
                st.toast(f"Specialty '{name.strip()}' added.", icon="✅")
                st.rerun()
            except RecordStoreError as e:
                _report_failure("add the specialty", e)

    if specialties_df.empty:
        st.caption("No specialties defined.")
        return
    for _, specialty in specialties_df.iterrows():
        c1, c2 = st.columns([0.8, 0.2])
        c1.markdown(specialty['nom'])
        if c2.button("Delete", key=f"del_spec_{specialty['id']}",
                     help="Also removes this specialty from every patient."):
            try:
                store.delete_specialty(specialty['id'])
                st.rerun()
            except RecordStoreError as e:
                _report_failure("delete the specialty", e)


def main():
    st.title("🧑‍⚕️ Patients")
    store = get_record_store()
    try:
        patients_df = get_cached_patients_frame(store, store.database_url)
        specialties_df = get_cached_specialties_frame(store, store.database_url)
    except RecordStoreError as e:
        logger.error(f"Patients page could not load records: {e}")
        st.error("The record store is unavailable. Please try again shortly.")
        st.stop()

    specialty_options = dict(zip(specialties_df['id'], specialties_df['nom']))

    main_col, side_col = st.columns([0.7, 0.3], gap="large")
    with main_col:
        with st.expander("➕ Register a new patient", expanded=patients_df.empty):
            render_intake_form(store, specialty_options)
        render_patient_list(store, patients_df, specialty_options)
    with side_col:
        render_specialty_manager(store, specialties_df)


if __name__ == "__main__":
    main()
