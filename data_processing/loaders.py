# cabinet_project_root/data_processing/loaders.py
# RECORD-STORE SNAPSHOTS TO ANALYTICS-READY FRAMES

import logging
from typing import Any, Dict, List, Sequence

import pandas as pd
from pydantic import BaseModel, Field

from config import settings
from records import (MedicationFamilyRecord, MedicationRecord, PatientRecord,
                     RecordStore, SpecialtyRecord)
from .helpers import DataPipeline

logger = logging.getLogger(__name__)

# --- Pydantic Models for Type-Safe Configuration ---

class FrameConfig(BaseModel):
    """Defines the schema a snapshot frame must have, even when the snapshot is empty."""
    columns: List[str]
    defaults: Dict[str, Any] = Field(default_factory=dict)
    date_cols: List[str] = Field(default_factory=list)
    dtype_map: Dict[str, str] = Field(default_factory=dict)

# --- Centralized Frame Configuration ---

FRAME_CONFIG: Dict[str, FrameConfig] = {
    'patients': FrameConfig(
        columns=['id', 'prenom', 'nom', 'age', 'glycemie', 'ta', 'taille', 'poids', 'imc',
                 'specialite', 'medicaments', 'notes', 'created_at', 'updated_at',
                 'specialites', 'specialite_ids', 'specialites_label'],
        defaults={'age': 0, 'imc': 0.0, 'taille': None, 'poids': None, 'glycemie': '', 'ta': '',
                  'specialite': '', 'medicaments': '', 'notes': '', 'specialites_label': ''},
        date_cols=['created_at', 'updated_at'],
        dtype_map={'id': 'str'},
    ),
    'medications': FrameConfig(
        columns=['id', 'nom', 'famille_id', 'famille_nom', 'dosage', 'forme', 'stock_actuel',
                 'stock_minimum', 'prix_unitaire', 'description', 'created_at', 'updated_at'],
        defaults={'stock_actuel': 0, 'stock_minimum': settings.THRESHOLDS.default_stock_minimum,
                  'prix_unitaire': 0.0, 'dosage': '',
                  'forme': '', 'description': '', 'famille_nom': ''},
        date_cols=['created_at', 'updated_at'],
        dtype_map={'id': 'str'},
    ),
    'specialties': FrameConfig(columns=['id', 'nom', 'created_at'], date_cols=['created_at']),
    'families': FrameConfig(columns=['id', 'nom', 'description', 'created_at'],
                            defaults={'description': ''}, date_cols=['created_at']),
}

# --- Frame Builders ---

def _build_frame(config_key: str, rows: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    config = FRAME_CONFIG[config_key]
    raw_df = pd.DataFrame(list(rows))
    frame = (DataPipeline(raw_df)
             .ensure_columns(config.columns)
             .standardize_missing_values(config.defaults)
             .cast_column_types(config.dtype_map)
             .convert_date_columns(config.date_cols)
             .to_df())
    return frame[config.columns]


def patients_to_frame(patients: Sequence[PatientRecord]) -> pd.DataFrame:
    """One row per patient; assigned specialties kept as a list plus a display label."""
    rows = []
    for patient in patients:
        row = patient.model_dump()
        names = [s['nom'] for s in row.get('specialites', [])]
        row['specialite_ids'] = [s['id'] for s in row.get('specialites', [])]
        row['specialites'] = names
        row['specialites_label'] = ", ".join(names)
        rows.append(row)
    return _build_frame('patients', rows)


def medications_to_frame(medications: Sequence[MedicationRecord]) -> pd.DataFrame:
    rows = []
    for medication in medications:
        row = medication.model_dump(exclude={'famille'})
        row['famille_nom'] = medication.famille.nom if medication.famille else ''
        rows.append(row)
    return _build_frame('medications', rows)


def specialties_to_frame(specialties: Sequence[SpecialtyRecord]) -> pd.DataFrame:
    return _build_frame('specialties', [s.model_dump() for s in specialties])


def families_to_frame(families: Sequence[MedicationFamilyRecord]) -> pd.DataFrame:
    return _build_frame('families', [f.model_dump() for f in families])

# --- Main Loading Functions ---

def load_patients_frame(store: RecordStore) -> pd.DataFrame:
    """
    Fetches a fresh patients snapshot from the store.

    Store errors propagate to the caller, which keeps its previous snapshot on screen.
    """
    df = patients_to_frame(store.fetch_patients())
    logger.info(f"(patients) Loaded snapshot of {len(df)} records.")
    return df


def load_medications_frame(store: RecordStore) -> pd.DataFrame:
    df = medications_to_frame(store.fetch_medications())
    logger.info(f"(medications) Loaded snapshot of {len(df)} records.")
    return df


def load_specialties_frame(store: RecordStore) -> pd.DataFrame:
    return specialties_to_frame(store.fetch_specialties())


def load_families_frame(store: RecordStore) -> pd.DataFrame:
    return families_to_frame(store.fetch_medication_families())
