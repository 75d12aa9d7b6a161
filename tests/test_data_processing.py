# cabinet_project_root/tests/test_data_processing.py
# DATA PROCESSING & SNAPSHOT LOADING TESTS

from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd

from data_processing import (DataPipeline, bind_cache_invalidation, convert_to_numeric,
                             load_families_frame, load_medications_frame, load_patients_frame,
                             load_specialties_frame)
from data_processing.loaders import FRAME_CONFIG
from records import ChangeEvent, ChangeFeed, ChangeTopic, ChangeType, MedicationCreate, PatientCreate

# Fixtures are sourced from conftest.py

# --- DataPipeline Tests ---
def test_data_pipeline_fluent_chaining():
    """Tests the fluent, chainable interface of the DataPipeline."""
    df_dirty = pd.DataFrame({
        'nom': [' Benali ', None],
        'age': ['40', 'N/A'],
        'created_at': ['2024-01-15T10:00:00', 'not a date'],
    })

    processed_df = (DataPipeline(df_dirty)
        .ensure_columns(['nom', 'age', 'created_at', 'notes'])
        .standardize_missing_values({'nom': '', 'age': 0, 'notes': ''})
        .convert_date_columns(['created_at'])
        .to_df()
    )

    assert processed_df['nom'].tolist() == ['Benali', '']
    assert processed_df['age'].tolist() == [40, 0]
    assert processed_df['notes'].tolist() == ['', '']
    assert pd.api.types.is_datetime64_any_dtype(processed_df['created_at'])
    assert pd.isna(processed_df['created_at'].iloc[1])

def test_data_pipeline_leaves_input_untouched():
    raw = pd.DataFrame({'b': [2, 1]})
    sorted_df = DataPipeline(raw).sort_by('b').to_df()
    assert sorted_df['b'].tolist() == [1, 2]
    assert raw['b'].tolist() == [2, 1]

def test_convert_to_numeric_handles_na_strings():
    series = convert_to_numeric(pd.Series(['1.5', 'none', '', '7']))
    assert series.iloc[0] == 1.5 and series.iloc[3] == 7
    assert series.iloc[1:3].isna().all()
    assert convert_to_numeric('n/a', default_value=0) == 0

# --- Snapshot Loaders ---
def test_empty_store_yields_schema_complete_frames(store):
    patients = load_patients_frame(store)
    medications = load_medications_frame(store)
    assert patients.empty and list(patients.columns) == FRAME_CONFIG['patients'].columns
    assert medications.empty and list(medications.columns) == FRAME_CONFIG['medications'].columns
    assert load_specialties_frame(store).empty
    assert load_families_frame(store).empty

def test_patients_frame_flattens_specialties(store):
    cardio = store.create_specialty("Cardiologie")
    diabeto = store.create_specialty("Diabétologie")
    store.create_patient(PatientCreate(prenom="Sarah", nom="Haddad", age=40, taille=170, poids=80,
                                       specialite_ids=[diabeto.id, cardio.id]))
    store.create_patient(PatientCreate(prenom="Omar", nom="Saidi", age=70))

    df = load_patients_frame(store)
    assert len(df) == 2
    sarah = df[df['nom'] == 'Haddad'].iloc[0]
    assert sarah['specialites_label'] == "Cardiologie, Diabétologie"
    assert sarah['imc'] == 27.68
    omar = df[df['nom'] == 'Saidi'].iloc[0]
    assert omar['specialites_label'] == ""
    assert np.isnan(omar['taille'])
    assert omar['imc'] == 0.0
    assert str(df['created_at'].dt.tz) == 'UTC'

def test_medications_frame_carries_family_name(store):
    family = store.create_medication_family("Antalgiques")
    store.create_medication(MedicationCreate(nom="Paracetamol", famille_id=family.id, stock_actuel=4))
    store.create_medication(MedicationCreate(nom="Zinc", stock_actuel=40))

    df = load_medications_frame(store)
    assert df['nom'].tolist() == ['Paracetamol', 'Zinc']
    assert df['famille_nom'].tolist() == ['Antalgiques', '']
    assert df['stock_actuel'].tolist() == [4, 40]

# --- Cache Invalidation ---
def test_change_feed_clears_dependent_snapshot_caches():
    feed = ChangeFeed()
    mocks = {name: MagicMock() for name in ('get_cached_patients_frame', 'get_cached_specialties_frame',
                                            'get_cached_medications_frame', 'get_cached_families_frame')}
    with patch.multiple('data_processing.cached', **mocks):
        bind_cache_invalidation(feed)

    feed.publish(ChangeEvent(topic=ChangeTopic.SPECIALTIES, change_type=ChangeType.DELETE, record_id="s1"))
    mocks['get_cached_specialties_frame'].clear.assert_called_once()
    mocks['get_cached_patients_frame'].clear.assert_called_once()
    mocks['get_cached_medications_frame'].clear.assert_not_called()

    feed.publish(ChangeEvent(topic=ChangeTopic.MEDICATIONS, change_type=ChangeType.UPDATE, record_id="m1"))
    mocks['get_cached_medications_frame'].clear.assert_called_once()
    mocks['get_cached_families_frame'].clear.assert_not_called()
