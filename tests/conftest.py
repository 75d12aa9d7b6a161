# cabinet_project_root/tests/conftest.py
# PYTEST FIXTURES

import sys
from pathlib import Path

# --- Path Setup for Module Imports ---
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import numpy as np
import pandas as pd
import pytest

from records import ChangeTopic, RecordStore

# --- Core Data Fixtures ---

@pytest.fixture
def patients_df() -> pd.DataFrame:
    """A small, hand-checked patients snapshot covering every band and alert."""
    return pd.DataFrame([
        {'id': 'p1', 'prenom': 'Amine', 'nom': 'Benali', 'age': 10, 'imc': 0.0,
         'specialite': 'Pédiatrie', 'medicaments': 'Doliprane, Amoxicilline'},
        {'id': 'p2', 'prenom': 'Sarah', 'nom': 'Haddad', 'age': 40, 'imc': 32.0,
         'specialite': 'Cardiologie', 'medicaments': 'Amlodipine, doliprane'},
        {'id': 'p3', 'prenom': 'Omar', 'nom': 'Saidi', 'age': 70, 'imc': 22.0,
         'specialite': '', 'medicaments': 'Ramipril , DOLIPRANE'},
        {'id': 'p4', 'prenom': 'Lina', 'nom': 'Cherif', 'age': 25, 'imc': 18.0,
         'specialite': 'Cardiologie', 'medicaments': 'Amlodipine, x, ab'},
        {'id': 'p5', 'prenom': 'Karim', 'nom': 'Amrani', 'age': 65, 'imc': 27.5,
         'specialite': np.nan, 'medicaments': np.nan},
    ])

@pytest.fixture
def medications_df() -> pd.DataFrame:
    return pd.DataFrame([
        {'id': 'm1', 'nom': 'Paracetamol', 'famille_id': 'f1', 'famille_nom': 'Antalgiques',
         'stock_actuel': 0, 'stock_minimum': 10, 'prix_unitaire': 0.15},
        {'id': 'm2', 'nom': 'Ibuprofene', 'famille_id': 'f1', 'famille_nom': 'Antalgiques',
         'stock_actuel': 3, 'stock_minimum': 10, 'prix_unitaire': 0.20},
        {'id': 'm3', 'nom': 'Amoxicilline', 'famille_id': 'f2', 'famille_nom': 'Antibiotiques',
         'stock_actuel': 50, 'stock_minimum': 10, 'prix_unitaire': 0.50},
    ])

@pytest.fixture
def families_df() -> pd.DataFrame:
    return pd.DataFrame([
        {'id': 'f1', 'nom': 'Antalgiques', 'description': ''},
        {'id': 'f2', 'nom': 'Antibiotiques', 'description': ''},
        {'id': 'f3', 'nom': 'Antidiabétiques', 'description': ''},
    ])

# --- Record Store Fixtures ---

@pytest.fixture
def store() -> RecordStore:
    """A fresh in-memory store per test."""
    record_store = RecordStore("sqlite://")
    record_store.init_db()
    yield record_store
    record_store.dispose()

@pytest.fixture
def recorded_events(store):
    """Collects every change event the store publishes during a test."""
    events = []
    for topic in ChangeTopic:
        store.feed.subscribe(topic, events.append)
    return events
