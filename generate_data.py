# cabinet_project_root/generate_data.py
# DEMO DATA SEEDER FOR THE RECORD STORE

import sys
from pathlib import Path

import numpy as np
import pandas as pd

_project_root = Path(__file__).resolve().parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from config import settings
from records import (DuplicateNameError, MedicationCreate, PatientCreate,
                     RecordStore)

# --- Configuration for Data Generation ---
NUM_PATIENTS = 60
rng = np.random.default_rng(settings.RANDOM_SEED)

FIRST_NAMES = ["Amine", "Sarah", "Youssef", "Lina", "Karim", "Nadia", "Omar", "Ines", "Mehdi", "Yasmine",
               "Rachid", "Salma", "Hamza", "Meriem", "Walid", "Khadija", "Samir", "Leila", "Nabil", "Houda"]
LAST_NAMES = ["Benali", "Haddad", "Mansouri", "Cherif", "Bouzid", "Amrani", "Saidi", "Touati", "Belkacem",
              "Rahmani", "Ziani", "Meziane", "Kaci", "Brahimi", "Hamidi"]

# (name, family, dosage, form, unit price)
MEDICATION_CATALOGUE = [
    ("Paracétamol", "Antalgiques", "500 mg", "Comprimé", 0.15),
    ("Ibuprofène", "Antalgiques", "400 mg", "Comprimé", 0.22),
    ("Tramadol", "Antalgiques", "50 mg", "Gélule", 0.48),
    ("Amoxicilline", "Antibiotiques", "1 g", "Comprimé", 0.35),
    ("Azithromycine", "Antibiotiques", "250 mg", "Comprimé", 0.90),
    ("Ciprofloxacine", "Antibiotiques", "500 mg", "Comprimé", 0.55),
    ("Metformine", "Antidiabétiques", "850 mg", "Comprimé", 0.12),
    ("Gliclazide", "Antidiabétiques", "30 mg", "Comprimé", 0.25),
    ("Insuline glargine", "Antidiabétiques", "100 UI/ml", "Stylo", 12.50),
    ("Amlodipine", "Antihypertenseurs", "5 mg", "Comprimé", 0.18),
    ("Ramipril", "Antihypertenseurs", "5 mg", "Gélule", 0.20),
    ("Bisoprolol", "Antihypertenseurs", "5 mg", "Comprimé", 0.16),
]

SPECIALTY_MEDICATIONS = {
    'Cardiologie': ["Amlodipine", "Ramipril", "Bisoprolol"],
    'Diabétologie': ["Metformine", "Gliclazide", "Insuline glargine"],
    'Médecine générale': ["Paracétamol", "Ibuprofène", "Amoxicilline"],
    'Pédiatrie': ["Paracétamol", "Amoxicilline", "Azithromycine"],
    'Gynécologie': ["Paracétamol", "Azithromycine", "Ciprofloxacine"],
}


def _get_or_create_specialties(store: RecordStore) -> dict:
    existing = {s.nom: s.id for s in store.fetch_specialties()}
    for name in settings.DEFAULT_SPECIALTIES:
        if name not in existing:
            existing[name] = store.create_specialty(name).id
    return existing


def _get_or_create_families(store: RecordStore) -> dict:
    existing = {f.nom: f.id for f in store.fetch_medication_families()}
    for name in settings.DEFAULT_MEDICATION_FAMILIES:
        if name not in existing:
            existing[name] = store.create_medication_family(name).id
    return existing


def seed_medications(store: RecordStore, families: dict) -> int:
    existing = {m.nom for m in store.fetch_medications()}
    created = 0
    for nom, famille, dosage, forme, price in MEDICATION_CATALOGUE:
        if nom in existing:
            continue
        minimum = int(rng.choice([5, 10, 20]))
        # A few items start out of stock or below their minimum so alerts have something to show.
        stock = int(rng.choice([0, int(rng.integers(1, minimum + 1)), int(rng.integers(minimum + 1, 200))], p=[0.1, 0.2, 0.7]))
        store.create_medication(MedicationCreate(nom=nom, famille_id=families.get(famille), dosage=dosage, forme=forme,
                                                 stock_actuel=stock, stock_minimum=minimum, prix_unitaire=price))
        created += 1
    return created


def seed_patients(store: RecordStore, specialties: dict, count: int = NUM_PATIENTS) -> int:
    specialty_names = list(specialties.keys())
    for _ in range(count):
        age = int(np.clip(rng.normal(45, 20), 1, 95))
        has_measurements = rng.random() < 0.85
        taille = round(float(np.clip(rng.normal(168, 10) if age >= 16 else rng.normal(120, 20), 60, 205)), 0) if has_measurements else None
        poids = round(float(np.clip(rng.normal(74, 16) if age >= 16 else rng.normal(28, 10), 5, 180)), 1) if has_measurements else None

        assigned = [str(name) for name in rng.choice(specialty_names, size=int(rng.integers(0, 3)), replace=False)]
        primary = assigned[0] if assigned and rng.random() < 0.9 else ""
        medications = sorted({med for name in assigned for med in SPECIALTY_MEDICATIONS.get(name, [])
                              if rng.random() < 0.5})

        store.create_patient(PatientCreate(
            prenom=str(rng.choice(FIRST_NAMES)), nom=str(rng.choice(LAST_NAMES)), age=age,
            glycemie=f"{rng.normal(1.05, 0.25):.2f} g/l" if rng.random() < 0.7 else "",
            ta=f"{int(rng.integers(10, 17))}/{int(rng.integers(6, 10))}" if rng.random() < 0.7 else "",
            taille=taille, poids=poids, specialite=primary, medicaments=", ".join(medications),
            specialite_ids=[specialties[name] for name in assigned],
        ))
    return count


def main():
    print(f"Seeding demo data into {settings.DATABASE_URL} ...")
    store = RecordStore()
    store.init_db()
    try:
        specialties = _get_or_create_specialties(store)
        families = _get_or_create_families(store)
    except DuplicateNameError as e:
        print(f"Concurrent seeding detected: {e}", file=sys.stderr)
        sys.exit(1)

    new_meds = seed_medications(store, families)
    new_patients = seed_patients(store, specialties)

    patients = pd.DataFrame([p.model_dump(exclude={'specialites'}) for p in store.fetch_patients()])
    print(f"\nCreated {new_patients} patients and {new_meds} medications.")
    print(f"Total patients in store: {len(patients)}")
    if not patients.empty:
        print("\nPrimary specialty distribution:")
        print(patients['specialite'].replace("", settings.DASHBOARD.unspecified_label).value_counts())
    store.dispose()


if __name__ == "__main__":
    main()
