# cabinet_project_root/tests/test_record_store.py
# RECORD STORE PERSISTENCE TESTS

import pytest
from pydantic import ValidationError

from records import (ChangeTopic, ChangeType, DuplicateNameError, DuplicateRecordError,
                     InsufficientStockError, InvalidRecordError, MedicationCreate, MedicationUpdate,
                     PatientCreate, PatientUpdate, RecordNotFoundError)

# Fixtures are sourced from conftest.py

def _patient(**overrides) -> PatientCreate:
    fields = dict(prenom="Sarah", nom="Haddad", age=40, taille=170, poids=80, specialite="Cardiologie",
                  medicaments="Amlodipine")
    fields.update(overrides)
    return PatientCreate(**fields)

# --- Patients ---
def test_create_patient_computes_bmi(store):
    record = store.create_patient(_patient())
    assert record.imc == 27.68
    assert record.created_at is not None

    fetched = store.fetch_patients()
    assert [p.id for p in fetched] == [record.id]
    assert fetched[0].nom == "Haddad"

def test_patient_without_measurements_has_zero_bmi(store):
    record = store.create_patient(_patient(taille=None, poids=None))
    assert record.imc == 0.0

def test_update_patient_recomputes_bmi(store):
    record = store.create_patient(_patient())
    updated = store.update_patient(record.id, PatientUpdate(poids=60))
    assert updated.imc == 20.76
    assert updated.prenom == "Sarah"

    cleared = store.update_patient(record.id, PatientUpdate(taille=None))
    assert cleared.imc == 0.0

def test_update_patient_cannot_clear_required_fields(store):
    record = store.create_patient(_patient())
    with pytest.raises(InvalidRecordError):
        store.update_patient(record.id, PatientUpdate(nom=None))
    assert store.get_patient(record.id).nom == "Haddad"

def test_update_patient_trims_text_fields(store):
    record = store.create_patient(_patient())
    updated = store.update_patient(record.id, PatientUpdate(nom=" Haddad-Saidi ", specialite="  Pédiatrie "))
    assert (updated.nom, updated.specialite) == ("Haddad-Saidi", "Pédiatrie")
    with pytest.raises(ValidationError):
        PatientUpdate(prenom="   ")

def test_update_patient_with_unvalidated_blank_name_is_rolled_back(store):
    record = store.create_patient(_patient())
    with pytest.raises(InvalidRecordError):
        store.update_patient(record.id, PatientUpdate.model_construct(prenom="   "))
    assert store.get_patient(record.id).prenom == "Sarah"

def test_patient_input_validation():
    with pytest.raises(ValidationError):
        PatientCreate(prenom="  ", nom="Haddad", age=40)
    with pytest.raises(ValidationError):
        PatientCreate(prenom="Sarah", nom="Haddad", age=-1)

def test_delete_patient(store):
    record = store.create_patient(_patient())
    store.delete_patient(record.id)
    assert store.fetch_patients() == []
    with pytest.raises(RecordNotFoundError):
        store.delete_patient(record.id)

# --- Specialties ---
def test_duplicate_specialty_name_is_rejected(store):
    store.create_specialty("Cardiologie")
    with pytest.raises(DuplicateNameError):
        store.create_specialty(" Cardiologie ")
    assert len(store.fetch_specialties()) == 1

def test_blank_specialty_name_is_rejected(store):
    with pytest.raises(InvalidRecordError):
        store.create_specialty("   ")

def test_specialty_links(store):
    cardio = store.create_specialty("Cardiologie")
    diabeto = store.create_specialty("Diabétologie")
    patient = store.create_patient(_patient(specialite_ids=[diabeto.id]))
    assert [s.nom for s in patient.specialites] == ["Diabétologie"]

    store.attach_specialty(patient.id, cardio.id)
    with pytest.raises(DuplicateRecordError):
        store.attach_specialty(patient.id, cardio.id)
    assert [s.nom for s in store.get_patient(patient.id).specialites] == ["Cardiologie", "Diabétologie"]

    assert store.detach_specialty(patient.id, diabeto.id) is True
    assert store.detach_specialty(patient.id, diabeto.id) is False
    assert [s.nom for s in store.get_patient(patient.id).specialites] == ["Cardiologie"]

def test_assign_specialties_skips_existing(store):
    cardio = store.create_specialty("Cardiologie")
    patient = store.create_patient(_patient(specialite_ids=[cardio.id]))
    pedia = store.create_specialty("Pédiatrie")
    updated = store.assign_specialties(patient.id, [cardio.id, pedia.id, pedia.id])
    assert [s.nom for s in updated.specialites] == ["Cardiologie", "Pédiatrie"]

def test_unknown_specialty_is_rejected_on_create(store):
    with pytest.raises(RecordNotFoundError):
        store.create_patient(_patient(specialite_ids=["missing"]))
    assert store.fetch_patients() == []

def test_deleting_specialty_removes_assignments(store, recorded_events):
    cardio = store.create_specialty("Cardiologie")
    patient = store.create_patient(_patient(specialite_ids=[cardio.id]))
    recorded_events.clear()

    store.delete_specialty(cardio.id)
    assert store.get_patient(patient.id).specialites == []
    assert store.fetch_specialties() == []
    assert {e.topic for e in recorded_events} == {ChangeTopic.SPECIALTIES, ChangeTopic.PATIENTS}

# --- Medications ---
def test_medication_with_family(store):
    family = store.create_medication_family("Antalgiques")
    med = store.create_medication(MedicationCreate(nom="Paracetamol", famille_id=family.id, stock_actuel=20))
    assert med.stock_minimum == 10
    fetched = store.fetch_medications()
    assert fetched[0].famille.nom == "Antalgiques"

def test_duplicate_family_name_is_rejected(store):
    store.create_medication_family("Antalgiques")
    with pytest.raises(DuplicateNameError):
        store.create_medication_family("Antalgiques")

def test_update_stock_rejects_negative_quantity(store):
    med = store.create_medication(MedicationCreate(nom="Paracetamol", stock_actuel=5))
    with pytest.raises(InvalidRecordError):
        store.update_stock(med.id, -1)
    assert store.update_stock(med.id, 0).stock_actuel == 0

def test_dispense_decrements_every_medication(store, recorded_events):
    para = store.create_medication(MedicationCreate(nom="Paracetamol", stock_actuel=5))
    amox = store.create_medication(MedicationCreate(nom="Amoxicilline", stock_actuel=3))
    recorded_events.clear()

    records = store.dispense({para.id: 2, amox.id: 3})
    assert [(r.nom, r.stock_actuel) for r in records] == [("Amoxicilline", 0), ("Paracetamol", 3)]
    assert {e.record_id for e in recorded_events} == {para.id, amox.id}

def test_failed_dispense_leaves_every_stock_unchanged(store, recorded_events):
    para = store.create_medication(MedicationCreate(nom="Paracetamol", stock_actuel=5))
    amox = store.create_medication(MedicationCreate(nom="Amoxicilline", stock_actuel=1))
    recorded_events.clear()

    with pytest.raises(InsufficientStockError) as excinfo:
        store.dispense({para.id: 2, amox.id: 2})
    assert (excinfo.value.medication_id, excinfo.value.available) == (amox.id, 1)
    with pytest.raises(RecordNotFoundError):
        store.dispense({para.id: 2, "missing": 1})

    stock = {m.nom: m.stock_actuel for m in store.fetch_medications()}
    assert stock == {"Amoxicilline": 1, "Paracetamol": 5}
    assert recorded_events == []

def test_dispense_is_conditional_on_current_stock(store):
    med = store.create_medication(MedicationCreate(nom="Paracetamol", stock_actuel=5))
    # Two sessions planned against the same snapshot of 5 units.
    store.dispense({med.id: 3})
    with pytest.raises(InsufficientStockError):
        store.dispense({med.id: 3})
    assert store.dispense({med.id: 2})[0].stock_actuel == 0

@pytest.mark.parametrize("qty", [0, -1, 1.5, None, "abc"])
def test_dispense_rejects_invalid_quantities(store, qty):
    med = store.create_medication(MedicationCreate(nom="Paracetamol", stock_actuel=5))
    with pytest.raises(InvalidRecordError):
        store.dispense({med.id: qty})
    assert store.fetch_medications()[0].stock_actuel == 5

def test_update_and_delete_medication(store):
    med = store.create_medication(MedicationCreate(nom="Paracetamol", stock_actuel=5))
    updated = store.update_medication(med.id, MedicationUpdate(stock_minimum=2, dosage="500 mg"))
    assert (updated.stock_minimum, updated.dosage, updated.stock_actuel) == (2, "500 mg", 5)
    store.delete_medication(med.id)
    assert store.fetch_medications() == []

# --- Change Notifications ---
def test_mutations_publish_change_events(store, recorded_events):
    patient = store.create_patient(_patient())
    store.update_patient(patient.id, PatientUpdate(age=41))
    store.delete_patient(patient.id)
    med = store.create_medication(MedicationCreate(nom="Paracetamol", stock_actuel=5))
    store.update_stock(med.id, 4)

    observed = [(e.topic, e.change_type, e.record_id) for e in recorded_events]
    assert observed == [
        (ChangeTopic.PATIENTS, ChangeType.INSERT, patient.id),
        (ChangeTopic.PATIENTS, ChangeType.UPDATE, patient.id),
        (ChangeTopic.PATIENTS, ChangeType.DELETE, patient.id),
        (ChangeTopic.MEDICATIONS, ChangeType.INSERT, med.id),
        (ChangeTopic.MEDICATIONS, ChangeType.UPDATE, med.id),
    ]

def test_failed_mutation_publishes_nothing(store, recorded_events):
    store.create_specialty("Cardiologie")
    recorded_events.clear()
    with pytest.raises(DuplicateNameError):
        store.create_specialty("Cardiologie")
    assert recorded_events == []
