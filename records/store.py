# cabinet_project_root/records/store.py
# RECORD STORE: PERSISTENCE + CHANGE NOTIFICATIONS

"""
The single source of truth for patients, specialties, medications and
medication families.

Reads return detached pydantic snapshots. Every successful mutation commits,
then publishes a change event so views can re-fetch and recompute their
aggregates from scratch.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Mapping, Optional, Type

from pydantic import ValidationError
from sqlalchemy import create_engine, delete, event, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from sqlalchemy.pool import StaticPool

from analytics.metrics import as_number, compute_bmi
from config import settings
from .errors import (DuplicateNameError, DuplicateRecordError, InsufficientStockError,
                     InvalidRecordError, RecordNotFoundError, RecordStoreError)
from .events import ChangeEvent, ChangeFeed, ChangeTopic, ChangeType
from .models import (Base, Medication, MedicationFamily, Patient,
                     PatientSpecialty, Specialty, utcnow)
from .schemas import (MedicationCreate, MedicationFamilyRecord, MedicationRecord,
                      MedicationUpdate, PatientCreate, PatientRecord,
                      PatientUpdate, SpecialtyRecord)

logger = logging.getLogger(__name__)

IN_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}
REQUIRED_PATIENT_FIELDS = {'prenom', 'nom', 'age'}
TEXT_PATIENT_FIELDS = {'glycemie', 'ta', 'specialite', 'medicaments', 'notes'}


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _refresh_bmi(row: Patient) -> None:
    row.imc = compute_bmi(row.poids, row.taille) or 0.0


class RecordStore:
    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None, feed: Optional[ChangeFeed] = None):
        self.database_url = database_url or settings.DATABASE_URL
        engine_kwargs = {"echo": settings.DATABASE_ECHO if echo is None else echo}
        is_sqlite = self.database_url.startswith("sqlite")
        if is_sqlite:
            # Streamlit serves each session from its own thread.
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.database_url in IN_MEMORY_URLS:
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.database_url, **engine_kwargs)
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        self.feed = feed or ChangeFeed()

    def init_db(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Record store schema ready at {self.engine.url.render_as_string(hide_password=True)}.")

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self, action: str, on_integrity: Type[RecordStoreError] = DuplicateRecordError,
                 integrity_args: tuple = ()) -> Iterator[Session]:
        """Commits on success; rolls back and translates driver errors into store errors."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except RecordStoreError:
            session.rollback()
            raise
        except ValidationError as e:
            session.rollback()
            raise InvalidRecordError(f"{action} rejected: {e.error_count()} invalid field(s).") from e
        except IntegrityError as e:
            session.rollback()
            logger.warning(f"Integrity violation during '{action}': {e.orig}")
            raise (on_integrity(*integrity_args) if integrity_args else on_integrity(f"{action} rejected: {e.orig}")) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Record store failure during '{action}': {e}", exc_info=True)
            raise RecordStoreError(f"{action} failed: {e}") from e
        finally:
            session.close()

    def _publish(self, topic: ChangeTopic, change_type: ChangeType, record_id: Optional[str] = None) -> None:
        self.feed.publish(ChangeEvent(topic=topic, change_type=change_type, record_id=record_id))

    @staticmethod
    def _get_or_raise(session: Session, model, record_id: str, entity: str):
        row = session.get(model, record_id)
        if row is None:
            raise RecordNotFoundError(entity, record_id)
        return row

    # --- Reads ---

    def fetch_patients(self) -> List[PatientRecord]:
        """All patients, newest first, with their assigned specialties resolved."""
        with self._session("fetch patients") as session:
            stmt = select(Patient).options(selectinload(Patient.specialites)).order_by(Patient.created_at.desc())
            return [PatientRecord.model_validate(row) for row in session.scalars(stmt)]

    def get_patient(self, patient_id: str) -> PatientRecord:
        with self._session("get patient") as session:
            return PatientRecord.model_validate(self._get_or_raise(session, Patient, patient_id, "Patient"))

    def fetch_specialties(self) -> List[SpecialtyRecord]:
        with self._session("fetch specialties") as session:
            return [SpecialtyRecord.model_validate(row) for row in session.scalars(select(Specialty).order_by(Specialty.nom))]

    def fetch_medications(self) -> List[MedicationRecord]:
        """All medications by name, with their family resolved."""
        with self._session("fetch medications") as session:
            stmt = select(Medication).options(selectinload(Medication.famille)).order_by(Medication.nom)
            return [MedicationRecord.model_validate(row) for row in session.scalars(stmt)]

    def fetch_medication_families(self) -> List[MedicationFamilyRecord]:
        with self._session("fetch medication families") as session:
            stmt = select(MedicationFamily).order_by(MedicationFamily.nom)
            return [MedicationFamilyRecord.model_validate(row) for row in session.scalars(stmt)]

    # --- Patients ---

    def create_patient(self, data: PatientCreate) -> PatientRecord:
        with self._session("create patient") as session:
            row = Patient(**data.model_dump(exclude={'specialite_ids'}))
            _refresh_bmi(row)
            session.add(row)
            session.flush()
            for specialty_id in dict.fromkeys(data.specialite_ids):
                self._get_or_raise(session, Specialty, specialty_id, "Specialty")
                session.add(PatientSpecialty(patient_id=row.id, specialite_id=specialty_id))
            session.flush()
            session.refresh(row)
            record = PatientRecord.model_validate(row)
        logger.info(f"Patient {record.prenom} {record.nom} ({record.id}) created.")
        self._publish(ChangeTopic.PATIENTS, ChangeType.INSERT, record.id)
        return record

    def update_patient(self, patient_id: str, data: PatientUpdate) -> PatientRecord:
        changes = data.model_dump(exclude_unset=True)
        with self._session("update patient", on_integrity=InvalidRecordError) as session:
            row = self._get_or_raise(session, Patient, patient_id, "Patient")
            for field_name, value in changes.items():
                if value is None and field_name in REQUIRED_PATIENT_FIELDS:
                    raise InvalidRecordError(f"Patient {field_name} cannot be cleared.")
                if value is None and field_name in TEXT_PATIENT_FIELDS:
                    value = ""
                setattr(row, field_name, value)
            _refresh_bmi(row)
            row.updated_at = utcnow()
            session.flush()
            session.refresh(row)
            record = PatientRecord.model_validate(row)
        self._publish(ChangeTopic.PATIENTS, ChangeType.UPDATE, patient_id)
        return record

    def delete_patient(self, patient_id: str) -> None:
        with self._session("delete patient") as session:
            session.delete(self._get_or_raise(session, Patient, patient_id, "Patient"))
        logger.info(f"Patient {patient_id} deleted.")
        self._publish(ChangeTopic.PATIENTS, ChangeType.DELETE, patient_id)

    # --- Specialties ---

    def create_specialty(self, nom: str) -> SpecialtyRecord:
        name = (nom or "").strip()
        if not name:
            raise InvalidRecordError("Specialty name cannot be blank.")
        with self._session("create specialty", on_integrity=DuplicateNameError, integrity_args=("Specialty", name)) as session:
            row = Specialty(nom=name)
            session.add(row)
            session.flush()
            record = SpecialtyRecord.model_validate(row)
        self._publish(ChangeTopic.SPECIALTIES, ChangeType.INSERT, record.id)
        return record

    def delete_specialty(self, specialty_id: str) -> None:
        """Deletes a specialty everywhere; its patient assignments go with it."""
        with self._session("delete specialty") as session:
            session.delete(self._get_or_raise(session, Specialty, specialty_id, "Specialty"))
        self._publish(ChangeTopic.SPECIALTIES, ChangeType.DELETE, specialty_id)
        self._publish(ChangeTopic.PATIENTS, ChangeType.UPDATE)

    def attach_specialty(self, patient_id: str, specialty_id: str) -> None:
        with self._session("attach specialty") as session:
            self._get_or_raise(session, Patient, patient_id, "Patient")
            self._get_or_raise(session, Specialty, specialty_id, "Specialty")
            session.add(PatientSpecialty(patient_id=patient_id, specialite_id=specialty_id))
        self._publish(ChangeTopic.PATIENTS, ChangeType.UPDATE, patient_id)

    def detach_specialty(self, patient_id: str, specialty_id: str) -> bool:
        """Removes one assignment. Returns False when there was nothing to remove."""
        with self._session("detach specialty") as session:
            result = session.execute(
                delete(PatientSpecialty)
                .where(PatientSpecialty.patient_id == patient_id)
                .where(PatientSpecialty.specialite_id == specialty_id)
            )
            removed = result.rowcount > 0
        if removed:
            self._publish(ChangeTopic.PATIENTS, ChangeType.UPDATE, patient_id)
        return removed

    def assign_specialties(self, patient_id: str, specialty_ids: Iterable[str]) -> PatientRecord:
        """Attaches every given specialty not already assigned, in one transaction."""
        with self._session("assign specialties") as session:
            row = self._get_or_raise(session, Patient, patient_id, "Patient")
            assigned = {link.specialite_id for link in row.specialty_links}
            for specialty_id in dict.fromkeys(specialty_ids):
                if specialty_id in assigned:
                    continue
                self._get_or_raise(session, Specialty, specialty_id, "Specialty")
                session.add(PatientSpecialty(patient_id=patient_id, specialite_id=specialty_id))
            session.flush()
            session.refresh(row)
            record = PatientRecord.model_validate(row)
        self._publish(ChangeTopic.PATIENTS, ChangeType.UPDATE, patient_id)
        return record

    # --- Medications ---

    def create_medication_family(self, nom: str, description: str = "") -> MedicationFamilyRecord:
        name = (nom or "").strip()
        if not name:
            raise InvalidRecordError("Medication family name cannot be blank.")
        with self._session("create medication family", on_integrity=DuplicateNameError,
                           integrity_args=("Medication family", name)) as session:
            row = MedicationFamily(nom=name, description=(description or "").strip())
            session.add(row)
            session.flush()
            record = MedicationFamilyRecord.model_validate(row)
        self._publish(ChangeTopic.FAMILIES, ChangeType.INSERT, record.id)
        return record

    def create_medication(self, data: MedicationCreate) -> MedicationRecord:
        with self._session("create medication", on_integrity=InvalidRecordError) as session:
            if data.famille_id:
                self._get_or_raise(session, MedicationFamily, data.famille_id, "Medication family")
            row = Medication(**data.model_dump())
            session.add(row)
            session.flush()
            session.refresh(row)
            record = MedicationRecord.model_validate(row)
        self._publish(ChangeTopic.MEDICATIONS, ChangeType.INSERT, record.id)
        return record

    def update_medication(self, medication_id: str, data: MedicationUpdate) -> MedicationRecord:
        changes = data.model_dump(exclude_unset=True)
        with self._session("update medication", on_integrity=InvalidRecordError) as session:
            row = self._get_or_raise(session, Medication, medication_id, "Medication")
            if changes.get('famille_id'):
                self._get_or_raise(session, MedicationFamily, changes['famille_id'], "Medication family")
            for field_name, value in changes.items():
                if value is None and field_name != 'famille_id':
                    continue
                setattr(row, field_name, value)
            row.updated_at = utcnow()
            session.flush()
            session.refresh(row)
            record = MedicationRecord.model_validate(row)
        self._publish(ChangeTopic.MEDICATIONS, ChangeType.UPDATE, medication_id)
        return record

    def update_stock(self, medication_id: str, new_quantity: int) -> MedicationRecord:
        if new_quantity is None or int(new_quantity) < 0:
            raise InvalidRecordError(f"Stock cannot be negative (got {new_quantity}).")
        with self._session("update stock", on_integrity=InvalidRecordError) as session:
            row = self._get_or_raise(session, Medication, medication_id, "Medication")
            row.stock_actuel = int(new_quantity)
            row.updated_at = utcnow()
            session.flush()
            session.refresh(row)
            record = MedicationRecord.model_validate(row)
        logger.info(f"Stock of {record.nom} set to {record.stock_actuel} units.")
        self._publish(ChangeTopic.MEDICATIONS, ChangeType.UPDATE, medication_id)
        return record

    def dispense(self, quantities: Mapping[str, int]) -> List[MedicationRecord]:
        """
        Takes each quantity off its medication's stock, all in one transaction.

        Each decrement only applies while the stock still covers it, so
        concurrent sessions can neither oversell nor overwrite each other.
        If any medication is missing or short, no stock level changes.
        """
        requested = {}
        for medication_id, qty in quantities.items():
            number = as_number(qty)
            if number is None or number != int(number) or number < 1:
                raise InvalidRecordError(f"Dispensed quantity must be a whole number of at least 1 (got {qty}).")
            requested[medication_id] = int(number)
        if not requested:
            return []

        with self._session("dispense", on_integrity=InvalidRecordError) as session:
            now = utcnow()
            for medication_id, qty in requested.items():
                result = session.execute(
                    update(Medication)
                    .where(Medication.id == medication_id)
                    .where(Medication.stock_actuel >= qty)
                    .values(stock_actuel=Medication.stock_actuel - qty, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    row = self._get_or_raise(session, Medication, medication_id, "Medication")
                    raise InsufficientStockError(medication_id, qty, row.stock_actuel)
            stmt = (select(Medication).options(selectinload(Medication.famille))
                    .where(Medication.id.in_(list(requested))).order_by(Medication.nom))
            records = [MedicationRecord.model_validate(row) for row in session.scalars(stmt)]

        for record in records:
            logger.info(f"Dispensed {requested[record.id]} of {record.nom}; {record.stock_actuel} left.")
            self._publish(ChangeTopic.MEDICATIONS, ChangeType.UPDATE, record.id)
        return records

    def delete_medication(self, medication_id: str) -> None:
        with self._session("delete medication") as session:
            session.delete(self._get_or_raise(session, Medication, medication_id, "Medication"))
        self._publish(ChangeTopic.MEDICATIONS, ChangeType.DELETE, medication_id)
