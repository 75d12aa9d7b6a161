# cabinet_project_root/records/__init__.py

"""
Initializes the records package: the persistent record store, its schema,
its snapshot models and its change-notification feed.
"""

from .errors import (
    DuplicateNameError,
    DuplicateRecordError,
    InsufficientStockError,
    InvalidRecordError,
    RecordNotFoundError,
    RecordStoreError,
)
from .events import ChangeEvent, ChangeFeed, ChangeTopic, ChangeType
from .schemas import (
    MedicationCreate,
    MedicationFamilyRecord,
    MedicationRecord,
    MedicationUpdate,
    PatientCreate,
    PatientRecord,
    PatientUpdate,
    SpecialtyRecord,
)
from .store import RecordStore

__all__ = [
    # errors.py
    "RecordStoreError",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "DuplicateNameError",
    "InvalidRecordError",
    "InsufficientStockError",

    # events.py
    "ChangeEvent",
    "ChangeFeed",
    "ChangeTopic",
    "ChangeType",

    # schemas.py
    "PatientCreate",
    "PatientUpdate",
    "PatientRecord",
    "SpecialtyRecord",
    "MedicationCreate",
    "MedicationUpdate",
    "MedicationRecord",
    "MedicationFamilyRecord",

    # store.py
    "RecordStore",
]
