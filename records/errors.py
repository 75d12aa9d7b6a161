# cabinet_project_root/records/errors.py
# RECORD STORE ERROR TAXONOMY


class RecordStoreError(Exception):
    """Base class for every failure originating in the record store."""


class RecordNotFoundError(RecordStoreError):
    def __init__(self, entity: str, record_id: str):
        super().__init__(f"{entity} '{record_id}' not found.")
        self.entity = entity
        self.record_id = record_id


class DuplicateRecordError(RecordStoreError):
    """A uniqueness constraint rejected the write."""


class DuplicateNameError(DuplicateRecordError):
    def __init__(self, entity: str, name: str):
        super().__init__(f"{entity} named '{name}' already exists.")
        self.entity = entity
        self.name = name


class InvalidRecordError(RecordStoreError):
    """The write would break a record invariant (blank name, negative stock, ...)."""


class InsufficientStockError(InvalidRecordError):
    def __init__(self, medication_id: str, requested: int, available: int):
        super().__init__(f"Cannot dispense {requested} of medication '{medication_id}': only {available} in stock.")
        self.medication_id = medication_id
        self.requested = requested
        self.available = available
