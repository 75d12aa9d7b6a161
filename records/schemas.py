# cabinet_project_root/records/schemas.py
# PYDANTIC SNAPSHOT & INPUT MODELS

"""
Detached, validated views of store rows (the *Record models) and the payloads
accepted by store mutations (the *Create / *Update models).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import settings


class SpecialtyRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nom: str
    created_at: Optional[datetime] = None


class MedicationFamilyRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nom: str
    description: str = ""
    created_at: Optional[datetime] = None


# --- Patients ---

class PatientBase(BaseModel):
    prenom: str = Field(..., min_length=1)
    nom: str = Field(..., min_length=1)
    age: int = Field(0, ge=0)
    glycemie: str = ""
    ta: str = ""
    taille: Optional[float] = Field(None, ge=0, description="Height in centimetres")
    poids: Optional[float] = Field(None, ge=0, description="Weight in kilograms")
    specialite: str = ""
    medicaments: str = ""
    notes: str = ""

    @field_validator('prenom', 'nom', 'specialite', mode='before')
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class PatientCreate(PatientBase):
    specialite_ids: List[str] = Field(default_factory=list)


class PatientUpdate(BaseModel):
    prenom: Optional[str] = Field(None, min_length=1)
    nom: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=0)
    glycemie: Optional[str] = None
    ta: Optional[str] = None
    taille: Optional[float] = Field(None, ge=0)
    poids: Optional[float] = Field(None, ge=0)
    specialite: Optional[str] = None
    medicaments: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('prenom', 'nom', 'specialite', mode='before')
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class PatientRecord(PatientBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    imc: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    specialites: List[SpecialtyRecord] = Field(default_factory=list)


# --- Medications ---

class MedicationBase(BaseModel):
    nom: str = Field(..., min_length=1)
    famille_id: Optional[str] = None
    dosage: str = ""
    forme: str = ""
    stock_actuel: int = Field(0, ge=0)
    stock_minimum: int = Field(default_factory=lambda: settings.THRESHOLDS.default_stock_minimum, ge=0)
    prix_unitaire: float = Field(0.0, ge=0)
    description: str = ""


class MedicationCreate(MedicationBase):
    pass


class MedicationUpdate(BaseModel):
    nom: Optional[str] = Field(None, min_length=1)
    famille_id: Optional[str] = None
    dosage: Optional[str] = None
    forme: Optional[str] = None
    stock_actuel: Optional[int] = Field(None, ge=0)
    stock_minimum: Optional[int] = Field(None, ge=0)
    prix_unitaire: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None


class MedicationRecord(MedicationBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    famille: Optional[MedicationFamilyRecord] = None
