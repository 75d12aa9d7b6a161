# cabinet_project_root/records/models.py
# RELATIONAL SCHEMA (SQLALCHEMY ORM)

"""
Table definitions for the record store.

Column names follow the practice's original schema (`patients`,
`specialites`, `patient_specialites`, `famille_medicaments`, `medicaments`).
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (CheckConstraint, DateTime, Float, ForeignKey, Integer,
                        String, Text, UniqueConstraint)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    prenom: Mapped[str] = mapped_column(String(120), nullable=False)
    nom: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    glycemie: Mapped[str] = mapped_column(String(60), nullable=False, default="")
    ta: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    taille: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    poids: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # Derived from poids/taille on every write; 0 when either is missing.
    imc: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    specialite: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    medicaments: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    specialty_links: Mapped[List["PatientSpecialty"]] = relationship(
        back_populates="patient", cascade="all, delete-orphan", passive_deletes=True)
    specialites: Mapped[List["Specialty"]] = relationship(
        secondary="patient_specialites", viewonly=True, order_by="Specialty.nom")

    __table_args__ = (CheckConstraint("age >= 0", name="ck_patients_age_non_negative"),)


class Specialty(Base):
    __tablename__ = "specialites"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    nom: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    patient_links: Mapped[List["PatientSpecialty"]] = relationship(
        back_populates="specialite", cascade="all, delete-orphan", passive_deletes=True)


class PatientSpecialty(Base):
    __tablename__ = "patient_specialites"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    specialite_id: Mapped[str] = mapped_column(ForeignKey("specialites.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    patient: Mapped[Patient] = relationship(back_populates="specialty_links")
    specialite: Mapped[Specialty] = relationship(back_populates="patient_links")

    __table_args__ = (UniqueConstraint("patient_id", "specialite_id", name="uq_patient_specialite"),)


class MedicationFamily(Base):
    __tablename__ = "famille_medicaments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    nom: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    medicaments: Mapped[List["Medication"]] = relationship(back_populates="famille", order_by="Medication.nom")


class Medication(Base):
    __tablename__ = "medicaments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    nom: Mapped[str] = mapped_column(String(160), nullable=False, index=True)
    famille_id: Mapped[Optional[str]] = mapped_column(ForeignKey("famille_medicaments.id", ondelete="SET NULL"), nullable=True)
    dosage: Mapped[str] = mapped_column(String(60), nullable=False, default="")
    forme: Mapped[str] = mapped_column(String(60), nullable=False, default="")
    stock_actuel: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stock_minimum: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    prix_unitaire: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    famille: Mapped[Optional[MedicationFamily]] = relationship(back_populates="medicaments")

    __table_args__ = (
        CheckConstraint("stock_actuel >= 0", name="ck_medicaments_stock_non_negative"),
        CheckConstraint("stock_minimum >= 0", name="ck_medicaments_minimum_non_negative"),
        CheckConstraint("prix_unitaire >= 0", name="ck_medicaments_price_non_negative"),
    )
