from __future__ import annotations

import datetime as dt
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from clinic_calendar.extensions import db


class Base(DeclarativeBase):
    """Declarative base for the appointment store models."""


class QueryMixin:
    """Provide a Flask-SQLAlchemy-style query attribute."""

    @classmethod
    def query(cls):  # type: ignore[override]
        return db.session().query(cls)


class Patient(QueryMixin, Base):
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    medicare: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_of_birth: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)

    appointments: Mapped[List["Appointment"]] = relationship(back_populates="patient")


class Appointment(QueryMixin, Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("patients.id", ondelete="SET NULL"), nullable=True
    )
    patient_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    practitioner: Mapped[str] = mapped_column(Text, nullable=False)
    appointment_type: Mapped[str] = mapped_column(Text, nullable=False)
    type_code: Mapped[str] = mapped_column(Text, nullable=False, default="")
    title: Mapped[str] = mapped_column(Text, nullable=False)
    reception_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    clinical_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Naive UTC; the service layer attaches the offset on the way out.
    start_time: Mapped[dt.datetime] = mapped_column("starts_at", DateTime, nullable=False)
    end_time: Mapped[dt.datetime] = mapped_column("ends_at", DateTime, nullable=False)
    created_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)

    patient: Mapped[Optional[Patient]] = relationship(Patient, back_populates="appointments")


def ensure_base_tables() -> None:
    """Create any missing store tables on the configured engine."""
    Base.metadata.create_all(db.engine)


__all__ = ["Base", "Patient", "Appointment", "ensure_base_tables"]
