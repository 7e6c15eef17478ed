from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    TIMESTAMP,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from patient_records.db.base import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=utc_now,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )


class Patient(TimestampMixin, Base):
    """Patient demographics captured at intake."""

    __tablename__ = "patients"

    patient_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    sex: Mapped[str] = mapped_column(String(20), nullable=False)

    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email_address: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    preferred_communication: Mapped[Optional[str]] = mapped_column(
        String(20), default="Email", nullable=True
    )
    socioeconomic_status: Mapped[Optional[str]] = mapped_column(
        String(50), default="Decline to Answer", nullable=True
    )
    geographic_location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    medical_history: Mapped[List["MedicalHistoryEntry"]] = relationship(
        "MedicalHistoryEntry",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    lifestyle: Mapped[List["LifestyleEntry"]] = relationship(
        "LifestyleEntry",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Patient(patient_id={self.patient_id}, full_name={self.full_name!r})>"


class MedicalHistoryEntry(TimestampMixin, Base):
    """A diagnosed condition on a patient's record."""

    __tablename__ = "patient_medical_history"

    patient_medical_history_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.patient_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    condition: Mapped[str] = mapped_column(String(255), nullable=False)
    diagnosis_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(255), default="Active", nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    patient: Mapped["Patient"] = relationship(
        "Patient", back_populates="medical_history"
    )

    @property
    def entry_id(self) -> int:
        return self.patient_medical_history_id

    def __repr__(self) -> str:
        return (
            f"<MedicalHistoryEntry(id={self.patient_medical_history_id}, "
            f"patient_id={self.patient_id}, condition={self.condition!r})>"
        )


class LifestyleEntry(TimestampMixin, Base):
    """A lifestyle factor (smoking, diet, exercise...) for a patient."""

    __tablename__ = "patient_lifestyle"

    patient_lifestyle_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.patient_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lifestyle_factor: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    patient: Mapped["Patient"] = relationship("Patient", back_populates="lifestyle")

    @property
    def entry_id(self) -> int:
        return self.patient_lifestyle_id

    def __repr__(self) -> str:
        return (
            f"<LifestyleEntry(id={self.patient_lifestyle_id}, "
            f"patient_id={self.patient_id}, factor={self.lifestyle_factor!r})>"
        )
