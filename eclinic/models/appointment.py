"""Appointment model definitions."""

import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, text
from eclinic.database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Appointment(Base):
    """Represents a reservation of one doctor slot by one patient.

    Doctor and patient names are copied in at booking time and are not kept in
    sync with later profile edits.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_doctor_status_start", "doctor_id", "status", "starts_at"),
        Index("idx_appointments_patient_status_start", "patient_id", "status", "starts_at"),
        Index(
            "uq_appointments_confirmed_doctor_slot",
            "doctor_id",
            "starts_at",
            unique=True,
            sqlite_where=text("status = 'CONFIRMED'"),
            postgresql_where=text("status = 'CONFIRMED'"),
        ),
    )

    id = Column(String, primary_key=True)
    doctor_id = Column(String, ForeignKey("users.id"), nullable=False)
    patient_id = Column(String, ForeignKey("users.id"), nullable=False)
    doctor_first_name = Column(String, default="")
    doctor_last_name = Column(String, default="")
    patient_first_name = Column(String, default="")
    patient_last_name = Column(String, default="")
    starts_at = Column(DateTime, nullable=False)  # naive UTC
    status = Column(String, nullable=False, default=AppointmentStatus.CONFIRMED.value)
    fasting_required = Column(Boolean, default=False)
    additional_prep = Column(String, default="")
    created_at = Column(DateTime)  # naive UTC
