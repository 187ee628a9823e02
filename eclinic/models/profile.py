"""Doctor and patient profile model definitions."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String
from eclinic.database import Base


class DoctorProfile(Base):
    """Public profile of a doctor, including the recurring weekly schedule."""
    __tablename__ = "doctor_profiles"

    user_id = Column(String, ForeignKey("users.id"), primary_key=True)
    first_name = Column(String, default="")
    last_name = Column(String, default="")
    specialisation = Column(String, default="")
    institution_name = Column(String, default="")
    experience_years = Column(Integer, default=0)
    availability = Column(Boolean, default=False)
    weekly_schedule = Column(JSON, default=dict)  # {"Monday": ["09:00", "09:30"], ...}
    session_duration_minutes = Column(Integer)


class PatientProfile(Base):
    """Profile of a patient."""
    __tablename__ = "patient_profiles"

    user_id = Column(String, ForeignKey("users.id"), primary_key=True)
    first_name = Column(String, default="")
    last_name = Column(String, default="")
