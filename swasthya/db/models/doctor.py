from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4

from swasthya.core.utils import DoctorType, utcnow

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    hospital_name: str
    doctor_type: DoctorType
    unique_doctor_id: str = Field(unique=True, index=True)
    nmr_id: Optional[str] = None # government registration number
    aadhar_number: Optional[str] = Field(default=None, index=True)
    mobile_number: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
