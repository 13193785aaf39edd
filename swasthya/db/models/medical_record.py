from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import date, datetime
from uuid import UUID, uuid4

from swasthya.core.utils import DoctorType, utcnow

if TYPE_CHECKING:
    from .worker import Worker

class MedicalRecord(SQLModel, table=True):
    __tablename__ = "medical_records"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    worker_id: UUID = Field(foreign_key="workers.id", index=True)
    # Doctor details are copied at write time, not joined
    doctor_name: str
    hospital_name: Optional[str] = None
    doctor_type: Optional[DoctorType] = None
    diagnosis: str
    prescription: Optional[str] = None
    notes: Optional[str] = None
    suggested_tests: Optional[str] = None
    test_by_worker: Optional[str] = None
    visit_date: date = Field(default_factory=lambda: utcnow().date())
    next_appointment_date: Optional[date] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    worker: "Worker" = Relationship(back_populates="medical_records")
