from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import date, datetime, time
from enum import Enum
from uuid import UUID, uuid4

from swasthya.core.utils import utcnow

if TYPE_CHECKING:
    from .worker import Worker

class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    worker_id: UUID = Field(foreign_key="workers.id", index=True)
    medical_record_id: Optional[UUID] = Field(default=None, foreign_key="medical_records.id")
    doctor_name: str
    appointment_date: date
    appointment_time: Optional[time] = None
    status: AppointmentStatus = Field(default=AppointmentStatus.SCHEDULED)
    purpose: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    worker: "Worker" = Relationship(back_populates="appointments")
