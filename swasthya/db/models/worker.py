from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import date, datetime
from uuid import UUID, uuid4

from swasthya.core.utils import utcnow

if TYPE_CHECKING:
    from .medical_record import MedicalRecord
    from .appointment import Appointment
    from .medical_document import MedicalDocument

class Worker(SQLModel, table=True):
    __tablename__ = "workers"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    unique_worker_id: str = Field(unique=True, index=True, max_length=7)
    name: str
    mobile_number: str = Field(index=True)
    email: str
    address: str
    date_of_birth: date
    aadhar_number: str = Field(unique=True, index=True)
    district: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    medical_records: List["MedicalRecord"] = Relationship(back_populates="worker")
    appointments: List["Appointment"] = Relationship(back_populates="worker")
    documents: List["MedicalDocument"] = Relationship(back_populates="worker")
