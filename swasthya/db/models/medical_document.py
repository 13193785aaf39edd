from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

from swasthya.core.utils import utcnow

if TYPE_CHECKING:
    from .worker import Worker

class MedicalDocument(SQLModel, table=True):
    __tablename__ = "medical_documents"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    worker_id: UUID = Field(foreign_key="workers.id", index=True)
    medical_record_id: Optional[UUID] = Field(default=None, foreign_key="medical_records.id")
    file_name: str
    file_path: str = Field(unique=True) # key in the document bucket
    file_type: str
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    worker: "Worker" = Relationship(back_populates="documents")
