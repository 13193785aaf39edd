from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime
from uuid import UUID, uuid4

from swasthya.core.utils import utcnow

class WorkerOTP(SQLModel, table=True):
    __tablename__ = "worker_otp"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    mobile_number: str = Field(index=True)
    otp_code: str = Field(max_length=6)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))
    is_used: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
