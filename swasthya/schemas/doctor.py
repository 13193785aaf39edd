from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from swasthya.core.utils import DoctorType

class DoctorLoginRequest(BaseModel):
    doctor_id: str = Field(min_length=1)
    # Only read on a government doctor's first login
    name: Optional[str] = None
    hospital_name: Optional[str] = None

class PrivateDoctorRegister(BaseModel):
    name: str = Field(min_length=1)
    hospital_name: str = Field(min_length=1)
    aadhar_number: str = Field(min_length=1)
    mobile_number: Optional[str] = None

class DoctorResponse(BaseModel):
    id: UUID
    name: str
    hospital_name: str
    doctor_type: DoctorType
    unique_doctor_id: str
    nmr_id: Optional[str] = None
    mobile_number: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class DoctorLoginResponse(BaseModel):
    access_token: str
    token_type: str
    doctor: DoctorResponse
