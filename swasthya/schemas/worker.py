from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from swasthya.schemas.record import MedicalRecordResponse, AppointmentResponse, MedicalDocumentResponse

class WorkerRegister(BaseModel):
    name: str = Field(min_length=1)
    mobile_number: str = Field(min_length=1)
    email: str = Field(min_length=1)
    address: str = Field(min_length=1)
    date_of_birth: date
    aadhar_number: str = Field(min_length=1)
    district: Optional[str] = None

class WorkerResponse(BaseModel):
    id: UUID
    unique_worker_id: str
    name: str
    mobile_number: str
    email: str
    address: str
    date_of_birth: date
    district: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class WorkerRegisteredResponse(BaseModel):
    success: bool = True
    unique_id: str
    worker: WorkerResponse

class WorkerLoginRequest(BaseModel):
    unique_worker_id: str = Field(min_length=1)
    aadhar_number: str = Field(min_length=1)

class WorkerLoginResponse(BaseModel):
    success: bool = True
    worker: WorkerResponse
    access_token: str
    token_type: str = "bearer"

# The portal clients send camelCase keys; both spellings are accepted.
class OTPRequest(BaseModel):
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")

    class Config:
        populate_by_name = True

class OTPVerify(BaseModel):
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")
    otp: Optional[str] = None

    class Config:
        populate_by_name = True

class OTPIssuedResponse(BaseModel):
    success: bool = True
    message: str
    otp: Optional[str] = None

class OTPVerifiedResponse(WorkerLoginResponse):
    message: str = "OTP verified successfully"

class HealthHistoryResponse(BaseModel):
    worker: WorkerResponse
    medical_records: List[MedicalRecordResponse]
    documents: List[MedicalDocumentResponse]
    appointments: List[AppointmentResponse]
