from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import date, datetime, time

from swasthya.core.utils import DoctorType
from swasthya.db.models.appointment import AppointmentStatus

class EncounterCreate(BaseModel):
    diagnosis: str
    prescription: Optional[str] = None
    notes: Optional[str] = None
    suggested_tests: Optional[str] = None
    test_by_worker: Optional[str] = None
    visit_date: Optional[date] = None
    next_appointment_date: Optional[date] = None
    next_appointment_time: Optional[time] = None

class MedicalRecordResponse(BaseModel):
    id: UUID
    worker_id: UUID
    doctor_name: str
    hospital_name: Optional[str] = None
    doctor_type: Optional[DoctorType] = None
    diagnosis: str
    prescription: Optional[str] = None
    notes: Optional[str] = None
    suggested_tests: Optional[str] = None
    test_by_worker: Optional[str] = None
    visit_date: date
    next_appointment_date: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True

class AppointmentResponse(BaseModel):
    id: UUID
    worker_id: UUID
    medical_record_id: Optional[UUID] = None
    doctor_name: str
    appointment_date: date
    appointment_time: Optional[time] = None
    status: AppointmentStatus
    purpose: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class MedicalDocumentResponse(BaseModel):
    id: UUID
    worker_id: UUID
    medical_record_id: Optional[UUID] = None
    file_name: str
    file_path: str
    file_type: str
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class EncounterCreatedResponse(BaseModel):
    success: bool = True
    record: MedicalRecordResponse
    appointment: Optional[AppointmentResponse] = None
    document: Optional[MedicalDocumentResponse] = None
