from sqlmodel import SQLModel
from .worker import Worker
from .doctor import Doctor
from .worker_otp import WorkerOTP
from .medical_record import MedicalRecord
from .appointment import Appointment, AppointmentStatus
from .medical_document import MedicalDocument

__all__ = [
    "SQLModel",
    "Worker",
    "Doctor",
    "WorkerOTP",
    "MedicalRecord",
    "Appointment",
    "AppointmentStatus",
    "MedicalDocument",
]
