from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from swasthya.api.deps import get_current_doctor, get_token_data
from swasthya.core.redis import redis_client
from swasthya.core.security import issue_session_token
from swasthya.db.models import Doctor
from swasthya.db.session import get_session
from swasthya.schemas.doctor import (
    DoctorLoginRequest,
    DoctorLoginResponse,
    DoctorResponse,
    PrivateDoctorRegister,
)
from swasthya.schemas.worker import HealthHistoryResponse
from swasthya.services.doctor_service import DoctorService
from swasthya.services.worker_service import WorkerService

router = APIRouter()

async def get_doctor_service(session: AsyncSession = Depends(get_session)) -> DoctorService:
    return DoctorService(session)

async def login_response(doctor: Doctor) -> DoctorLoginResponse:
    access_token = await issue_session_token(str(doctor.id), "doctor")
    return DoctorLoginResponse(
        access_token=access_token,
        token_type="bearer",
        doctor=DoctorResponse.model_validate(doctor)
    )

@router.post("/login", response_model=DoctorLoginResponse)
async def login_doctor(
    payload: DoctorLoginRequest,
    service: DoctorService = Depends(get_doctor_service)
):
    doctor = await service.resolve_login(payload.doctor_id, payload.name, payload.hospital_name)
    return await login_response(doctor)

@router.post("/register", response_model=DoctorLoginResponse)
async def register_private_doctor(
    payload: PrivateDoctorRegister,
    service: DoctorService = Depends(get_doctor_service)
):
    doctor = await service.register_private(payload)
    return await login_response(doctor)

@router.post("/logout")
async def logout_doctor(
    doctor: Doctor = Depends(get_current_doctor),
    token_data: dict = Depends(get_token_data)
):
    await redis_client.delete_token(token_data["token"])
    return {"message": "Logged out successfully"}

@router.get("/me", response_model=DoctorResponse)
async def read_current_doctor(doctor: Doctor = Depends(get_current_doctor)):
    return doctor

@router.get("/workers/{unique_worker_id}", response_model=HealthHistoryResponse)
async def lookup_worker(
    unique_worker_id: str,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_session)
):
    service = WorkerService(session)
    worker = await service.get_by_unique_id(unique_worker_id)
    return await service.get_health_history(worker)
