from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from swasthya.api.deps import get_current_worker, get_storage_service
from swasthya.core.config import settings
from swasthya.core.security import issue_session_token
from swasthya.db.models import Worker
from swasthya.db.session import get_session
from swasthya.schemas.worker import (
    HealthHistoryResponse,
    OTPIssuedResponse,
    OTPRequest,
    OTPVerifiedResponse,
    OTPVerify,
    WorkerLoginRequest,
    WorkerLoginResponse,
    WorkerRegister,
    WorkerRegisteredResponse,
    WorkerResponse,
)
from swasthya.services.otp_service import OTPService
from swasthya.services.storage_service import StorageService
from swasthya.services.worker_service import WorkerService

router = APIRouter()

def content_disposition(filename: str) -> str:
    # Header values are latin-1; non-ASCII names go in the RFC 5987 form
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'

async def get_worker_service(session: AsyncSession = Depends(get_session)) -> WorkerService:
    return WorkerService(session)

async def get_otp_service(session: AsyncSession = Depends(get_session)) -> OTPService:
    return OTPService(session)

@router.post("/register", response_model=WorkerRegisteredResponse)
async def register_worker(
    payload: WorkerRegister,
    service: WorkerService = Depends(get_worker_service)
):
    worker = await service.register(payload)
    return WorkerRegisteredResponse(
        unique_id=worker.unique_worker_id,
        worker=WorkerResponse.model_validate(worker)
    )

@router.post("/login", response_model=WorkerLoginResponse)
async def login_worker(
    payload: WorkerLoginRequest,
    service: WorkerService = Depends(get_worker_service)
):
    worker = await service.login_with_id(payload.unique_worker_id, payload.aadhar_number)
    access_token = await issue_session_token(str(worker.id), "worker")
    return WorkerLoginResponse(
        worker=WorkerResponse.model_validate(worker),
        access_token=access_token
    )

@router.post("/otp/request", response_model=OTPIssuedResponse)
async def request_otp(
    payload: OTPRequest,
    service: OTPService = Depends(get_otp_service)
):
    otp = await service.issue_otp(payload)
    return OTPIssuedResponse(
        message="OTP sent successfully",
        otp=otp if settings.OTP_DEV_ECHO else None
    )

@router.post("/otp/verify", response_model=OTPVerifiedResponse)
async def verify_otp(
    payload: OTPVerify,
    service: OTPService = Depends(get_otp_service)
):
    worker = await service.verify_otp(payload)
    access_token = await issue_session_token(str(worker.id), "worker")
    return OTPVerifiedResponse(
        worker=WorkerResponse.model_validate(worker),
        access_token=access_token
    )

@router.get("/me", response_model=WorkerResponse)
async def read_current_worker(worker: Worker = Depends(get_current_worker)):
    return worker

@router.get("/me/history", response_model=HealthHistoryResponse)
async def read_health_history(
    worker: Worker = Depends(get_current_worker),
    service: WorkerService = Depends(get_worker_service)
):
    return await service.get_health_history(worker)

@router.get("/me/documents/{document_id}")
async def download_document(
    document_id: UUID,
    worker: Worker = Depends(get_current_worker),
    service: WorkerService = Depends(get_worker_service),
    storage: StorageService = Depends(get_storage_service)
):
    document = await service.get_document(worker, document_id)
    content = await storage.download(document.file_path)
    return Response(
        content=content,
        media_type=document.file_type,
        headers={"Content-Disposition": content_disposition(document.file_name)}
    )
