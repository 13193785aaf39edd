from datetime import date, time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from swasthya.api.deps import get_current_doctor, get_storage_service, get_sync_service
from swasthya.db.models import Doctor
from swasthya.db.session import get_session
from swasthya.schemas.record import EncounterCreate, EncounterCreatedResponse
from swasthya.services.record_service import RecordService
from swasthya.services.storage_service import StorageService
from swasthya.services.sync_service import SyncService

router = APIRouter()

async def get_record_service(
    session: AsyncSession = Depends(get_session),
    storage: StorageService = Depends(get_storage_service),
    sync_service: SyncService = Depends(get_sync_service)
) -> RecordService:
    return RecordService(session, storage, sync_service)

@router.post("/", response_model=EncounterCreatedResponse)
async def add_medical_record(
    background_tasks: BackgroundTasks,
    worker_id: UUID = Form(...),
    diagnosis: str = Form(""),
    prescription: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    suggested_tests: Optional[str] = Form(None),
    test_by_worker: Optional[str] = Form(None),
    visit_date: Optional[date] = Form(None),
    next_appointment_date: Optional[date] = Form(None),
    next_appointment_time: Optional[time] = Form(None),
    file: Optional[UploadFile] = File(None),
    doctor: Doctor = Depends(get_current_doctor),
    service: RecordService = Depends(get_record_service)
):
    data = EncounterCreate(
        diagnosis=diagnosis,
        prescription=prescription,
        notes=notes,
        suggested_tests=suggested_tests,
        test_by_worker=test_by_worker,
        visit_date=visit_date,
        next_appointment_date=next_appointment_date,
        next_appointment_time=next_appointment_time,
    )
    return await service.add_encounter(worker_id, doctor, data, file, background_tasks)
