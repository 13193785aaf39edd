from typing import Optional
from uuid import UUID

from fastapi import BackgroundTasks, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from swasthya.core.config import settings
from swasthya.core.logger import logger
from swasthya.core.utils import utcnow
from swasthya.db.models import Appointment, AppointmentStatus, Doctor, MedicalDocument, MedicalRecord, Worker
from swasthya.schemas.record import (
    AppointmentResponse,
    EncounterCreate,
    EncounterCreatedResponse,
    MedicalDocumentResponse,
    MedicalRecordResponse,
)
from swasthya.services.storage_service import StorageService
from swasthya.services.sync_service import SyncService

def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None

class RecordService:
    """
    Adds a doctor's encounter for a worker together with the follow-up
    appointment and uploaded document that belong to it.

    The writes are committed one after another. When a later step fails the
    earlier rows stay in place and the caller gets an error for the whole
    operation.
    """

    def __init__(self, session: AsyncSession, storage: StorageService, sync_service: SyncService):
        self.session = session
        self.storage = storage
        self.sync_service = sync_service

    async def add_encounter(
        self,
        worker_id: UUID,
        doctor: Doctor,
        data: EncounterCreate,
        file: Optional[UploadFile] = None,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> EncounterCreatedResponse:
        diagnosis = _clean(data.diagnosis)
        if not diagnosis:
            raise HTTPException(status_code=400, detail="Diagnosis is required")

        worker = await self.session.get(Worker, worker_id)
        if not worker:
            raise HTTPException(status_code=404, detail="Worker not found")

        content = None
        if file is not None and file.filename:
            content = await file.read()
            if len(content) > settings.MAX_UPLOAD_BYTES:
                raise HTTPException(status_code=413, detail="File is too large")

        # 1. Encounter
        record = MedicalRecord(
            worker_id=worker.id,
            doctor_name=doctor.name,
            hospital_name=doctor.hospital_name,
            doctor_type=doctor.doctor_type,
            diagnosis=diagnosis,
            prescription=_clean(data.prescription),
            notes=_clean(data.notes),
            suggested_tests=_clean(data.suggested_tests),
            test_by_worker=_clean(data.test_by_worker),
            visit_date=data.visit_date or utcnow().date(),
            next_appointment_date=data.next_appointment_date,
        )
        self.session.add(record)
        await self.session.commit()
        await self.session.refresh(record)
        record_id = record.id
        logger.info(f"Medical record {record_id} added for worker {worker.unique_worker_id} by {doctor.unique_doctor_id}")

        response = EncounterCreatedResponse(record=MedicalRecordResponse.model_validate(record))

        try:
            # 2. Follow-up appointment
            if data.next_appointment_date:
                response.appointment = await self._schedule_appointment(worker, doctor, record, data)

            # 3. Document
            if content is not None:
                response.document = await self._attach_document(worker, doctor, record_id, file, content)
        except HTTPException:
            # The encounter is already saved. Background tasks are dropped
            # when the request fails, so sync it before reporting the error.
            if background_tasks is not None:
                await self.sync_service.notify(str(record_id))
            raise

        # 4. Dashboard sync runs after the response is sent
        if background_tasks is not None:
            background_tasks.add_task(self.sync_service.notify, str(record_id))

        return response

    async def _schedule_appointment(
        self, worker: Worker, doctor: Doctor, record: MedicalRecord, data: EncounterCreate
    ) -> AppointmentResponse:
        record_id = record.id
        appointment = Appointment(
            worker_id=worker.id,
            medical_record_id=record_id,
            doctor_name=doctor.name,
            appointment_date=data.next_appointment_date,
            appointment_time=data.next_appointment_time,
            status=AppointmentStatus.SCHEDULED,
            purpose=record.diagnosis,
            notes=record.notes,
        )
        try:
            self.session.add(appointment)
            await self.session.commit()
            await self.session.refresh(appointment)
        except Exception:
            await self.session.rollback()
            logger.exception(f"Appointment insert failed after record {record_id} was saved")
            raise HTTPException(status_code=500, detail="Failed to schedule appointment")
        return AppointmentResponse.model_validate(appointment)

    async def _attach_document(
        self, worker: Worker, doctor: Doctor, record_id: UUID, file: UploadFile, content: bytes
    ) -> MedicalDocumentResponse:
        file_path = self.storage.build_path(worker.unique_worker_id, file.filename)
        try:
            await self.storage.upload(file_path, content)
        except Exception:
            logger.exception(f"Upload of {file_path} failed after record {record_id} was saved")
            raise HTTPException(status_code=502, detail="Failed to upload document")

        document = MedicalDocument(
            worker_id=worker.id,
            medical_record_id=record_id,
            file_name=file.filename,
            file_path=file_path,
            file_type=file.content_type or "application/octet-stream",
            file_size=len(content),
            uploaded_by=doctor.name,
        )
        try:
            self.session.add(document)
            await self.session.commit()
            await self.session.refresh(document)
        except Exception:
            await self.session.rollback()
            logger.exception(f"Document row insert failed for {file_path}")
            raise HTTPException(status_code=500, detail="Failed to save document details")
        return MedicalDocumentResponse.model_validate(document)
