from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from swasthya.core.config import settings
from swasthya.core.logger import logger, mask_aadhar
from swasthya.core.utils import validate_aadhar_number, worker_id_candidates
from swasthya.db.models import Appointment, MedicalDocument, MedicalRecord, Worker
from swasthya.schemas.record import AppointmentResponse, MedicalDocumentResponse, MedicalRecordResponse
from swasthya.schemas.worker import WorkerRegister, HealthHistoryResponse, WorkerResponse

DUPLICATE_AADHAR = "Worker with this Aadhar number is already registered"
DUPLICATE_HEALTH_ID = "Generated health ID already exists. Please contact support."

class WorkerService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _find_one(self, *conditions) -> Worker | None:
        stmt = select(Worker).where(*conditions)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_mobile(self, mobile_number: str) -> Worker | None:
        return await self._find_one(Worker.mobile_number == mobile_number)

    async def get_by_unique_id(self, unique_worker_id: str) -> Worker:
        worker = await self._find_one(Worker.unique_worker_id == unique_worker_id.strip().upper())
        if not worker:
            raise HTTPException(status_code=404, detail="No patient found with this SwasthyaID")
        return worker

    async def get_worker(self, worker_id: UUID) -> Worker:
        worker = await self.session.get(Worker, worker_id)
        if not worker:
            raise HTTPException(status_code=404, detail="Worker not found")
        return worker

    async def _allocate_unique_id(self, name: str, aadhar_number: str) -> str:
        # Deterministic alternates keep registration going on a code collision
        for candidate in worker_id_candidates(name, aadhar_number, settings.WORKER_ID_ATTEMPTS):
            if not await self._find_one(Worker.unique_worker_id == candidate):
                return candidate
            logger.warning(f"Health ID {candidate} already taken, trying next candidate")
        raise HTTPException(status_code=409, detail=DUPLICATE_HEALTH_ID)

    async def register(self, data: WorkerRegister) -> Worker:
        logger.info(f"Registering worker with Aadhar {mask_aadhar(data.aadhar_number)}")
        try:
            validate_aadhar_number(data.aadhar_number)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        # 1. Aadhar must not be registered yet
        if await self._find_one(Worker.aadhar_number == data.aadhar_number):
            raise HTTPException(status_code=409, detail=DUPLICATE_AADHAR)

        # 2. Pick a free health ID
        unique_id = await self._allocate_unique_id(data.name, data.aadhar_number)

        # 3. Insert
        worker = Worker(
            unique_worker_id=unique_id,
            name=data.name.strip(),
            mobile_number=data.mobile_number.strip(),
            email=data.email.strip(),
            address=data.address.strip(),
            date_of_birth=data.date_of_birth,
            aadhar_number=data.aadhar_number,
            district=data.district.strip() if data.district else None,
        )
        self.session.add(worker)
        try:
            await self.session.commit()
        except IntegrityError:
            # A concurrent registration took the Aadhar number or the health ID
            await self.session.rollback()
            logger.warning(f"Registration conflict for health ID {unique_id}")
            if await self._find_one(Worker.aadhar_number == data.aadhar_number):
                raise HTTPException(status_code=409, detail=DUPLICATE_AADHAR)
            raise HTTPException(status_code=409, detail=DUPLICATE_HEALTH_ID)
        await self.session.refresh(worker)
        logger.info(f"Worker registered with health ID {unique_id}")
        return worker

    async def login_with_id(self, unique_worker_id: str, aadhar_number: str) -> Worker:
        worker = await self._find_one(
            Worker.unique_worker_id == unique_worker_id.strip().upper(),
            Worker.aadhar_number == aadhar_number.strip()
        )
        if not worker:
            raise HTTPException(
                status_code=401,
                detail="Invalid SwasthyaID or Aadhar number. Please check and try again."
            )
        return worker

    async def get_health_history(self, worker: Worker) -> HealthHistoryResponse:
        records = await self.session.execute(
            select(MedicalRecord)
            .where(MedicalRecord.worker_id == worker.id)
            .order_by(MedicalRecord.visit_date.desc(), MedicalRecord.created_at.desc())
        )
        documents = await self.session.execute(
            select(MedicalDocument)
            .where(MedicalDocument.worker_id == worker.id)
            .order_by(MedicalDocument.created_at.desc())
        )
        appointments = await self.session.execute(
            select(Appointment)
            .where(Appointment.worker_id == worker.id)
            .order_by(Appointment.appointment_date.desc())
        )
        return HealthHistoryResponse(
            worker=WorkerResponse.model_validate(worker),
            medical_records=[MedicalRecordResponse.model_validate(r) for r in records.scalars().all()],
            documents=[MedicalDocumentResponse.model_validate(d) for d in documents.scalars().all()],
            appointments=[AppointmentResponse.model_validate(a) for a in appointments.scalars().all()],
        )

    async def get_document(self, worker: Worker, document_id: UUID) -> MedicalDocument:
        document = await self.session.get(MedicalDocument, document_id)
        if not document or document.worker_id != worker.id:
            raise HTTPException(status_code=404, detail="Document not found")
        return document
