from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import func, select

from swasthya.core.logger import logger
from swasthya.core.redis import redis_client
from swasthya.db.models import MedicalDocument, MedicalRecord, Worker
from swasthya.schemas.portal import DistrictCount, PortalStats
from swasthya.services.ai_service import AIService
from swasthya.services.sync_service import SyncService

class PortalService:
    def __init__(self, session: AsyncSession, ai_service: AIService):
        self.session = session
        self.ai_service = ai_service

    async def _count(self, model) -> int:
        result = await self.session.execute(select(func.count()).select_from(model))
        return result.scalar() or 0

    async def get_stats(self) -> PortalStats:
        workers = await self._count(Worker)
        records = await self._count(MedicalRecord)
        documents = await self._count(MedicalDocument)
        health_tracking = await self.ai_service.health_tracking_percentage(workers, records, documents)
        logger.info("Portal stats retrieved")
        return PortalStats(
            total_workers=workers,
            total_records=records,
            total_documents=documents,
            health_tracking=health_tracking,
        )

    async def get_district_counts(self) -> List[DistrictCount]:
        worker_count = func.count(Worker.id).label("worker_count")
        stmt = (
            select(Worker.district, worker_count)
            .where(Worker.district.is_not(None))
            .group_by(Worker.district)
            .order_by(worker_count.desc(), Worker.district)
        )
        result = await self.session.execute(stmt)
        return [
            DistrictCount(district=district, worker_count=count)
            for district, count in result.all()
        ]

    async def get_district_health(self) -> dict:
        cached = await redis_client.get_district_data()
        if cached is not None:
            return cached
        return await SyncService.aggregate(self.session)
