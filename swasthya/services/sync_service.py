from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from swasthya.core.logger import logger
from swasthya.core.redis import redis_client
from swasthya.core.utils import DoctorType
from swasthya.db.models import MedicalRecord, Worker

class SyncService:
    """
    Keeps the government portal's per-district aggregate in Redis up to date.

    Every run recomputes the aggregate from scratch, so a notification that
    is delivered twice does no harm. Record ids stay in the pending set until
    a run that saw them succeeds.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def notify(self, record_id: str):
        try:
            await redis_client.add_pending_sync(record_id)
            await self.sync_health_data()
        except Exception:
            logger.exception(f"Health data sync failed for record {record_id}")

    async def sync_health_data(self) -> Dict[str, dict]:
        pending = await redis_client.get_pending_sync()
        async with self.session_factory() as session:
            district_data = await self.aggregate(session)
        await redis_client.set_district_data(district_data)
        await redis_client.remove_pending_sync(pending)
        logger.info(f"Health data synced for {len(district_data)} districts ({len(pending)} pending records)")
        return district_data

    @staticmethod
    async def aggregate(session: AsyncSession) -> Dict[str, dict]:
        stmt = select(Worker.id, Worker.district).where(Worker.district.is_not(None))
        workers = (await session.execute(stmt)).all()

        district_data: Dict[str, dict] = {}
        district_by_worker = {}
        for worker_id, district in workers:
            district_by_worker[worker_id] = district
            data = district_data.setdefault(district, {
                "total_workers": 0,
                "total_records": 0,
                "government_visits": 0,
                "private_visits": 0,
                "recent_diagnoses": [],
            })
            data["total_workers"] += 1

        if not district_by_worker:
            return district_data

        stmt = select(MedicalRecord).where(
            MedicalRecord.worker_id.in_(list(district_by_worker))
        ).order_by(MedicalRecord.visit_date.desc())
        records = (await session.execute(stmt)).scalars().all()

        for record in records:
            data = district_data[district_by_worker[record.worker_id]]
            data["total_records"] += 1
            if record.doctor_type == DoctorType.GOVERNMENT:
                data["government_visits"] += 1
            else:
                data["private_visits"] += 1
            if record.diagnosis:
                data["recent_diagnoses"].append({
                    "diagnosis": record.diagnosis,
                    "date": record.visit_date.isoformat() if record.visit_date else None,
                })

        return district_data
