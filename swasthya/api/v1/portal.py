from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from swasthya.api.deps import get_ai_service, get_sync_service
from swasthya.db.session import get_session
from swasthya.schemas.portal import DistrictCount, DistrictHealthResponse, PortalStatsResponse
from swasthya.services.ai_service import AIService
from swasthya.services.portal_service import PortalService
from swasthya.services.sync_service import SyncService

router = APIRouter()

async def get_portal_service(
    session: AsyncSession = Depends(get_session),
    ai_service: AIService = Depends(get_ai_service)
) -> PortalService:
    return PortalService(session, ai_service)

@router.get("/stats", response_model=PortalStatsResponse)
async def read_portal_stats(service: PortalService = Depends(get_portal_service)):
    return PortalStatsResponse(stats=await service.get_stats())

@router.get("/districts", response_model=List[DistrictCount])
async def read_district_counts(service: PortalService = Depends(get_portal_service)):
    return await service.get_district_counts()

@router.get("/district-health", response_model=DistrictHealthResponse)
async def read_district_health(service: PortalService = Depends(get_portal_service)):
    return DistrictHealthResponse(
        district_data=await service.get_district_health(),
        message="Health data retrieved successfully"
    )

@router.post("/sync", response_model=DistrictHealthResponse)
async def sync_health_data(sync_service: SyncService = Depends(get_sync_service)):
    return DistrictHealthResponse(district_data=await sync_service.sync_health_data())
