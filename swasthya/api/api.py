from fastapi import APIRouter
from swasthya.api.v1 import ai, doctors, portal, records, workers

api_router = APIRouter()

api_router.include_router(workers.router, prefix="/workers", tags=["workers"])
api_router.include_router(doctors.router, prefix="/doctors", tags=["doctors"])
api_router.include_router(records.router, prefix="/records", tags=["records"])
api_router.include_router(ai.router, prefix="/ai", tags=["ai"])
api_router.include_router(portal.router, prefix="/portal", tags=["portal"])
