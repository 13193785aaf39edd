from pydantic import BaseModel, Field
from typing import Dict, List, Optional

class PortalStats(BaseModel):
    total_workers: int
    total_records: int
    total_documents: int
    health_tracking: int

class PortalStatsResponse(BaseModel):
    success: bool = True
    stats: PortalStats

class DistrictCount(BaseModel):
    district: str
    worker_count: int

class RecentDiagnosis(BaseModel):
    diagnosis: str
    date: Optional[str] = None

class DistrictHealth(BaseModel):
    total_workers: int = 0
    total_records: int = 0
    government_visits: int = 0
    private_visits: int = 0
    recent_diagnoses: List[RecentDiagnosis] = Field(default_factory=list)

class DistrictHealthResponse(BaseModel):
    success: bool = True
    district_data: Dict[str, DistrictHealth]
    message: str = "Health data synced successfully"
