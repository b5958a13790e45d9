"""
API router for regions and regional comparisons.
"""
from fastapi import APIRouter, Path, Query

from ..models.common import CreatedResponse, DataResponse
from ..models.regions import RegionCreate, RegionDetailResponse, RegionListResponse, RegionUpdate
from ..services.region_service import region_service

router = APIRouter(prefix="/regions", tags=["regions"])


@router.get("", response_model=RegionListResponse)
def list_regions(include_stats: bool = Query(False, description="Attach latest case, vaccination and hospital figures")):
    rows = region_service.list_regions(include_stats)
    return {"success": True, "data": rows, "total": len(rows)}


@router.get("/comparison", response_model=DataResponse)
def compare_regions(metric: str = Query("cases", pattern="^(cases|deaths|vaccination|recovery)$")):
    """Rank regions on one metric with highest, lowest, average and median."""
    return {"success": True, "data": region_service.comparison(metric)}


@router.get("/{region_id:int}", response_model=RegionDetailResponse)
def get_region(region_id: int = Path(..., ge=1)):
    return {"success": True, "data": region_service.get_region(region_id)}


@router.get("/{region_id:int}/municipalities", response_model=DataResponse)
def region_municipalities(region_id: int = Path(..., ge=1)):
    return {"success": True, "data": region_service.municipalities(region_id)}


@router.get("/{region_id:int}/trends", response_model=DataResponse)
def region_trends(region_id: int = Path(..., ge=1), days: int = Query(30, ge=7, le=90)):
    return {"success": True, "data": region_service.trends(region_id, days)}


@router.post("", response_model=CreatedResponse, status_code=201)
def create_region(body: RegionCreate):
    created = region_service.create_region(body.model_dump())
    return {"success": True, "message": "Region created successfully", "data": created}


@router.put("/{region_id:int}", response_model=CreatedResponse)
def update_region(body: RegionUpdate, region_id: int = Path(..., ge=1)):
    updated = region_service.update_region(region_id, body.model_dump(exclude_none=True))
    return {"success": True, "message": "Region updated successfully", "data": updated}
