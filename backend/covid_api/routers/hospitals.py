"""
API router for hospitals and bed capacity.
"""
from typing import Optional

from fastapi import APIRouter, Path, Query

from ..models.common import CreatedResponse, DataResponse
from ..models.hospitals import CapacityUpdate, HospitalCreate, HospitalDetailResponse, HospitalListResponse
from ..services.hospital_service import hospital_service

router = APIRouter(prefix="/hospitals", tags=["hospitals"])


@router.get("", response_model=HospitalListResponse)
def list_hospitals(
    region_id: Optional[int] = Query(None, ge=1),
    is_covid_hospital: Optional[bool] = Query(None),
    has_capacity: Optional[bool] = Query(None, description="Only hospitals with (true) or without (false) free beds"),
):
    rows = hospital_service.list_hospitals(
        region_id=region_id, is_covid_hospital=is_covid_hospital, has_capacity=has_capacity
    )
    return {"success": True, "data": rows, "total": len(rows)}


@router.get("/capacity", response_model=DataResponse)
def hospital_capacity():
    """National bed, ICU and ventilator capacity with utilization."""
    return {"success": True, "data": hospital_service.capacity()}


@router.get("/by-region", response_model=DataResponse)
def hospitals_by_region():
    return {"success": True, "data": hospital_service.by_region()}


@router.get("/{hospital_id:int}", response_model=HospitalDetailResponse)
def get_hospital(hospital_id: int = Path(..., ge=1)):
    return {"success": True, "data": hospital_service.get_hospital(hospital_id)}


@router.post("", response_model=CreatedResponse, status_code=201)
def create_hospital(body: HospitalCreate):
    created = hospital_service.create_hospital(body.model_dump())
    return {"success": True, "message": "Hospital created successfully", "data": created}


@router.put("/{hospital_id:int}/capacity", response_model=HospitalDetailResponse)
def update_hospital_capacity(body: CapacityUpdate, hospital_id: int = Path(..., ge=1)):
    """Update occupied counters; each must stay within capacity."""
    updated = hospital_service.update_capacity(hospital_id, body.model_dump(exclude_none=True))
    return {"success": True, "data": updated}
