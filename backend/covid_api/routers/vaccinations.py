"""
API router for vaccination records and coverage.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from ..models.common import CreatedResponse, DataResponse
from ..models.vaccinations import VaccinationCreate, VaccinationListResponse
from ..services.vaccination_service import vaccination_service

router = APIRouter(prefix="/vaccinations", tags=["vaccinations"])


@router.get("", response_model=VaccinationListResponse)
def list_vaccinations(
    on_date: Optional[date] = Query(None, alias="date"),
    region_id: Optional[int] = Query(None, ge=1),
    vaccine_type: Optional[str] = Query(None, max_length=50),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    result = vaccination_service.list_vaccinations(
        on_date=on_date.isoformat() if on_date else None,
        region_id=region_id,
        vaccine_type=vaccine_type,
        limit=limit,
        offset=offset,
    )
    return {"success": True, "data": result.data, "total": result.total, "pagination": result.pagination}


@router.get("/summary", response_model=DataResponse)
def vaccination_summary():
    """Dose totals, people vaccinated, national rates and per-vaccine breakdown."""
    return {"success": True, "data": vaccination_service.summary()}


@router.get("/progress", response_model=DataResponse)
def vaccination_progress(days: int = Query(30, ge=7, le=365)):
    return {"success": True, "data": vaccination_service.progress(days)}


@router.get("/by-region", response_model=DataResponse)
def vaccinations_by_region():
    return {"success": True, "data": vaccination_service.by_region()}


@router.get("/types", response_model=DataResponse)
def vaccine_types():
    return {"success": True, "data": vaccination_service.vaccine_types()}


@router.get("/coverage", response_model=DataResponse)
def vaccination_coverage():
    """National and per-region partial/full coverage."""
    return {"success": True, "data": vaccination_service.coverage()}


@router.post("", response_model=CreatedResponse, status_code=201)
def record_vaccination(body: VaccinationCreate):
    """Insert or accumulate doses for (date, region, vaccine_type)."""
    row = vaccination_service.record_vaccination(body.model_dump())
    return {"success": True, "message": "Vaccination data recorded successfully", "data": row}
