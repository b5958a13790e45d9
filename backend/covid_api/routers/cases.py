"""
API router for daily COVID-19 case records.

Thin router; queries and rates live in CaseService.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Path, Query

from ..models.cases import CaseCreate, CaseDetailResponse, CaseListResponse, LatestCaseResponse
from ..models.common import CreatedResponse, DataResponse
from ..services.case_service import case_service

router = APIRouter(prefix="/cases", tags=["cases"])


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@router.get("", response_model=CaseListResponse)
def list_cases(
    on_date: Optional[date] = Query(None, alias="date", description="Exact reporting date"),
    region_id: Optional[int] = Query(None, ge=1, description="Filter by region"),
    municipality_id: Optional[int] = Query(None, ge=1, description="Filter by municipality"),
    start_date: Optional[date] = Query(None, description="Range start (needs end_date)"),
    end_date: Optional[date] = Query(None, description="Range end (needs start_date)"),
    limit: int = Query(100, ge=1, le=1000, description="Page size"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
):
    """List case records, newest first."""
    result = case_service.list_cases(
        on_date=_iso(on_date),
        region_id=region_id,
        municipality_id=municipality_id,
        start_date=_iso(start_date),
        end_date=_iso(end_date),
        limit=limit,
        offset=offset,
    )
    return {"success": True, "data": result.data, "total": result.total, "pagination": result.pagination}


@router.get("/latest", response_model=LatestCaseResponse)
def latest_cases(region_id: Optional[int] = Query(None, ge=1)):
    """Most recent case record, optionally for one region."""
    return {"success": True, "data": case_service.latest(region_id)}


@router.get("/summary", response_model=DataResponse)
def case_summary(
    period: str = Query("all", pattern="^(daily|weekly|monthly|all)$", description="daily, weekly, monthly or all"),
):
    return {"success": True, "data": case_service.summary(period)}


@router.get("/trends", response_model=DataResponse)
def case_trends(days: int = Query(30, ge=7, le=365, description="Days of history")):
    """National daily series with 7-day moving averages."""
    return {"success": True, "data": case_service.trends(days)}


@router.get("/by-region", response_model=DataResponse)
def cases_by_region(on_date: Optional[date] = Query(None, alias="date")):
    return {"success": True, "data": case_service.by_region(_iso(on_date))}


@router.get("/{case_id:int}", response_model=CaseDetailResponse)
def get_case(case_id: int = Path(..., ge=1)):
    return {"success": True, "data": case_service.get_case(case_id)}


@router.post("", response_model=CreatedResponse, status_code=201)
def create_case(body: CaseCreate):
    """Create a daily record. deaths and recovered may not exceed total_cases."""
    created = case_service.create_case(body.model_dump())
    return {"success": True, "message": "Case record created successfully", "data": created}
