"""
API router for testing centers and testing results.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from ..models.common import CreatedResponse, DataResponse
from ..models.testing import (
    TestingCenterCreate,
    TestingCenterListResponse,
    TestingDataCreate,
    TestingDataListResponse,
)
from ..services.testing_service import testing_service

router = APIRouter(prefix="/testing", tags=["testing"])


@router.get("/centers", response_model=TestingCenterListResponse)
def list_centers(
    region_id: Optional[int] = Query(None, ge=1),
    is_active: Optional[bool] = Query(None),
    test_type: Optional[str] = Query(None, max_length=50, description="Substring of test_types, e.g. PCR"),
):
    rows = testing_service.list_centers(region_id=region_id, is_active=is_active, test_type=test_type)
    return {"success": True, "data": rows, "total": len(rows)}


@router.get("/data", response_model=TestingDataListResponse)
def list_testing_data(
    on_date: Optional[date] = Query(None, alias="date"),
    region_id: Optional[int] = Query(None, ge=1),
    testing_center_id: Optional[int] = Query(None, ge=1),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    result = testing_service.list_data(
        on_date=on_date.isoformat() if on_date else None,
        region_id=region_id,
        testing_center_id=testing_center_id,
        start_date=start_date.isoformat() if start_date else None,
        end_date=end_date.isoformat() if end_date else None,
        limit=limit,
        offset=offset,
    )
    return {"success": True, "data": result.data, "total": result.total}


@router.get("/summary", response_model=DataResponse)
def testing_summary(period: str = Query("all", pattern="^(daily|weekly|monthly|all)$")):
    return {"success": True, "data": testing_service.summary(period)}


@router.get("/positivity-trends", response_model=DataResponse)
def positivity_trends(days: int = Query(30, ge=7, le=90)):
    return {"success": True, "data": testing_service.positivity_trends(days)}


@router.post("/centers", response_model=CreatedResponse, status_code=201)
def create_center(body: TestingCenterCreate):
    created = testing_service.create_center(body.model_dump())
    return {"success": True, "message": "Testing center created successfully", "data": created}


@router.post("/data", response_model=CreatedResponse, status_code=201)
def record_testing_data(body: TestingDataCreate):
    """Insert or accumulate counters for (date, region, center)."""
    row = testing_service.record_testing_data(body.model_dump())
    return {"success": True, "message": "Testing data recorded successfully", "data": row}
