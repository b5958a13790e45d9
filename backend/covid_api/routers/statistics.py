"""
API router for national statistics and comparisons.
"""
from fastapi import APIRouter, Query

from ..middleware.error_handler import ValidationFailedError
from ..models.common import DataResponse
from ..services.statistics_service import statistics_service

router = APIRouter(prefix="/statistics", tags=["statistics"])


@router.get("/overview", response_model=DataResponse)
def overview():
    """Latest cases, vaccination, hospital capacity, testing and population."""
    return {"success": True, "data": statistics_service.overview()}


@router.get("/trends", response_model=DataResponse)
def trends(period: int = Query(30, description="7, 14, 30 or 90 days")):
    if period not in (7, 14, 30, 90):
        raise ValidationFailedError("Validation failed", details=["period must be one of 7, 14, 30, 90"])
    return {"success": True, "data": statistics_service.trends(period)}


@router.get("/regional", response_model=DataResponse)
def regional():
    return {"success": True, "data": statistics_service.regional()}


@router.get("/demographics", response_model=DataResponse)
def demographics():
    return {"success": True, "data": statistics_service.demographics()}


@router.get("/comparison", response_model=DataResponse)
def comparison(compare_days: int = Query(7, ge=7, le=90)):
    """Current window against the preceding window of equal length."""
    return {"success": True, "data": statistics_service.comparison(compare_days)}
