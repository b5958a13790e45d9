"""Pydantic models for daily case endpoints."""
from datetime import date as Date
from typing import Optional

from pydantic import BaseModel, Field

from .common import SQLITE_MAX_INT, PaginationMeta


class CaseCreate(BaseModel):
    """Body of POST /cases."""

    date: Date = Field(..., description="Reporting date (YYYY-MM-DD)")
    region_id: int = Field(..., ge=1, le=SQLITE_MAX_INT, description="Region ID")
    municipality_id: Optional[int] = Field(None, ge=1, le=SQLITE_MAX_INT, description="Municipality ID")
    total_cases: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    new_cases: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    deaths: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    new_deaths: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    recovered: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    new_recovered: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    hospitalized: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    icu_patients: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    ventilator_patients: int = Field(0, ge=0, le=SQLITE_MAX_INT)


class CaseRecord(BaseModel):
    """One (date, region) row with joined names."""

    id: int
    date: str
    region_id: Optional[int] = None
    region_name: Optional[str] = None
    region_code: Optional[str] = None
    municipality_id: Optional[int] = None
    municipality_name: Optional[str] = None
    total_cases: int = 0
    new_cases: int = 0
    active_cases: int = 0
    deaths: int = 0
    new_deaths: int = 0
    recovered: int = 0
    new_recovered: int = 0
    hospitalized: int = 0
    icu_patients: int = 0
    ventilator_patients: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CaseDetail(CaseRecord):
    """Case row with derived rates."""

    case_fatality_rate: str = Field(..., description="deaths / total_cases, percent")
    recovery_rate: str = Field(..., description="recovered / total_cases, percent")
    active_case_rate: str = Field(..., description="active_cases / total_cases, percent")


class CaseListResponse(BaseModel):
    success: bool = True
    data: list[CaseRecord]
    total: int
    pagination: PaginationMeta


class CaseDetailResponse(BaseModel):
    success: bool = True
    data: CaseDetail


class LatestCaseResponse(BaseModel):
    success: bool = True
    data: Optional[CaseRecord] = None
