"""Pydantic models for region endpoints."""
from typing import Optional

from pydantic import BaseModel, Field

from .common import SQLITE_MAX_INT


class RegionCreate(BaseModel):
    """Body of POST /regions."""

    name: str = Field(..., min_length=2, max_length=100)
    code: str = Field(..., min_length=2, max_length=10)
    population: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    area_km2: float = Field(0, ge=0)
    capital: Optional[str] = Field(None, max_length=100)


class RegionUpdate(BaseModel):
    """Body of PUT /regions/{id}. Only supplied fields change."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    code: Optional[str] = Field(None, min_length=2, max_length=10)
    population: Optional[int] = Field(None, ge=0, le=SQLITE_MAX_INT)
    area_km2: Optional[float] = Field(None, ge=0)
    capital: Optional[str] = Field(None, max_length=100)


class RegionRecord(BaseModel):
    """Region row as listed; stats fields appear only when requested."""

    id: int
    name: str
    code: str
    population: Optional[int] = 0
    area_km2: Optional[float] = 0
    capital: Optional[str] = None
    municipality_count: int = 0
    total_cases: Optional[int] = None
    active_cases: Optional[int] = None
    deaths: Optional[int] = None
    recovered: Optional[int] = None
    total_doses: Optional[int] = None
    people_vaccinated: Optional[int] = None
    hospital_count: Optional[int] = None
    total_beds: Optional[int] = None
    cases_per_100k: Optional[float] = None
    vaccination_rate: Optional[str] = None


class RegionDetail(BaseModel):
    """Region with latest-day stats and derived rates."""

    id: int
    name: str
    code: str
    population: Optional[int] = 0
    area_km2: Optional[float] = 0
    capital: Optional[str] = None
    municipality_count: int = 0
    total_cases: int = 0
    active_cases: int = 0
    deaths: int = 0
    recovered: int = 0
    hospitalized: int = 0
    hospital_count: int = 0
    total_beds: int = 0
    covid_beds: int = 0
    icu_beds: int = 0
    total_doses: int = 0
    people_vaccinated: int = 0
    people_fully_vaccinated: int = 0
    latest_case_date: Optional[str] = None
    population_density: float = 0
    case_fatality_rate: str = "0.00"
    recovery_rate: str = "0.00"
    vaccination_rate: str = "0.00"
    hospital_bed_ratio: float = Field(0, description="Beds per 1000 inhabitants")


class RegionListResponse(BaseModel):
    success: bool = True
    data: list[RegionRecord]
    total: int


class RegionDetailResponse(BaseModel):
    success: bool = True
    data: RegionDetail
