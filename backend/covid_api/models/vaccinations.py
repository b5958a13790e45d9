"""Pydantic models for vaccination endpoints."""
from datetime import date as Date
from typing import Optional

from pydantic import BaseModel, Field

from .common import SQLITE_MAX_INT, PaginationMeta


class VaccinationCreate(BaseModel):
    """Body of POST /vaccinations. Doses accumulate per (date, region, vaccine_type)."""

    date: Date
    region_id: int = Field(..., ge=1, le=SQLITE_MAX_INT)
    municipality_id: Optional[int] = Field(None, ge=1, le=SQLITE_MAX_INT)
    vaccine_type: Optional[str] = Field(None, min_length=1, max_length=50)
    first_dose: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    second_dose: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    booster_dose: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    people_vaccinated: int = Field(0, ge=0, le=SQLITE_MAX_INT, description="Cumulative people with at least one dose")
    people_fully_vaccinated: int = Field(0, ge=0, le=SQLITE_MAX_INT, description="Cumulative fully vaccinated people")


class VaccinationRecord(BaseModel):
    """One vaccination row with rates against the region population."""

    id: int
    date: str
    region_id: Optional[int] = None
    region_name: Optional[str] = None
    population: Optional[int] = None
    municipality_id: Optional[int] = None
    municipality_name: Optional[str] = None
    vaccine_type: str
    first_dose: int = 0
    second_dose: int = 0
    booster_dose: int = 0
    total_doses: int = 0
    people_vaccinated: int = 0
    people_fully_vaccinated: int = 0
    vaccination_rate: str = "0.00"
    full_vaccination_rate: str = "0.00"


class VaccinationListResponse(BaseModel):
    success: bool = True
    data: list[VaccinationRecord]
    total: int
    pagination: PaginationMeta
