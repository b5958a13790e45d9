"""Pydantic models for hospital endpoints."""
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .common import SQLITE_MAX_INT


class HospitalCreate(BaseModel):
    """Body of POST /hospitals."""

    name: str = Field(..., min_length=2, max_length=200)
    region_id: int = Field(..., ge=1, le=SQLITE_MAX_INT)
    municipality_id: Optional[int] = Field(None, ge=1, le=SQLITE_MAX_INT)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    total_beds: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    covid_beds: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    icu_beds: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    ventilators: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    is_covid_hospital: bool = False
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class CapacityUpdate(BaseModel):
    """Body of PUT /hospitals/{id}/capacity. Only supplied counters change."""

    occupied_beds: Optional[int] = Field(None, ge=0, le=SQLITE_MAX_INT)
    occupied_covid_beds: Optional[int] = Field(None, ge=0, le=SQLITE_MAX_INT)
    occupied_icu_beds: Optional[int] = Field(None, ge=0, le=SQLITE_MAX_INT)
    occupied_ventilators: Optional[int] = Field(None, ge=0, le=SQLITE_MAX_INT)


class HospitalRecord(BaseModel):
    """Hospital with availability and occupancy rates."""

    id: int
    name: str
    region_id: Optional[int] = None
    region_name: Optional[str] = None
    municipality_id: Optional[int] = None
    municipality_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    total_beds: int = 0
    covid_beds: int = 0
    icu_beds: int = 0
    ventilators: int = 0
    occupied_beds: int = 0
    occupied_covid_beds: int = 0
    occupied_icu_beds: int = 0
    occupied_ventilators: int = 0
    available_beds: int = 0
    available_covid_beds: int = 0
    available_icu_beds: int = 0
    available_ventilators: int = 0
    occupancy_rate: str = "0.00"
    covid_occupancy_rate: str = "0.00"
    icu_occupancy_rate: str = "0.00"
    is_covid_hospital: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    updated_at: Optional[str] = None


class HospitalListResponse(BaseModel):
    success: bool = True
    data: list[HospitalRecord]
    total: int


class HospitalDetailResponse(BaseModel):
    success: bool = True
    data: HospitalRecord
