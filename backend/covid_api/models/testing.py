"""Pydantic models for testing endpoints."""
from datetime import date as Date
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .common import SQLITE_MAX_INT


class TestingCenterCreate(BaseModel):
    """Body of POST /testing/centers."""

    name: str = Field(..., min_length=2, max_length=200)
    region_id: int = Field(..., ge=1, le=SQLITE_MAX_INT)
    municipality_id: Optional[int] = Field(None, ge=1, le=SQLITE_MAX_INT)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    test_types: Optional[str] = Field(None, description="Comma separated, e.g. 'PCR, Antigen'")
    operating_hours: Optional[str] = Field(None, max_length=100)
    is_active: bool = True
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class TestingDataCreate(BaseModel):
    """Body of POST /testing/data. Counters accumulate per (date, region, center)."""

    date: Date
    region_id: int = Field(..., ge=1, le=SQLITE_MAX_INT)
    testing_center_id: int = Field(..., ge=1, le=SQLITE_MAX_INT)
    municipality_id: Optional[int] = Field(None, ge=1, le=SQLITE_MAX_INT)
    total_tests: Optional[int] = Field(None, ge=0, le=SQLITE_MAX_INT, description="Defaults to pcr_tests + antigen_tests")
    pcr_tests: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    antigen_tests: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    positive_tests: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    negative_tests: int = Field(0, ge=0, le=SQLITE_MAX_INT)
    pending_tests: int = Field(0, ge=0, le=SQLITE_MAX_INT)


class TestingCenterRecord(BaseModel):
    id: int
    name: str
    region_id: Optional[int] = None
    region_name: Optional[str] = None
    municipality_id: Optional[int] = None
    municipality_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    test_types: Optional[str] = None
    operating_hours: Optional[str] = None
    is_active: bool = True
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    total_tests: int = 0
    positive_tests: int = 0
    avg_positivity_rate: float = 0


class TestingDataRecord(BaseModel):
    id: int
    date: str
    region_id: Optional[int] = None
    region_name: Optional[str] = None
    testing_center_id: Optional[int] = None
    center_name: Optional[str] = None
    total_tests: int = 0
    pcr_tests: int = 0
    antigen_tests: int = 0
    positive_tests: int = 0
    negative_tests: int = 0
    pending_tests: int = 0
    positivity_rate: float = 0


class TestingCenterListResponse(BaseModel):
    success: bool = True
    data: list[TestingCenterRecord]
    total: int


class TestingDataListResponse(BaseModel):
    success: bool = True
    data: list[TestingDataRecord]
    total: int
