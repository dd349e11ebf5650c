"""
Driver Pydantic schemas.
"""
from typing import Optional

from pydantic import Field

from qgo_dispatch.models.enums import DriverStatus
from qgo_dispatch.schemas.base import BaseSchema, Location


class DriverBase(BaseSchema):
    """Base driver schema with common fields."""
    name: str = Field(..., min_length=1, max_length=100)
    vehicle_no: str = Field(..., min_length=1, max_length=20)
    phone: str = Field("", max_length=20)


class DriverCreate(DriverBase):
    """Schema for creating a new driver (the admin picks the id)."""
    id: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    password: Optional[str] = Field(None, min_length=1, max_length=72)
    status: DriverStatus = DriverStatus.OFFLINE


class DriverUpdate(BaseSchema):
    """Schema for updating a driver (all fields optional)."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    vehicle_no: Optional[str] = Field(None, min_length=1, max_length=20)
    phone: Optional[str] = Field(None, max_length=20)
    password: Optional[str] = Field(None, min_length=1, max_length=72)
    status: Optional[DriverStatus] = None


class Driver(DriverBase):
    """Driver document as stored in the ``drivers`` collection."""
    id: str
    password: Optional[str] = None
    status: DriverStatus = DriverStatus.OFFLINE
    last_known_location: Optional[Location] = None


class DriverResponse(DriverBase):
    """Schema for driver response (never carries the password)."""
    id: str
    status: DriverStatus
    last_known_location: Optional[Location] = None

    @classmethod
    def from_driver(cls, driver: Driver) -> "DriverResponse":
        return cls.model_validate(driver.model_dump(exclude={"password"}))


class DriverListResponse(BaseSchema):
    """Schema for list of drivers."""
    items: list[DriverResponse]
    total: int


class LocationUpdate(BaseSchema):
    """Position ping from a driver's device."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
