from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from garden_logbook.schemas.common import reject_null


class ApiKeyUpdate(BaseModel):
    api_key: str = Field(min_length=1)


class DeviceLink(BaseModel):
    device_id: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    name: Optional[str] = None
    zone_id: Optional[int] = None
    plant_id: Optional[int] = None


class DeviceUnlink(BaseModel):
    device_id: str = Field(min_length=1)


class DeviceThresholdUpdate(BaseModel):
    name: Optional[str] = None
    zone_id: Optional[int] = None
    min_temp: Optional[float] = None
    max_temp: Optional[float] = None
    min_humidity: Optional[float] = Field(default=None, ge=0, le=100)
    max_humidity: Optional[float] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class GoveeDeviceRead(BaseModel):
    id: int
    user_id: int
    zone_id: Optional[int]
    plant_id: Optional[int]
    device_id: str
    sku: str
    name: str
    min_temp: Optional[float]
    max_temp: Optional[float]
    min_humidity: Optional[float]
    max_humidity: Optional[float]
    is_active: bool
    is_online: bool
    battery_level: Optional[int]
    last_state_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class DiscoveredDevice(BaseModel):
    device_id: str
    sku: str
    name: str
    linked: bool = False


class GoveeReadingRead(BaseModel):
    id: int
    device_id: int
    timestamp: datetime
    temperature: Optional[float]
    humidity: Optional[float]
    vpd: Optional[float]
    battery_level: Optional[int]
    source: str

    model_config = {"from_attributes": True}


class LatestReading(BaseModel):
    device: GoveeDeviceRead
    reading: Optional[GoveeReadingRead] = None
    vpd_status: Optional[dict] = None


class ManualReadingCreate(BaseModel):
    temperature: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    unit: Literal["C", "F"] = "C"
