from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from garden_logbook.schemas.common import reject_null

WeatherAlertSource = Literal["WEATHER_API", "SENSORS", "BOTH"]


class RoomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    room_type: Optional[str] = None
    width: Optional[float] = Field(default=None, ge=0)
    length: Optional[float] = Field(default=None, ge=0)
    height: Optional[float] = Field(default=None, ge=0)


class RoomUpdate(RoomCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class RoomRead(BaseModel):
    id: int
    garden_id: int
    creator_id: Optional[int]
    name: str
    description: Optional[str]
    room_type: Optional[str]
    width: Optional[float]
    length: Optional[float]
    height: Optional[float]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ZoneThresholdUpdate(BaseModel):
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    humidity_min: Optional[float] = Field(default=None, ge=0, le=100)
    humidity_max: Optional[float] = Field(default=None, ge=0, le=100)
    weather_alert_source: Optional[WeatherAlertSource] = None

    @field_validator("weather_alert_source")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ZoneCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    zone_type: Optional[str] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    humidity_min: Optional[float] = Field(default=None, ge=0, le=100)
    humidity_max: Optional[float] = Field(default=None, ge=0, le=100)
    weather_alert_source: WeatherAlertSource = "WEATHER_API"


class ZoneUpdate(ZoneCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    weather_alert_source: Optional[WeatherAlertSource] = None

    @field_validator("name", "weather_alert_source")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ZoneRead(BaseModel):
    id: int
    room_id: int
    creator_id: Optional[int]
    name: str
    description: Optional[str]
    zone_type: Optional[str]
    temp_min: Optional[float]
    temp_max: Optional[float]
    humidity_min: Optional[float]
    humidity_max: Optional[float]
    weather_alert_source: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
