from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from garden_logbook.schemas.common import reject_null
from garden_logbook.schemas.plant import GrowthStage

# Types a user may write; WEATHER_ALERT, MAINTENANCE_TASK and CHANGE_LOG come from the system
UserLogType = Literal[
    "GENERAL", "WATERING", "FEEDING", "PRUNING", "TRAINING", "TRANSPLANT", "HARVEST",
    "INSPECTION", "PEST_DISEASE", "TREATMENT", "ENVIRONMENTAL", "GERMINATION", "CLONING",
    "FLUSHING", "DEFOLIATION", "STRESS", "CUSTOM",
]


class LogCreate(BaseModel):
    log_type: UserLogType = "GENERAL"
    garden_id: Optional[int] = None
    room_id: Optional[int] = None
    zone_id: Optional[int] = None
    plant_id: Optional[int] = None
    equipment_id: Optional[int] = None
    stage: Optional[GrowthStage] = None
    notes: Optional[str] = None
    log_date: Optional[datetime] = None
    image_urls: Optional[list[str]] = None

    temperature: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    vpd: Optional[float] = None
    co2: Optional[float] = Field(default=None, ge=0)

    water_amount: Optional[float] = Field(default=None, ge=0)
    water_unit: Optional[str] = None
    water_ph: Optional[float] = Field(default=None, ge=0, le=14)
    water_ppm: Optional[float] = Field(default=None, ge=0)

    data: Optional[dict] = None


class LogUpdate(BaseModel):
    log_type: Optional[UserLogType] = None
    stage: Optional[GrowthStage] = None
    notes: Optional[str] = None
    log_date: Optional[datetime] = None
    image_urls: Optional[list[str]] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    vpd: Optional[float] = None
    co2: Optional[float] = Field(default=None, ge=0)
    water_amount: Optional[float] = Field(default=None, ge=0)
    water_unit: Optional[str] = None
    water_ph: Optional[float] = Field(default=None, ge=0, le=14)
    water_ppm: Optional[float] = Field(default=None, ge=0)
    data: Optional[dict] = None

    @field_validator("log_type", "log_date")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class LogRead(BaseModel):
    id: int
    user_id: int
    garden_id: Optional[int]
    room_id: Optional[int]
    zone_id: Optional[int]
    plant_id: Optional[int]
    equipment_id: Optional[int]
    log_type: str
    stage: Optional[str]
    notes: Optional[str]
    log_date: datetime
    image_urls: Optional[list[str]]
    temperature: Optional[float]
    humidity: Optional[float]
    vpd: Optional[float]
    co2: Optional[float]
    water_amount: Optional[float]
    water_unit: Optional[str]
    water_ph: Optional[float]
    water_ppm: Optional[float]
    data: Optional[dict]
    created_at: datetime

    model_config = {"from_attributes": True}


class LogDeleteResult(BaseModel):
    deleted: int


class CalendarNoteCreate(BaseModel):
    note_date: date
    note: str = Field(min_length=1)
    garden_id: Optional[int] = None
    room_id: Optional[int] = None
    zone_id: Optional[int] = None
    is_private: bool = False


class CalendarNoteRead(BaseModel):
    id: int
    user_id: int
    garden_id: Optional[int]
    room_id: Optional[int]
    zone_id: Optional[int]
    note_date: date
    note: str
    is_private: bool
    created_at: datetime

    model_config = {"from_attributes": True}
