from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from garden_logbook.schemas.common import reject_null

WeatherNotificationPeriod = Literal["current", "24h", "3d", "week", "all"]


class UserCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: Optional[str] = None
    email: EmailStr
    password: str = Field(min_length=1)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = None
    timezone: Optional[str] = None
    zip_code: Optional[str] = None
    weather_notification_period: Optional[WeatherNotificationPeriod] = None

    @field_validator("first_name", "weather_notification_period")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class UserRead(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str]
    email: str
    role: str
    is_active: bool
    timezone: Optional[str]
    zip_code: Optional[str]
    weather_notification_period: str
    has_govee_api_key: bool = False
    created_at: datetime
    last_login: Optional[datetime]

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str]
    email: str

    model_config = {"from_attributes": True}
