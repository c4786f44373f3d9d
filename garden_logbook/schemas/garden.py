from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from garden_logbook.schemas.common import reject_null
from garden_logbook.schemas.user import UserSummary

Permission = Literal["VIEW", "EDIT", "DELETE", "INVITE", "MANAGE"]


class GardenCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    is_private: bool = True
    image_url: Optional[str] = None
    zipcode: Optional[str] = None
    timezone: Optional[str] = None


class GardenUpdate(GardenCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    is_private: Optional[bool] = None

    @field_validator("name", "is_private")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class GardenRead(BaseModel):
    id: int
    creator_id: int
    name: str
    description: Optional[str]
    is_private: bool
    image_url: Optional[str]
    zipcode: Optional[str]
    timezone: Optional[str]
    weather_status: Optional[dict]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GardenMemberRead(BaseModel):
    id: int
    garden_id: int
    user_id: int
    permissions: list[str]
    added_by_id: Optional[int]
    user: Optional[UserSummary] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class GardenMemberUpdate(BaseModel):
    permissions: list[Permission] = Field(min_length=1)


class GardenDetail(GardenRead):
    members: list[GardenMemberRead] = []
    permissions: list[str] = []


class GardenInviteCreate(BaseModel):
    email: EmailStr
    permissions: list[Permission] = ["VIEW", "INVITE"]


class GardenInviteRead(BaseModel):
    id: int
    garden_id: int
    email: str
    inviter_id: Optional[int]
    permissions: list[str]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PendingInviteRead(GardenInviteRead):
    garden_name: str


class LogVisibility(BaseModel):
    show_logs: bool
