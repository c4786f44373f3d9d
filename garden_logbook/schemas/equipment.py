from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from garden_logbook.schemas.common import reject_null


class EquipmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    equipment_type: Optional[str] = None
    description: Optional[str] = None
    purchase_date: Optional[date] = None
    notes: Optional[str] = None


class EquipmentUpdate(EquipmentCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class MaintenanceTaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    frequency: str = "Monthly"
    next_due_date: date
    notes: Optional[str] = None


class MaintenanceTaskComplete(BaseModel):
    completed_date: Optional[date] = None
    notes: Optional[str] = None


class MaintenanceTaskRead(BaseModel):
    id: int
    equipment_id: int
    title: str
    description: Optional[str]
    frequency: str
    next_due_date: date
    last_completed_date: Optional[date]
    completed: bool
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EquipmentRead(BaseModel):
    id: int
    garden_id: int
    room_id: int
    zone_id: int
    name: str
    equipment_type: Optional[str]
    description: Optional[str]
    purchase_date: Optional[date]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EquipmentDetail(EquipmentRead):
    maintenance_tasks: list[MaintenanceTaskRead] = []
