from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from garden_logbook.schemas.common import reject_null

GrowthStage = Literal["SEEDLING", "VEGETATIVE", "FLOWERING", "HARVEST", "DRYING", "CURING"]


class Sensitivity(BaseModel):
    enabled: bool = False
    threshold: Optional[float] = None
    unit: Optional[Literal["in", "mm"]] = None
    days: Optional[int] = None


class Sensitivities(BaseModel):
    heat: Optional[Sensitivity] = None
    frost: Optional[Sensitivity] = None
    wind: Optional[Sensitivity] = None
    drought: Optional[Sensitivity] = None
    flood: Optional[Sensitivity] = None
    heavyRain: Optional[Sensitivity] = None


class PlantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    species: Optional[str] = None
    variety: Optional[str] = None
    plant_type: Optional[str] = None
    stage: GrowthStage = "VEGETATIVE"
    start_date: Optional[date] = None
    harvest_date: Optional[date] = None
    notes: Optional[str] = None
    sensitivities: Optional[Sensitivities] = None


class PlantUpdate(PlantCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    stage: Optional[GrowthStage] = None

    @field_validator("name", "stage")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class PlantRead(BaseModel):
    id: int
    garden_id: int
    room_id: int
    zone_id: int
    user_id: int
    name: str
    species: Optional[str]
    variety: Optional[str]
    plant_type: Optional[str]
    stage: str
    start_date: Optional[date]
    harvest_date: Optional[date]
    notes: Optional[str]
    sensitivities: Optional[dict]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SeedCreate(BaseModel):
    variety: str = Field(min_length=1, max_length=200)
    strain: Optional[str] = None
    batch: Optional[str] = None
    breeder: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    date_acquired: Optional[date] = None
    date_harvested: Optional[date] = None
    notes: Optional[str] = None


class SeedUpdate(SeedCreate):
    variety: Optional[str] = Field(default=None, min_length=1, max_length=200)
    quantity: Optional[int] = Field(default=None, ge=0)

    @field_validator("variety", "quantity")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class SeedRead(BaseModel):
    id: int
    user_id: int
    variety: str
    strain: Optional[str]
    batch: Optional[str]
    breeder: Optional[str]
    quantity: int
    date_acquired: Optional[date]
    date_harvested: Optional[date]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
