from typing import Literal, Optional
from pydantic import BaseModel, Field


class VpdRequest(BaseModel):
    temperature: float
    humidity: float = Field(ge=0, le=100)
    unit: Literal["C", "F"] = "C"
    stage: Optional[str] = None


class VpdResponse(BaseModel):
    vpd: Optional[float]
    formatted: str
    status: str
    message: str
    range: dict


class ConvertRequest(BaseModel):
    value: float
    from_unit: str
    to_unit: str


class ConvertResponse(BaseModel):
    value: float
    unit: str
    formatted: str
