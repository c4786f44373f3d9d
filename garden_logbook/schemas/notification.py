from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _Meta(BaseModel):
    # Stored and served camelCase; accepted either way
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _PlantLocationMeta(_Meta):
    plant_id: int
    plant_name: str
    garden_id: Optional[int] = None
    garden_name: str
    room_id: Optional[int] = None
    room_name: str
    zone_id: Optional[int] = None
    zone_name: str
    alert_types: list[str] = Field(min_length=1)
    timezone: Optional[str] = None


class WeatherAlertMeta(_PlantLocationMeta):
    kind: Literal["weather_alert"] = "weather_alert"
    current_alerts: dict[str, dict]
    date: str
    log_id: Optional[int] = None


class WeatherForecastAlertMeta(_PlantLocationMeta):
    kind: Literal["weather_forecast_alert"] = "weather_forecast_alert"
    forecasted_alerts: dict[str, list[dict]]
    forecast_window: str


class MaintenanceDueMeta(_Meta):
    kind: Literal["maintenance_due"] = "maintenance_due"
    task_id: int
    equipment_id: int
    garden_id: int
    days_until_due: int
    urgency: Literal["OVERDUE", "URGENT", "REMINDER"]
    due_date: str


class SensorBreach(_Meta):
    type: str
    value: float
    bound: Literal["min", "max"]
    limit: float


class SensorAlertMeta(_Meta):
    kind: Literal["sensor_alert"] = "sensor_alert"
    device_id: int
    device_name: str
    zone_id: Optional[int] = None
    reading_id: Optional[int] = None
    alert_types: list[str] = Field(min_length=1)
    breaches: list[SensorBreach]


class GardenInviteMeta(_Meta):
    kind: Literal["garden_invite"] = "garden_invite"
    invite_id: int
    garden_id: int
    garden_name: str


NotificationMeta = Annotated[
    Union[WeatherAlertMeta, WeatherForecastAlertMeta, MaintenanceDueMeta, SensorAlertMeta, GardenInviteMeta],
    Field(discriminator="kind"),
]
NotificationMetaAdapter: TypeAdapter = TypeAdapter(NotificationMeta)


class NotificationRead(BaseModel):
    id: int
    user_id: int
    notification_type: str
    title: str
    message: str
    link: Optional[str]
    meta: dict
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationMarkRead(BaseModel):
    ids: list[int] = Field(min_length=1)
    read: bool = True


class WeatherAlertDay(BaseModel):
    date: str
    alert_types: list[str]
    notifications: list[NotificationRead]


class GardenWeatherAlerts(BaseModel):
    garden_id: int
    weather_status: Optional[dict]
    notifications: list[NotificationRead]
