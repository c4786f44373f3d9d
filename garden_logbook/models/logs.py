from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garden_logbook.db.base import Base
from garden_logbook.models.plant import GROWTH_STAGES

LOG_TYPES = (
    "GENERAL", "WATERING", "FEEDING", "PRUNING", "TRAINING", "TRANSPLANT", "HARVEST",
    "INSPECTION", "PEST_DISEASE", "TREATMENT", "ENVIRONMENTAL", "GERMINATION", "CLONING",
    "FLUSHING", "DEFOLIATION", "STRESS", "CUSTOM",
    # Written by the system
    "WEATHER_ALERT", "MAINTENANCE_TASK", "CHANGE_LOG",
)

NOTIFICATION_TYPES = (
    "WEATHER_ALERT",
    "WEATHER_FORECAST_ALERT",
    "MAINTENANCE_DUE",
    "SENSOR_ALERT",
    "GARDEN_INVITE",
)


class Log(Base):
    __tablename__ = "logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    garden_id: Mapped[Optional[int]] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    room_id: Mapped[Optional[int]] = mapped_column(ForeignKey("rooms.id", ondelete="SET NULL"), index=True)
    zone_id: Mapped[Optional[int]] = mapped_column(ForeignKey("zones.id", ondelete="SET NULL"), index=True)
    plant_id: Mapped[Optional[int]] = mapped_column(ForeignKey("plants.id", ondelete="SET NULL"), index=True)
    equipment_id: Mapped[Optional[int]] = mapped_column(ForeignKey("equipment.id", ondelete="SET NULL"), index=True)

    log_type: Mapped[str] = mapped_column(Enum(*LOG_TYPES, name="log_type_enum"), default="GENERAL", index=True)
    stage: Mapped[Optional[str]] = mapped_column(Enum(*GROWTH_STAGES, name="growth_stage_enum"))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    log_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    image_urls: Mapped[Optional[list[str]]] = mapped_column(JSON)

    # Environment
    temperature: Mapped[Optional[float]] = mapped_column(Float)
    humidity: Mapped[Optional[float]] = mapped_column(Float)
    vpd: Mapped[Optional[float]] = mapped_column(Float)
    co2: Mapped[Optional[float]] = mapped_column(Float)

    # Watering / feeding
    water_amount: Mapped[Optional[float]] = mapped_column(Float)
    water_unit: Mapped[Optional[str]] = mapped_column(String(20))
    water_ph: Mapped[Optional[float]] = mapped_column(Float)
    water_ppm: Mapped[Optional[float]] = mapped_column(Float)

    data: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    garden: Mapped[Optional["Garden"]] = relationship()
    room: Mapped[Optional["Room"]] = relationship()
    zone: Mapped[Optional["Zone"]] = relationship()
    plant: Mapped[Optional["Plant"]] = relationship()


class CalendarNote(Base):
    __tablename__ = "calendar_notes"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    garden_id: Mapped[Optional[int]] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    room_id: Mapped[Optional[int]] = mapped_column(ForeignKey("rooms.id", ondelete="SET NULL"))
    zone_id: Mapped[Optional[int]] = mapped_column(ForeignKey("zones.id", ondelete="SET NULL"))
    note_date: Mapped[date] = mapped_column(Date, index=True)
    note: Mapped[str] = mapped_column(Text)
    # Private notes are only ever shown to their author
    is_private: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    notification_type: Mapped[str] = mapped_column(
        Enum(*NOTIFICATION_TYPES, name="notification_type_enum"), index=True
    )
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    link: Mapped[Optional[str]] = mapped_column(String(500))
    # Validated by garden_logbook.schemas.notification.NotificationMeta
    meta: Mapped[dict] = mapped_column(JSON)
    # e.g. "weather:12", "forecast:12", "maintenance:4", "sensor:7:heat"
    dedup_key: Mapped[Optional[str]] = mapped_column(String(200), index=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    user: Mapped["User"] = relationship(back_populates="notifications")


class PipelineRun(Base):
    __tablename__ = "pipeline_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    pipeline_name: Mapped[str] = mapped_column(String(100), index=True)
    status: Mapped[str] = mapped_column(
        Enum("running", "success", "failed", "skipped", name="pipeline_status_enum")
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer)
    records_processed: Mapped[Optional[int]] = mapped_column(Integer)
    error_message: Mapped[Optional[str]] = mapped_column(Text)


class ApiRequestLog(Base):
    __tablename__ = "api_request_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    method: Mapped[str] = mapped_column(String(10))
    endpoint: Mapped[str] = mapped_column(String(255))
    user_id: Mapped[Optional[int]] = mapped_column(Integer)
    status_code: Mapped[int] = mapped_column(Integer)
    latency_ms: Mapped[int] = mapped_column(Integer)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
