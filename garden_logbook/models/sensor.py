from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garden_logbook.db.base import Base


class GoveeDevice(Base):
    __tablename__ = "govee_devices"
    __table_args__ = (UniqueConstraint("user_id", "device_id", name="uq_govee_devices_user_device"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    zone_id: Mapped[Optional[int]] = mapped_column(ForeignKey("zones.id", ondelete="SET NULL"), index=True)
    plant_id: Mapped[Optional[int]] = mapped_column(ForeignKey("plants.id", ondelete="SET NULL"))

    # Vendor identifiers
    device_id: Mapped[str] = mapped_column(String(100))
    sku: Mapped[str] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(200))

    # Alert thresholds (°C / %); None means no limit
    min_temp: Mapped[Optional[float]] = mapped_column(Float)
    max_temp: Mapped[Optional[float]] = mapped_column(Float)
    min_humidity: Mapped[Optional[float]] = mapped_column(Float)
    max_humidity: Mapped[Optional[float]] = mapped_column(Float)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False)
    battery_level: Mapped[Optional[int]] = mapped_column(Integer)
    last_state: Mapped[Optional[list]] = mapped_column(JSON)
    last_state_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="govee_devices")
    zone: Mapped[Optional["Zone"]] = relationship(back_populates="govee_devices")
    readings: Mapped[list["GoveeReading"]] = relationship(back_populates="device", cascade="all, delete-orphan")


class GoveeReading(Base):
    __tablename__ = "govee_readings"

    id: Mapped[int] = mapped_column(primary_key=True)
    device_id: Mapped[int] = mapped_column(ForeignKey("govee_devices.id", ondelete="CASCADE"), index=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    temperature: Mapped[Optional[float]] = mapped_column(Float)  # °C
    humidity: Mapped[Optional[float]] = mapped_column(Float)
    vpd: Mapped[Optional[float]] = mapped_column(Float)  # kPa
    battery_level: Mapped[Optional[int]] = mapped_column(Integer)
    source: Mapped[str] = mapped_column(Enum("CRON", "MANUAL", name="reading_source_enum"), default="CRON")
    raw_data: Mapped[Optional[list]] = mapped_column(JSON)

    device: Mapped["GoveeDevice"] = relationship(back_populates="readings")
