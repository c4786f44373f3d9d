from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garden_logbook.db.base import Base

RESOURCE_PERMISSIONS = ("VIEW", "EDIT", "DELETE", "INVITE", "MANAGE")
INVITE_STATUSES = ("pending", "accepted", "declined")
WEATHER_ALERT_SOURCES = ("WEATHER_API", "SENSORS", "BOTH")


class Garden(Base):
    __tablename__ = "gardens"

    id: Mapped[int] = mapped_column(primary_key=True)
    creator_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_private: Mapped[bool] = mapped_column(Boolean, default=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    zipcode: Mapped[Optional[str]] = mapped_column(String(10))
    timezone: Mapped[Optional[str]] = mapped_column(String(50))
    # {has_alerts, alert_count, last_checked, alerts[]}, written by the weather job
    weather_status: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    creator: Mapped["User"] = relationship(back_populates="gardens")
    members: Mapped[list["GardenMember"]] = relationship(back_populates="garden", cascade="all, delete-orphan")
    invites: Mapped[list["GardenInvite"]] = relationship(back_populates="garden", cascade="all, delete-orphan")
    rooms: Mapped[list["Room"]] = relationship(back_populates="garden", cascade="all, delete-orphan")


class GardenMember(Base):
    __tablename__ = "garden_members"
    __table_args__ = (UniqueConstraint("garden_id", "user_id", name="uq_garden_members_garden_user"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    garden_id: Mapped[int] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    permissions: Mapped[list[str]] = mapped_column(JSON, default=lambda: ["VIEW"])
    added_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    garden: Mapped["Garden"] = relationship(back_populates="members")
    user: Mapped["User"] = relationship(back_populates="memberships", foreign_keys=[user_id])


class GardenInvite(Base):
    __tablename__ = "garden_invites"
    __table_args__ = (UniqueConstraint("garden_id", "email", name="uq_garden_invites_garden_email"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    garden_id: Mapped[int] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    email: Mapped[str] = mapped_column(String(255), index=True)
    inviter_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    permissions: Mapped[list[str]] = mapped_column(JSON, default=lambda: ["VIEW", "INVITE"])
    status: Mapped[str] = mapped_column(Enum(*INVITE_STATUSES, name="invite_status_enum"), default="pending")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    garden: Mapped["Garden"] = relationship(back_populates="invites")


class GardenLogVisibility(Base):
    """Whether a user wants the garden's logs shown alongside their own. No row means shown."""

    __tablename__ = "garden_log_visibility"
    __table_args__ = (UniqueConstraint("user_id", "garden_id", name="uq_garden_log_visibility_user_garden"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    garden_id: Mapped[int] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    show_logs: Mapped[bool] = mapped_column(Boolean, default=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(primary_key=True)
    garden_id: Mapped[int] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    creator_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    room_type: Mapped[Optional[str]] = mapped_column(String(50))
    width: Mapped[Optional[float]] = mapped_column(Float)
    length: Mapped[Optional[float]] = mapped_column(Float)
    height: Mapped[Optional[float]] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    garden: Mapped["Garden"] = relationship(back_populates="rooms")
    zones: Mapped[list["Zone"]] = relationship(back_populates="room", cascade="all, delete-orphan")


class Zone(Base):
    __tablename__ = "zones"

    id: Mapped[int] = mapped_column(primary_key=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id", ondelete="CASCADE"), index=True)
    creator_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    zone_type: Mapped[Optional[str]] = mapped_column(String(50))

    # Sensor thresholds; None means no limit on that side
    temp_min: Mapped[Optional[float]] = mapped_column(Float)  # °C
    temp_max: Mapped[Optional[float]] = mapped_column(Float)  # °C
    humidity_min: Mapped[Optional[float]] = mapped_column(Float)
    humidity_max: Mapped[Optional[float]] = mapped_column(Float)
    weather_alert_source: Mapped[str] = mapped_column(
        Enum(*WEATHER_ALERT_SOURCES, name="weather_alert_source_enum"), default="WEATHER_API"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    room: Mapped["Room"] = relationship(back_populates="zones")
    plants: Mapped[list["Plant"]] = relationship(back_populates="zone", cascade="all, delete-orphan")
    equipment: Mapped[list["Equipment"]] = relationship(back_populates="zone", cascade="all, delete-orphan")
    govee_devices: Mapped[list["GoveeDevice"]] = relationship(back_populates="zone")
