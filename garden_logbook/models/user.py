from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garden_logbook.db.base import Base

WEATHER_NOTIFICATION_PERIODS = ("current", "24h", "3d", "week", "all")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(Enum("user", "admin", name="user_role"), default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Location / preferences
    timezone: Mapped[Optional[str]] = mapped_column(String(50))
    zip_code: Mapped[Optional[str]] = mapped_column(String(10))
    weather_notification_period: Mapped[str] = mapped_column(
        Enum(*WEATHER_NOTIFICATION_PERIODS, name="weather_notification_period_enum"),
        default="current",
    )

    # iv:tag:data, see garden_logbook.core.crypto
    encrypted_govee_api_key: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    gardens: Mapped[list["Garden"]] = relationship(back_populates="creator", cascade="all, delete-orphan")
    memberships: Mapped[list["GardenMember"]] = relationship(
        back_populates="user", foreign_keys="GardenMember.user_id", cascade="all, delete-orphan"
    )
    notifications: Mapped[list["Notification"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    govee_devices: Mapped[list["GoveeDevice"]] = relationship(back_populates="user", cascade="all, delete-orphan")

    @property
    def name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def has_govee_api_key(self) -> bool:
        return bool(self.encrypted_govee_api_key)
