from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garden_logbook.db.base import Base

GROWTH_STAGES = ("SEEDLING", "VEGETATIVE", "FLOWERING", "HARVEST", "DRYING", "CURING")


class Plant(Base):
    __tablename__ = "plants"

    id: Mapped[int] = mapped_column(primary_key=True)
    garden_id: Mapped[int] = mapped_column(ForeignKey("gardens.id", ondelete="CASCADE"), index=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id", ondelete="CASCADE"), index=True)
    zone_id: Mapped[int] = mapped_column(ForeignKey("zones.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    name: Mapped[str] = mapped_column(String(100))
    species: Mapped[Optional[str]] = mapped_column(String(200))
    variety: Mapped[Optional[str]] = mapped_column(String(200))
    plant_type: Mapped[Optional[str]] = mapped_column(String(50))
    stage: Mapped[str] = mapped_column(Enum(*GROWTH_STAGES, name="growth_stage_enum"), default="VEGETATIVE")
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    harvest_date: Mapped[Optional[date]] = mapped_column(Date)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    # {heat|frost|wind|drought|flood|heavyRain: {enabled, threshold, unit?, days?}}
    sensitivities: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    garden: Mapped["Garden"] = relationship()
    room: Mapped["Room"] = relationship()
    zone: Mapped["Zone"] = relationship(back_populates="plants")


class Seed(Base):
    __tablename__ = "seeds"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    variety: Mapped[str] = mapped_column(String(200))
    strain: Mapped[Optional[str]] = mapped_column(String(200))
    batch: Mapped[Optional[str]] = mapped_column(String(100))
    breeder: Mapped[Optional[str]] = mapped_column(String(200))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    date_acquired: Mapped[Optional[date]] = mapped_column(Date)
    date_harvested: Mapped[Optional[date]] = mapped_column(Date)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
