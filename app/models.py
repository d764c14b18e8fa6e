from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    # Only ever written through auth_service.get_password_hash.
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(10), default="user", nullable=False)

    # Profile
    first_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=True
    )

    @property
    def full_name(self) -> str | None:
        name = " ".join(part for part in (self.first_name, self.last_name) if part).strip()
        return name or None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


# ---------------------------------------------------------------------------
# Car (listing)
# ---------------------------------------------------------------------------
class Car(Base):
    __tablename__ = "cars"

    __table_args__ = (
        Index("ix_cars_make_model", "make", "model"),
        Index("ix_cars_status_is_active", "status", "is_active"),
        Index("ix_cars_location_city", "location_city"),
        Index("ix_cars_seller_email", "seller_email"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    make: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    mileage: Mapped[int] = mapped_column(Integer, nullable=False)
    fuel_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    transmission: Mapped[str] = mapped_column(String(20), nullable=False)
    body_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    color: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    features: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    # [{"url": ..., "alt": ...}]
    images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    location_city: Mapped[str] = mapped_column(String(50), nullable=False)
    location_state: Mapped[str] = mapped_column(String(50), nullable=False)
    location_country: Mapped[str] = mapped_column(String(50), nullable=False)

    seller_name: Mapped[str] = mapped_column(String(100), nullable=False)
    seller_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    # Nullable for legacy rows created before seller-email attribution.
    seller_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="available", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=True
    )

    def __repr__(self) -> str:
        return f"<Car(id={self.id}, {self.year} {self.make} {self.model})>"
