"""SQLAlchemy models representing Larder persistence tables."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from larder.timeutils import utcnow

# Partial-index predicate shared by the unique index and the upsert conflict target.
OPEN_ENTRY_PREDICATE = "purchased = 0"


class Base(DeclarativeBase):
    """Declarative base class for Larder ORM models."""


class ScanEventORM(Base):
    """Append-only scan-in/scan-out log."""

    __tablename__ = "scan_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    item_identity: Mapped[str] = mapped_column(String(255), nullable=False)
    item_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("action IN ('scan_in', 'scan_out')", name="ck_scan_events_action"),
        CheckConstraint("quantity > 0", name="ck_scan_events_quantity"),
        Index("ix_scan_events_user_identity", "user_id", "item_identity", "occurred_at"),
    )


class InventoryItemORM(Base):
    """One scanned-in product instance; soft-removed by setting scan_out_at."""

    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    identity: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    unit: Mapped[str] = mapped_column(String(64), nullable=False, default="count")
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    scan_in_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    scan_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (Index("ix_inventory_items_user_identity", "user_id", "identity"),)


class ShoppingListEntryORM(Base):
    """Shopping list entry; prediction columns are only populated for suggestions."""

    __tablename__ = "shopping_list_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(255), nullable=False)
    item_identity: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_suggested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prediction_confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    last_scan_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    average_interval_days: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    purchased: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    purchased_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index(
            "uq_shopping_list_open_name",
            "user_id",
            "normalized_name",
            unique=True,
            sqlite_where=text(OPEN_ENTRY_PREDICATE),
        ),
    )


class StorageLocationORM(Base):
    """Per-user storage location names."""

    __tablename__ = "storage_locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_storage_locations_user_name"),)


__all__ = [
    "Base",
    "OPEN_ENTRY_PREDICATE",
    "ScanEventORM",
    "InventoryItemORM",
    "ShoppingListEntryORM",
    "StorageLocationORM",
]
