"""SQLAlchemy ORM models: maps to PostgreSQL tables."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.adapters.persistence.database import Base


class TicketModel(Base):
    __tablename__ = "tickets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    cleaning_area_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    contractor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    created_by_org_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    contract_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANNED")
    planned_start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    planned_end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    fact_start_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    fact_end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_tickets_contractor", "contractor_id"),
        Index("idx_tickets_status", "status"),
    )


class TicketAssignmentModel(Base):
    __tablename__ = "ticket_assignments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    driver_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("vehicles.id"), nullable=False
    )
    driver_mark_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="NOT_STARTED"
    )
    trip_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    trip_finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    unassigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("idx_assignments_ticket", "ticket_id"),
        Index("idx_assignments_driver_active", "driver_id", "is_active"),
        Index("idx_assignments_vehicle_active", "vehicle_id", "is_active"),
    )


class TripModel(Base):
    __tablename__ = "trips"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tickets.id"), nullable=True
    )
    ticket_assignment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("ticket_assignments.id"), nullable=True
    )
    driver_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    vehicle_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    camera_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    polygon_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    vehicle_plate_number: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    detected_plate_number: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    entry_lpr_event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    exit_lpr_event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    entry_volume_event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    exit_volume_event_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    detected_volume_entry: Mapped[float | None] = mapped_column(Float, nullable=True)
    detected_volume_exit: Mapped[float | None] = mapped_column(Float, nullable=True)
    vehicle_body_volume_m3: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_volume_m3: Mapped[float | None] = mapped_column(Float, nullable=True)
    entry_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    exit_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="OK")
    violation_reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
    auto_created: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_trips_ticket", "ticket_id"),
        Index("idx_trips_assignment", "ticket_assignment_id"),
    )


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    plate_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    body_volume_m3: Mapped[float | None] = mapped_column(Float, nullable=True)


class VehiclePositionModel(Base):
    __tablename__ = "vehicle_positions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    inside_cleaning_area: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    inside_polygon: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_positions_vehicle_time", "vehicle_id", "recorded_at"),
    )
