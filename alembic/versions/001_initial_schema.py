"""Initial schema: tickets, assignments, trips, vehicles and GPS positions.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Vehicles (reference data)
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("plate_number", sa.String(32), unique=True, nullable=False),
        sa.Column("body_volume_m3", sa.Float, nullable=True),
    )

    # GPS fixes
    op.create_table(
        "vehicle_positions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "vehicle_id",
            sa.Uuid,
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("inside_cleaning_area", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("inside_polygon", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_index("idx_positions_vehicle_time", "vehicle_positions", ["vehicle_id", "recorded_at"])

    # Tickets
    op.create_table(
        "tickets",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("cleaning_area_id", sa.Uuid, nullable=False),
        sa.Column("contractor_id", sa.Uuid, nullable=False),
        sa.Column("created_by_org_id", sa.Uuid, nullable=False),
        sa.Column("contract_id", sa.Uuid, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PLANNED"),
        sa.Column("planned_start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("planned_end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fact_start_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("fact_end_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_tickets_contractor", "tickets", ["contractor_id"])
    op.create_index("idx_tickets_status", "tickets", ["status"])

    # Assignments
    op.create_table(
        "ticket_assignments",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "ticket_id",
            sa.Uuid,
            sa.ForeignKey("tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("driver_id", sa.Uuid, nullable=False),
        sa.Column("vehicle_id", sa.Uuid, sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("driver_mark_status", sa.String(20), nullable=False, server_default="NOT_STARTED"),
        sa.Column("trip_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trip_finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("unassigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_assignments_ticket", "ticket_assignments", ["ticket_id"])
    op.create_index("idx_assignments_driver_active", "ticket_assignments", ["driver_id", "is_active"])
    op.create_index("idx_assignments_vehicle_active", "ticket_assignments", ["vehicle_id", "is_active"])

    # Trips
    op.create_table(
        "trips",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("ticket_id", sa.Uuid, sa.ForeignKey("tickets.id"), nullable=True),
        sa.Column(
            "ticket_assignment_id",
            sa.Uuid,
            sa.ForeignKey("ticket_assignments.id"),
            nullable=True,
        ),
        sa.Column("driver_id", sa.Uuid, nullable=True),
        sa.Column("vehicle_id", sa.Uuid, nullable=True),
        sa.Column("camera_id", sa.Uuid, nullable=True),
        sa.Column("polygon_id", sa.Uuid, nullable=True),
        sa.Column("vehicle_plate_number", sa.String(32), nullable=False, server_default=""),
        sa.Column("detected_plate_number", sa.String(32), nullable=False, server_default=""),
        sa.Column("entry_lpr_event_id", sa.Uuid, nullable=True),
        sa.Column("exit_lpr_event_id", sa.Uuid, nullable=True),
        sa.Column("entry_volume_event_id", sa.Uuid, nullable=True),
        sa.Column("exit_volume_event_id", sa.Uuid, nullable=True),
        sa.Column("detected_volume_entry", sa.Float, nullable=True),
        sa.Column("detected_volume_exit", sa.Float, nullable=True),
        sa.Column("vehicle_body_volume_m3", sa.Float, nullable=True),
        sa.Column("total_volume_m3", sa.Float, nullable=True),
        sa.Column("entry_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("exit_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="OK"),
        sa.Column("violation_reason", sa.String(50), nullable=True),
        sa.Column("auto_created", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_trips_ticket", "trips", ["ticket_id"])
    op.create_index("idx_trips_assignment", "trips", ["ticket_assignment_id"])


def downgrade() -> None:
    op.drop_table("trips")
    op.drop_table("ticket_assignments")
    op.drop_table("tickets")
    op.drop_table("vehicle_positions")
    op.drop_table("vehicles")
