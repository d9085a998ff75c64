"""Initial schema: users, vehicles, parking locations, bookings, payments.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

BOOKING_STATUSES = ("requested", "active", "parked", "retrieving", "completed")
USER_ROLES = ("rider", "driver", "manager")


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(20), unique=True, nullable=False),
        sa.Column(
            "role",
            sa.Enum(*USER_ROLES, name="user_role"),
            nullable=False,
            server_default="rider",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("vehicle_number", sa.String(20), nullable=False),
        sa.Column("type", sa.String(30), nullable=True),
    )
    op.create_index("idx_vehicles_user", "vehicles", ["user_id"])

    # ── parking_locations ─────────────────────────────────────────────
    op.create_table(
        "parking_locations",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("manager_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=True),
    )
    op.create_index("idx_locations_manager", "parking_locations", ["manager_id"])

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("driver_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "location_id",
            sa.Uuid,
            sa.ForeignKey("parking_locations.id"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(*BOOKING_STATUSES, name="booking_status"),
            nullable=False,
            server_default="requested",
        ),
        sa.Column("slot", sa.String(20), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        # Lifecycle invariants the engine maintains, enforced by the DB too
        sa.CheckConstraint(
            "(status = 'completed') = (end_time IS NOT NULL)",
            name="ck_bookings_end_time_iff_completed",
        ),
        sa.CheckConstraint(
            "status = 'requested' OR driver_id IS NOT NULL",
            name="ck_bookings_driver_once_active",
        ),
        sa.CheckConstraint(
            "status IN ('requested', 'active') OR start_time IS NOT NULL",
            name="ck_bookings_start_time_once_parked",
        ),
    )
    op.create_index(
        "idx_bookings_location_status", "bookings", ["location_id", "status"]
    )
    op.create_index("idx_bookings_driver_status", "bookings", ["driver_id", "status"])
    op.create_index("idx_bookings_user", "bookings", ["user_id"])

    # ── payments ──────────────────────────────────────────────────────
    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "booking_id", sa.Uuid, sa.ForeignKey("bookings.id"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("method", sa.String(20), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_payments_booking", "payments", ["booking_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("bookings")
    op.drop_table("parking_locations")
    op.drop_table("vehicles")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS booking_status")
    op.execute("DROP TYPE IF EXISTS user_role")
