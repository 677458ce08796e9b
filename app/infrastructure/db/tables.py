from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Time,
)

metadata = MetaData()

bookings = Table(
    "bookings",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("student_id", String(36), nullable=False),
    Column("instructor_id", String(36), nullable=False),
    Column("scheduled_date", Date, nullable=False),
    Column("scheduled_time", Time, nullable=False),
    Column("duration_minutes", Integer, nullable=False, default=50),
    Column("price", Numeric(10, 2), nullable=False),
    Column("currency_code", String(3), nullable=False),
    Column("status", String(16), nullable=False),
    Column("payment_status", String(16), nullable=False),
    Column("payment_intent_id", String(255)),
    Column("checked_in_at", DateTime(timezone=True)),
    Column("confirmed_at", DateTime(timezone=True)),
    Column("cancelled_at", DateTime(timezone=True)),
    Column("cancelled_by", String(16)),
    Column("cancellation_reason", String(500)),
    Column("lock_version", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Index("ix_bookings_instructor_date", "instructor_id", "scheduled_date"),
    Index("ix_bookings_payment_intent_id", "payment_intent_id"),
)

instructor_availability = Table(
    "instructor_availability",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("instructor_id", String(36), nullable=False, index=True),
    Column("day_of_week", Integer, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
)

instructor_payout_accounts = Table(
    "instructor_payout_accounts",
    metadata,
    Column("instructor_id", String(36), primary_key=True),
    Column("account_ref", String(255), unique=True),
    Column("onboarding_complete", Boolean, nullable=False, default=False),
    Column("updated_at", DateTime(timezone=True)),
)

outbox_events = Table(
    "outbox_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_type", String(64), nullable=False),
    Column("aggregate_type", String(32), nullable=False),
    Column("aggregate_code", String(50)),
    Column("payload", JSON, nullable=False),
    Column("status", String(16), nullable=False, default="NEW"),
    Column("created_at", DateTime(timezone=True)),
)
