"""
Integration tests de los adaptadores SQLAlchemy contra SQLite en memoria.

Verifica:
- Round-trip de bookings y actualización condicional por estado
- Detección de superposición ignorando bookings cancelados
- Commit / rollback del SQLAlchemyTransactionManager
- Bloqueo de agenda del instructor entre sesiones concurrentes (SQLite en archivo)
- El ciclo completo de la máquina de estados sobre adaptadores SQL
"""

import asyncio
from datetime import datetime, time, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, insert, select

from app.application.interfaces.clock import FakeClock
from app.application.interfaces.id_generator import FakeIdGenerator
from app.application.interfaces.identity import Principal, Role
from app.application.use_cases.booking_state_machine import BookingStateMachine, LessonPolicy
from app.config import Settings
from app.domain.entities.booking import Booking, BookingPaymentStatus, BookingStatus
from app.domain.errors import DoubleBookingError, InvalidTransitionError
from app.infrastructure.db.engine import SQLITE_MEMORY_URL, build_engine, build_sessionmaker
from app.infrastructure.db.repositories.availability_repo_sql import AvailabilityRepoSQL
from app.infrastructure.db.repositories.booking_repo_sql import BookingRepoSQL
from app.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from app.infrastructure.db.repositories.payout_account_repo_sql import PayoutAccountRepoSQL
from app.infrastructure.db.tables import (
    instructor_availability,
    instructor_payout_accounts,
    metadata,
    outbox_events,
)
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from tests.conftest import (
    INSTRUCTOR_ID,
    LESSON_DATE,
    LESSON_PRICE,
    PAYOUT_ACCOUNT_REF,
    SAO_PAULO,
    STUDENT_ID,
    lesson_schedule,
    local_time,
)

pytestmark = pytest.mark.sql


@pytest_asyncio.fixture
async def session():
    engine = build_engine(Settings(database_url=SQLITE_MEMORY_URL))
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(
            insert(instructor_availability).values(
                instructor_id=INSTRUCTOR_ID,
                day_of_week=2,
                start_time=time(8, 0),
                end_time=time(18, 0),
                is_active=True,
            )
        )
        await conn.execute(
            insert(instructor_payout_accounts).values(
                instructor_id=INSTRUCTOR_ID,
                account_ref=PAYOUT_ACCOUNT_REF,
                onboarding_complete=False,
            )
        )

    async with build_sessionmaker(engine)() as db_session:
        yield db_session
    await engine.dispose()


def _booking(booking_id: str = "booking-0001", hour: int = 14, **overrides) -> Booking:
    now = datetime(2025, 6, 8, 13, 0, tzinfo=timezone.utc)
    values = dict(
        id=booking_id,
        student_id=STUDENT_ID,
        instructor_id=INSTRUCTOR_ID,
        scheduled_date=LESSON_DATE,
        scheduled_time=time(hour, 0),
        duration_minutes=50,
        price=LESSON_PRICE,
        currency_code="BRL",
        created_at=now,
        updated_at=now,
    )
    values.update(overrides)
    return Booking(**values)


async def test_booking_round_trip(session):
    repo = BookingRepoSQL(session)
    await repo.create_booking(_booking())

    stored = await repo.get_booking("booking-0001")

    assert stored.scheduled_date == LESSON_DATE
    assert stored.scheduled_time == time(14, 0)
    assert stored.price == Decimal("80.00")
    assert stored.price_cents == 8000
    assert stored.status == BookingStatus.PENDING
    assert stored.payment_status == BookingPaymentStatus.UNPAID
    assert stored.lock_version == 0
    assert await repo.get_booking("missing") is None


async def test_conditional_update_applies_only_from_expected_status(session):
    repo = BookingRepoSQL(session)
    await repo.create_booking(_booking())

    updated = await repo.conditional_update_booking_status(
        "booking-0001",
        BookingStatus.PENDING,
        {
            "status": BookingStatus.CONFIRMED,
            "payment_status": BookingPaymentStatus.PAID,
            "payment_intent_id": "pi_123",
        },
    )
    assert updated.status == BookingStatus.CONFIRMED
    assert updated.payment_status == BookingPaymentStatus.PAID
    assert updated.lock_version == 1

    rejected = await repo.conditional_update_booking_status(
        "booking-0001", BookingStatus.PENDING, {"status": BookingStatus.CANCELLED}
    )
    assert rejected is None
    assert (await repo.get_booking("booking-0001")).status == BookingStatus.CONFIRMED


async def test_overlap_ignores_cancelled_bookings(session):
    repo = BookingRepoSQL(session)
    await repo.create_booking(_booking("booking-0001"))
    await repo.create_booking(_booking("booking-0002", hour=16, status=BookingStatus.CANCELLED))

    clash = await repo.find_overlapping_booking(INSTRUCTOR_ID, lesson_schedule(14, 30))
    assert clash.id == "booking-0001"

    assert await repo.find_overlapping_booking(INSTRUCTOR_ID, lesson_schedule(14, 50)) is None
    assert await repo.find_overlapping_booking(INSTRUCTOR_ID, lesson_schedule(16, 0)) is None
    assert await repo.find_overlapping_booking("instr-2", lesson_schedule(14, 0)) is None


async def test_find_by_payment_intent(session):
    repo = BookingRepoSQL(session)
    await repo.create_booking(_booking(payment_intent_id="pi_abc"))

    assert (await repo.find_by_payment_intent("pi_abc")).id == "booking-0001"
    assert await repo.find_by_payment_intent("pi_other") is None


async def test_availability_lookup(session):
    repo = AvailabilityRepoSQL(session)

    assert await repo.has_open_slot(INSTRUCTOR_ID, lesson_schedule(8, 0)) is True
    assert await repo.has_open_slot(INSTRUCTOR_ID, lesson_schedule(17, 30)) is False
    assert await repo.has_open_slot("instr-2", lesson_schedule(14, 0)) is False


async def test_payout_account_onboarding_update(session):
    repo = PayoutAccountRepoSQL(session)

    account = await repo.get_instructor_payout_account(INSTRUCTOR_ID)
    assert account.account_ref == PAYOUT_ACCOUNT_REF
    assert account.is_ready is False

    updated = await repo.update_onboarding_status(PAYOUT_ACCOUNT_REF, True)
    assert updated.instructor_id == INSTRUCTOR_ID
    assert (await repo.get_instructor_payout_account(INSTRUCTOR_ID)).is_ready is True

    assert await repo.update_onboarding_status("acct_ghost", True) is None


async def test_outbox_enqueue(session):
    repo = OutboxRepoSQL(session)

    event = await repo.enqueue(
        event_type="BOOKING_CONFIRMED",
        aggregate_type="booking",
        aggregate_code="booking-0001",
        payload={"booking_id": "booking-0001"},
    )

    assert event.id is not None
    row = (await session.execute(select(outbox_events))).mappings().one()
    assert row["payload"] == {"booking_id": "booking-0001"}
    assert row["status"] == "NEW"


async def test_transaction_rolls_back_on_error(session):
    repo = BookingRepoSQL(session)
    tx = SQLAlchemyTransactionManager(session)

    with pytest.raises(RuntimeError):
        async with tx.start():
            await repo.create_booking(_booking())
            raise RuntimeError("boom")

    assert await repo.get_booking("booking-0001") is None


async def test_nested_units_of_work_commit_once(session):
    repo = BookingRepoSQL(session)
    tx = SQLAlchemyTransactionManager(session)

    async with tx.start():
        await repo.create_booking(_booking("booking-0001"))
        async with tx.start():
            await repo.create_booking(_booking("booking-0002", hour=16))

    await session.rollback()
    assert await repo.get_booking("booking-0001") is not None
    assert await repo.get_booking("booking-0002") is not None


async def test_state_machine_on_sql_adapters(session):
    clock = FakeClock(local_time(10, 0, day=8))
    state_machine = BookingStateMachine(
        booking_repo=BookingRepoSQL(session),
        availability_repo=AvailabilityRepoSQL(session),
        outbox_repo=OutboxRepoSQL(session),
        transaction_manager=SQLAlchemyTransactionManager(session),
        clock=clock,
        id_generator=FakeIdGenerator(),
        policy=LessonPolicy(tz=SAO_PAULO),
    )
    student = Principal(user_id=STUDENT_ID, role=Role.STUDENT)

    booking = await state_machine.create_pending(
        student_id=STUDENT_ID,
        instructor_id=INSTRUCTOR_ID,
        schedule=lesson_schedule(),
        price=LESSON_PRICE,
    )
    with pytest.raises(DoubleBookingError):
        await state_machine.create_pending(
            student_id="student-2",
            instructor_id=INSTRUCTOR_ID,
            schedule=lesson_schedule(14, 30),
            price=LESSON_PRICE,
        )

    await state_machine.confirm_on_payment(booking.id, "pi_sql")

    clock.set_time(local_time(14, 5))
    completed = await state_machine.complete_via_check_in(booking.id)
    assert completed.status == BookingStatus.COMPLETED
    assert completed.checked_in_at is not None
    assert completed.lock_version == 2

    with pytest.raises(InvalidTransitionError):
        await state_machine.cancel(booking.id, student)

    event_count = (await session.execute(select(func.count()).select_from(outbox_events))).scalar()
    assert event_count == 2


async def test_conditional_update_checks_expected_fields(session):
    repo = BookingRepoSQL(session)
    await repo.create_booking(_booking())

    first = await repo.conditional_update_booking_status(
        "booking-0001",
        BookingStatus.PENDING,
        {"payment_intent_id": "pi_first", "payment_status": BookingPaymentStatus.PENDING},
        expected_fields={"payment_intent_id": None, "payment_status": BookingPaymentStatus.UNPAID},
    )
    assert first.payment_intent_id == "pi_first"

    # Same starting point read by a second caller
    second = await repo.conditional_update_booking_status(
        "booking-0001",
        BookingStatus.PENDING,
        {"payment_intent_id": "pi_second", "payment_status": BookingPaymentStatus.PENDING},
        expected_fields={"payment_intent_id": None, "payment_status": BookingPaymentStatus.UNPAID},
    )
    assert second is None
    assert (await repo.get_booking("booking-0001")).payment_intent_id == "pi_first"

    failed = await repo.conditional_update_booking_status(
        "booking-0001",
        BookingStatus.PENDING,
        {"payment_status": BookingPaymentStatus.FAILED},
        expected_fields={"payment_intent_id": "pi_first"},
    )
    assert failed.payment_status == BookingPaymentStatus.FAILED
    assert failed.lock_version == 2


async def test_find_pending_by_instructor(session):
    repo = BookingRepoSQL(session)
    await repo.create_booking(_booking("booking-0001"))
    await repo.create_booking(_booking("booking-0002", hour=16, status=BookingStatus.CONFIRMED))
    await repo.create_booking(_booking("booking-0003", hour=10, instructor_id="instr-2"))

    pending = await repo.find_pending_by_instructor(INSTRUCTOR_ID)

    assert [booking.id for booking in pending] == ["booking-0001"]


async def test_concurrent_bookings_for_one_slot_on_separate_connections(tmp_path):
    engine = build_engine(Settings(database_url=f"sqlite+aiosqlite:///{tmp_path}/lessons.db"))
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(
            insert(instructor_availability).values(
                instructor_id=INSTRUCTOR_ID,
                day_of_week=2,
                start_time=time(8, 0),
                end_time=time(18, 0),
                is_active=True,
            )
        )

    sessions = build_sessionmaker(engine)

    async def book(student_id: str, prefix: str, minute: int):
        async with sessions() as db_session:
            state_machine = BookingStateMachine(
                booking_repo=BookingRepoSQL(db_session),
                availability_repo=AvailabilityRepoSQL(db_session),
                outbox_repo=OutboxRepoSQL(db_session),
                transaction_manager=SQLAlchemyTransactionManager(db_session),
                clock=FakeClock(local_time(10, 0, day=8)),
                id_generator=FakeIdGenerator(prefix),
                policy=LessonPolicy(tz=SAO_PAULO),
            )
            return await state_machine.create_pending(
                student_id=student_id,
                instructor_id=INSTRUCTOR_ID,
                schedule=lesson_schedule(14, minute),
                price=LESSON_PRICE,
            )

    try:
        results = await asyncio.gather(
            book(STUDENT_ID, "first", 0),
            book("student-2", "second", 30),
            return_exceptions=True,
        )

        created = [r for r in results if isinstance(r, Booking)]
        rejected = [r for r in results if isinstance(r, DoubleBookingError)]
        assert len(created) == 1
        assert len(rejected) == 1

        async with sessions() as db_session:
            rows = await BookingRepoSQL(db_session).find_pending_by_instructor(INSTRUCTOR_ID)
        assert [row.id for row in rows] == [created[0].id]
    finally:
        await engine.dispose()
