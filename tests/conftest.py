"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Reloj fijo (FakeClock) en la zona horaria de las clases
- Adaptadores in-memory y casos de uso ya cableados
- Bookings sembrados en cada estado del ciclo de vida
"""

from datetime import date, datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from app.application.interfaces.clock import FakeClock
from app.application.interfaces.id_generator import FakeIdGenerator
from app.application.interfaces.identity import Principal, Role
from app.application.use_cases.booking_state_machine import BookingStateMachine, LessonPolicy
from app.application.use_cases.check_in_protocol import CheckInProtocol
from app.application.use_cases.payment_intent_orchestrator import PaymentIntentOrchestrator
from app.domain.entities.availability_slot import AvailabilitySlot
from app.domain.entities.payout_account import PayoutAccount
from app.domain.services.fee_split_calculator import FeeSplitCalculator
from app.domain.value_objects.lesson_schedule import LessonSchedule
from app.infrastructure.in_memory import (
    InMemoryAvailabilityRepo,
    InMemoryBookingRepo,
    InMemoryOutboxRepo,
    InMemoryPayoutAccountRepo,
    InMemoryStripeGateway,
    InMemoryTransactionManager,
)

SAO_PAULO = ZoneInfo("America/Sao_Paulo")

STUDENT_ID = "student-1"
OTHER_STUDENT_ID = "student-2"
INSTRUCTOR_ID = "instr-1"
OTHER_INSTRUCTOR_ID = "instr-2"
PAYOUT_ACCOUNT_REF = "acct_1Instr"

LESSON_DATE = date(2025, 6, 10)  # martes: day_of_week = 2
LESSON_TIME = time(14, 0)
LESSON_PRICE = Decimal("80.00")
LESSON_PRICE_CENTS = 8000


def local_time(hour: int, minute: int = 0, second: int = 0, day: int = 10) -> datetime:
    """Instante en hora local de la escuela (junio 2025)."""
    return datetime(2025, 6, day, hour, minute, second, tzinfo=SAO_PAULO)


def lesson_schedule(hour: int = 14, minute: int = 0, duration: int = 50) -> LessonSchedule:
    return LessonSchedule(
        scheduled_date=LESSON_DATE,
        scheduled_time=time(hour, minute),
        duration_minutes=duration,
    )


# ============================================================================
# PRINCIPALS
# ============================================================================


@pytest.fixture
def student() -> Principal:
    return Principal(user_id=STUDENT_ID, role=Role.STUDENT)


@pytest.fixture
def other_student() -> Principal:
    return Principal(user_id=OTHER_STUDENT_ID, role=Role.STUDENT)


@pytest.fixture
def instructor() -> Principal:
    return Principal(user_id="user-instr-1", role=Role.INSTRUCTOR, instructor_id=INSTRUCTOR_ID)


@pytest.fixture
def other_instructor() -> Principal:
    return Principal(
        user_id="user-instr-2", role=Role.INSTRUCTOR, instructor_id=OTHER_INSTRUCTOR_ID
    )


# ============================================================================
# ADAPTERS
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    # Dos días antes de la clase: respeta la antelación mínima y máxima
    return FakeClock(local_time(10, 0, day=8))


@pytest.fixture
def booking_repo() -> InMemoryBookingRepo:
    return InMemoryBookingRepo()


@pytest.fixture
def availability_repo() -> InMemoryAvailabilityRepo:
    repo = InMemoryAvailabilityRepo()
    repo.add_slot(
        AvailabilitySlot(
            instructor_id=INSTRUCTOR_ID,
            day_of_week=2,
            start_time=time(8, 0),
            end_time=time(18, 0),
        )
    )
    return repo


@pytest.fixture
def payout_account_repo() -> InMemoryPayoutAccountRepo:
    repo = InMemoryPayoutAccountRepo()
    repo.save(
        PayoutAccount(
            instructor_id=INSTRUCTOR_ID,
            account_ref=PAYOUT_ACCOUNT_REF,
            onboarding_complete=True,
        )
    )
    return repo


@pytest.fixture
def outbox_repo() -> InMemoryOutboxRepo:
    return InMemoryOutboxRepo()


@pytest.fixture
def stripe_gateway() -> InMemoryStripeGateway:
    return InMemoryStripeGateway()


@pytest.fixture
def tx_manager() -> InMemoryTransactionManager:
    return InMemoryTransactionManager()


# ============================================================================
# USE CASES
# ============================================================================


@pytest.fixture
def state_machine(
    booking_repo, availability_repo, outbox_repo, tx_manager, clock
) -> BookingStateMachine:
    return BookingStateMachine(
        booking_repo=booking_repo,
        availability_repo=availability_repo,
        outbox_repo=outbox_repo,
        transaction_manager=tx_manager,
        clock=clock,
        id_generator=FakeIdGenerator(),
        policy=LessonPolicy(tz=SAO_PAULO),
    )


@pytest.fixture
def check_in(state_machine, clock) -> CheckInProtocol:
    return CheckInProtocol(state_machine=state_machine, clock=clock)


@pytest.fixture
def orchestrator(
    booking_repo, payout_account_repo, stripe_gateway, state_machine, tx_manager, clock
) -> PaymentIntentOrchestrator:
    return PaymentIntentOrchestrator(
        booking_repo=booking_repo,
        payout_account_repo=payout_account_repo,
        stripe_gateway=stripe_gateway,
        state_machine=state_machine,
        fee_calculator=FeeSplitCalculator(Decimal("0.15")),
        transaction_manager=tx_manager,
        clock=clock,
    )


# ============================================================================
# SEEDED BOOKINGS
# ============================================================================


@pytest_asyncio.fixture
async def pending_booking(state_machine):
    return await state_machine.create_pending(
        student_id=STUDENT_ID,
        instructor_id=INSTRUCTOR_ID,
        schedule=lesson_schedule(),
        price=LESSON_PRICE,
    )


@pytest_asyncio.fixture
async def confirmed_booking(pending_booking, orchestrator):
    payment = await orchestrator.create_split_payment(pending_booking.id, LESSON_PRICE_CENTS)
    return await orchestrator.on_payment_captured(payment.payment_intent_id)


@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """Evita que un breaker abierto en un test afecte al siguiente."""
    from app.infrastructure.circuit_breaker import stripe_breaker

    stripe_breaker.close()
    yield
    stripe_breaker.close()
