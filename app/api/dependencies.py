from datetime import time
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.clock import Clock, SystemClock
from app.application.interfaces.id_generator import IdGenerator, RealIdGenerator
from app.application.interfaces.identity import IdentityProvider, Principal
from app.application.use_cases.booking_state_machine import BookingStateMachine, LessonPolicy
from app.application.use_cases.check_in_protocol import CheckInProtocol
from app.application.use_cases.handle_stripe_webhook import HandleStripeWebhookUseCase
from app.application.use_cases.payment_intent_orchestrator import PaymentIntentOrchestrator
from app.config import Settings, get_settings
from app.domain.entities.availability_slot import AvailabilitySlot
from app.domain.entities.payout_account import PayoutAccount
from app.domain.services.fee_split_calculator import FeeSplitCalculator
from app.infrastructure.db.engine import AsyncSessionLocal
from app.infrastructure.db.repositories.availability_repo_sql import AvailabilityRepoSQL
from app.infrastructure.db.repositories.booking_repo_sql import BookingRepoSQL
from app.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from app.infrastructure.db.repositories.payout_account_repo_sql import PayoutAccountRepoSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.gateways.stripe_gateway_real import StripeGatewayReal
from app.infrastructure.in_memory import (
    InMemoryAvailabilityRepo,
    InMemoryBookingRepo,
    InMemoryOutboxRepo,
    InMemoryPayoutAccountRepo,
    InMemoryStripeGateway,
    InMemoryTransactionManager,
)
from app.infrastructure.services.header_identity_provider import HeaderIdentityProvider


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


def get_clock() -> Clock:
    return SystemClock()


def get_id_generator() -> IdGenerator:
    return RealIdGenerator()


def get_identity_provider() -> IdentityProvider:
    return HeaderIdentityProvider()


async def get_principal(
    request: Request,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    principal = await identity_provider.resolve(request.headers)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return principal


@lru_cache(maxsize=1)
def _in_memory_bundle():
    return {
        "booking_repo": InMemoryBookingRepo(),
        "availability_repo": InMemoryAvailabilityRepo(),
        "payout_account_repo": InMemoryPayoutAccountRepo(),
        "outbox_repo": InMemoryOutboxRepo(),
        "stripe_gateway": InMemoryStripeGateway(),
        "tx_manager": InMemoryTransactionManager(),
    }


def seed_demo_instructor(adapters: dict, instructor_id: str, account_ref: str) -> None:
    """Makes one instructor bookable every day 08:00-20:00 with a ready payout account."""
    for day_of_week in range(7):
        adapters["availability_repo"].add_slot(
            AvailabilitySlot(
                instructor_id=instructor_id,
                day_of_week=day_of_week,
                start_time=time(8, 0),
                end_time=time(20, 0),
            )
        )
    adapters["payout_account_repo"].save(
        PayoutAccount(
            instructor_id=instructor_id,
            account_ref=account_ref,
            onboarding_complete=True,
        )
    )


def _build_use_cases(adapters: dict, settings: Settings, clock: Clock, id_generator: IdGenerator):
    fee_calculator = FeeSplitCalculator(settings.platform_fee_rate)
    state_machine = BookingStateMachine(
        booking_repo=adapters["booking_repo"],
        availability_repo=adapters["availability_repo"],
        outbox_repo=adapters["outbox_repo"],
        transaction_manager=adapters["tx_manager"],
        clock=clock,
        id_generator=id_generator,
        policy=LessonPolicy.from_settings(settings),
        currency_code=settings.currency_code,
    )
    payments = PaymentIntentOrchestrator(
        booking_repo=adapters["booking_repo"],
        payout_account_repo=adapters["payout_account_repo"],
        stripe_gateway=adapters["stripe_gateway"],
        state_machine=state_machine,
        fee_calculator=fee_calculator,
        transaction_manager=adapters["tx_manager"],
        clock=clock,
    )
    return {
        "bookings": state_machine,
        "check_in": CheckInProtocol(
            state_machine=state_machine,
            clock=clock,
            token_secret=settings.checkin_token_secret,
            token_max_age_seconds=settings.checkin_token_max_age_seconds,
        ),
        "payments": payments,
        "fee_calculator": fee_calculator,
        "handle_webhook": HandleStripeWebhookUseCase(
            orchestrator=payments,
            stripe_gateway=adapters["stripe_gateway"],
            stripe_webhook_secret=settings.stripe_webhook_secret,
        ),
    }


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
    clock: Clock = Depends(get_clock),
    id_generator: IdGenerator = Depends(get_id_generator),
):
    if settings.use_in_memory:
        return _build_use_cases(_in_memory_bundle(), settings, clock, id_generator)

    if not session:
        raise RuntimeError("DB session not available")

    adapters = {
        "booking_repo": BookingRepoSQL(session),
        "availability_repo": AvailabilityRepoSQL(session),
        "payout_account_repo": PayoutAccountRepoSQL(session),
        "outbox_repo": OutboxRepoSQL(session),
        "stripe_gateway": StripeGatewayReal(
            api_key=settings.stripe_api_key,
            timeout_seconds=settings.stripe_timeout_seconds,
        ),
        "tx_manager": SQLAlchemyTransactionManager(session),
    }
    return _build_use_cases(adapters, settings, clock, id_generator)
