"""Interfaces (Puertos) de la capa de aplicación."""

from app.application.interfaces.availability_repo import AvailabilityRepo
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock, FakeClock, SystemClock
from app.application.interfaces.id_generator import FakeIdGenerator, IdGenerator, RealIdGenerator
from app.application.interfaces.identity import IdentityProvider, Principal, Role
from app.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo
from app.application.interfaces.payout_account_repo import PayoutAccountRepo
from app.application.interfaces.stripe_gateway import SplitChargeResult, StripeGateway
from app.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    # Repositories
    "AvailabilityRepo",
    "BookingRepo",
    "OutboxRepo",
    "OutboxEvent",
    "PayoutAccountRepo",
    # Gateways
    "StripeGateway",
    "SplitChargeResult",
    "IdentityProvider",
    "Principal",
    "Role",
    # Infrastructure
    "TransactionManager",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "IdGenerator",
    "RealIdGenerator",
    "FakeIdGenerator",
]
