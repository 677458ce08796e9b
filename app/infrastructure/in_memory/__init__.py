"""Implementaciones in-memory para desarrollo y testing."""

from app.infrastructure.in_memory.availability_repo import InMemoryAvailabilityRepo
from app.infrastructure.in_memory.booking_repo import InMemoryBookingRepo
from app.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from app.infrastructure.in_memory.payout_account_repo import InMemoryPayoutAccountRepo
from app.infrastructure.in_memory.stripe_gateway import StubStripeGateway as InMemoryStripeGateway
from app.infrastructure.in_memory.transaction_manager import InMemoryTransactionManager

__all__ = [
    # Repositories
    "InMemoryAvailabilityRepo",
    "InMemoryBookingRepo",
    "InMemoryOutboxRepo",
    "InMemoryPayoutAccountRepo",
    # Gateways
    "InMemoryStripeGateway",
    # Infrastructure
    "InMemoryTransactionManager",
]
