"""
Capa de Infraestructura - Ciclo de vida de clases de manejo.

Esta capa contiene las implementaciones concretas de los puertos (interfaces).

Estructura:
- db/: Engine, tablas y repositorios SQL (SQLAlchemy async)
- gateways/: Adaptador de Stripe Connect
- in_memory/: Implementaciones in-memory para desarrollo y testing
- services/: Servicios de infraestructura (identidad)
- circuit_breaker.py: Circuit breaker del procesador de pagos
"""

# Database
from app.infrastructure.db.repositories.availability_repo_sql import AvailabilityRepoSQL
from app.infrastructure.db.repositories.booking_repo_sql import BookingRepoSQL
from app.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from app.infrastructure.db.repositories.payout_account_repo_sql import PayoutAccountRepoSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

# Gateways
from app.infrastructure.gateways.stripe_gateway_real import StripeGatewayReal

# In-Memory
from app.infrastructure.in_memory import (
    InMemoryAvailabilityRepo,
    InMemoryBookingRepo,
    InMemoryOutboxRepo,
    InMemoryPayoutAccountRepo,
    InMemoryStripeGateway,
    InMemoryTransactionManager,
)

# Services
from app.infrastructure.services.header_identity_provider import HeaderIdentityProvider

__all__ = [
    # Database - Repositories SQL
    "AvailabilityRepoSQL",
    "BookingRepoSQL",
    "OutboxRepoSQL",
    "PayoutAccountRepoSQL",
    "SQLAlchemyTransactionManager",
    # Gateways
    "StripeGatewayReal",
    # In-Memory Implementations
    "InMemoryAvailabilityRepo",
    "InMemoryBookingRepo",
    "InMemoryOutboxRepo",
    "InMemoryPayoutAccountRepo",
    "InMemoryStripeGateway",
    "InMemoryTransactionManager",
    # Services
    "HeaderIdentityProvider",
]
