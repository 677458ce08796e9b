"""
Capa de Aplicación - Ciclo de vida de clases de manejo.

Esta capa contiene los casos de uso e interfaces (puertos).
Orquesta la lógica de negocio y define los contratos con la infraestructura.

Estructura:
- use_cases/: Máquina de estados, protocolo de check-in, pagos divididos y webhook
- interfaces/: Puertos (contratos para adaptadores)
"""

from app.application.interfaces import (
    AvailabilityRepo,
    BookingRepo,
    Clock,
    FakeClock,
    FakeIdGenerator,
    IdentityProvider,
    IdGenerator,
    OutboxEvent,
    OutboxRepo,
    PayoutAccountRepo,
    Principal,
    RealIdGenerator,
    Role,
    SplitChargeResult,
    StripeGateway,
    SystemClock,
    TransactionManager,
)

__all__ = [
    # Interfaces - Repositories
    "AvailabilityRepo",
    "BookingRepo",
    "OutboxRepo",
    "OutboxEvent",
    "PayoutAccountRepo",
    # Interfaces - Gateways
    "StripeGateway",
    "SplitChargeResult",
    "IdentityProvider",
    "Principal",
    "Role",
    # Interfaces - Infrastructure
    "TransactionManager",
    # Interfaces - Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "IdGenerator",
    "RealIdGenerator",
    "FakeIdGenerator",
]
