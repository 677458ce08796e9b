"""Servicios de infraestructura."""

from app.infrastructure.services.header_identity_provider import HeaderIdentityProvider

__all__ = [
    "HeaderIdentityProvider",
]
