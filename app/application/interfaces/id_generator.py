"""Interface IdGenerator - Puerto para generación de identificadores únicos."""

import uuid
from abc import ABC, abstractmethod


class IdGenerator(ABC):
    """
    Puerto para generación de identificadores únicos.

    Permite inyectar implementaciones fake para testing determinista.
    """

    @abstractmethod
    def generate_booking_id(self) -> str:
        raise NotImplementedError


class RealIdGenerator(IdGenerator):
    """Implementación real que genera UUIDs aleatorios."""

    def generate_booking_id(self) -> str:
        return str(uuid.uuid4())


class FakeIdGenerator(IdGenerator):
    """Genera valores predecibles para pruebas deterministas."""

    def __init__(self, prefix: str = "booking"):
        self._prefix = prefix
        self._booking_counter = 0

    def generate_booking_id(self) -> str:
        self._booking_counter += 1
        return f"{self._prefix}-{self._booking_counter:04d}"
