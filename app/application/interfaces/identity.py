"""Interface IdentityProvider - Puerto para resolver al usuario que llama."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from app.domain.entities.booking import Booking, CancelledBy


class Role(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"


@dataclass(frozen=True)
class Principal:
    """
    Usuario autenticado.

    user_id identifica al alumno; los instructores además tienen instructor_id
    (registro de instructor distinto del usuario).
    """

    user_id: str
    role: Role
    instructor_id: str | None = None

    @property
    def is_instructor(self) -> bool:
        return self.role == Role.INSTRUCTOR and bool(self.instructor_id)

    def party_in(self, booking: Booking) -> CancelledBy | None:
        """Retorna el lado del booking que ocupa el usuario, o None si no participa."""
        if self.is_instructor and self.instructor_id == booking.instructor_id:
            return CancelledBy.INSTRUCTOR
        if self.role == Role.STUDENT and self.user_id == booking.student_id:
            return CancelledBy.STUDENT
        return None


class IdentityProvider:
    async def resolve(self, headers: Mapping[str, str]) -> Principal | None:
        """Retorna el Principal de la request o None si no está autenticada."""
        raise NotImplementedError
