"""Identidad del usuario a partir de headers puestos por el gateway de autenticación."""

from collections.abc import Mapping

from app.application.interfaces.identity import IdentityProvider, Principal, Role

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
INSTRUCTOR_ID_HEADER = "X-Instructor-Id"


class HeaderIdentityProvider(IdentityProvider):
    """
    Resuelve el Principal desde headers ya autenticados upstream.

    Un instructor debe enviar también X-Instructor-Id (su registro de instructor).
    Cualquier combinación incompleta se trata como no autenticada.
    """

    async def resolve(self, headers: Mapping[str, str]) -> Principal | None:
        user_id = (headers.get(USER_ID_HEADER) or "").strip()
        raw_role = (headers.get(USER_ROLE_HEADER) or "").strip().lower()
        if not user_id or not raw_role:
            return None
        try:
            role = Role(raw_role)
        except ValueError:
            return None

        instructor_id = (headers.get(INSTRUCTOR_ID_HEADER) or "").strip() or None
        if role == Role.INSTRUCTOR and not instructor_id:
            return None
        return Principal(user_id=user_id, role=role, instructor_id=instructor_id)
