"""Value Object CheckInToken - payload del QR que el instructor muestra al alumno."""

import hashlib
import hmac
import json
from dataclasses import dataclass, replace

from app.domain.constants import CHECK_IN_ACTION_COMPLETE
from app.domain.errors import MalformedTokenError


@dataclass(frozen=True)
class CheckInToken:
    """
    Token efímero de check-in. Nunca se persiste.

    Formato serializado (JSON compacto):
        {"bookingId": "...", "action": "complete", "timestamp": 1749574800000}
    más "sig" cuando la firma HMAC está habilitada.
    """

    booking_id: str
    issued_at_epoch_millis: int
    action: str = CHECK_IN_ACTION_COMPLETE
    signature: str | None = None

    def _signing_message(self) -> bytes:
        return f"{self.booking_id}|{self.action}|{self.issued_at_epoch_millis}".encode()

    def sign(self, secret: str) -> "CheckInToken":
        """Retorna una copia firmada con HMAC-SHA256."""
        digest = hmac.new(secret.encode(), self._signing_message(), hashlib.sha256).hexdigest()
        return replace(self, signature=digest)

    def has_valid_signature(self, secret: str) -> bool:
        if not self.signature:
            return False
        expected = hmac.new(secret.encode(), self._signing_message(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, self.signature)

    def age_seconds(self, now_epoch_millis: int) -> float:
        return (now_epoch_millis - self.issued_at_epoch_millis) / 1000

    def encode(self) -> str:
        payload = {
            "bookingId": self.booking_id,
            "action": self.action,
            "timestamp": self.issued_at_epoch_millis,
        }
        if self.signature:
            payload["sig"] = self.signature
        return json.dumps(payload, separators=(",", ":"))

    @classmethod
    def decode(cls, raw: str | bytes) -> "CheckInToken":
        """
        Interpreta el payload escaneado.

        Raises:
            MalformedTokenError: si no es JSON o faltan campos obligatorios.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise MalformedTokenError("payload no es JSON") from exc

        if not isinstance(data, dict):
            raise MalformedTokenError("payload no es un objeto")

        booking_id = data.get("bookingId")
        action = data.get("action")
        issued_at = data.get("timestamp")
        signature = data.get("sig")

        if not isinstance(booking_id, str) or not booking_id:
            raise MalformedTokenError("falta bookingId")
        if not isinstance(action, str) or not action:
            raise MalformedTokenError("falta action")
        if action != CHECK_IN_ACTION_COMPLETE:
            raise MalformedTokenError(f"action desconocida: {action}")
        if isinstance(issued_at, bool) or not isinstance(issued_at, int):
            raise MalformedTokenError("falta timestamp")
        if signature is not None and not isinstance(signature, str):
            raise MalformedTokenError("firma inválida")

        return cls(
            booking_id=booking_id,
            issued_at_epoch_millis=issued_at,
            action=action,
            signature=signature,
        )
