"""
Circuit Breaker configuration for payment processor calls.

CLOSED: requests pass through. OPEN: too many consecutive failures, requests fail
immediately with CircuitBreakerError. HALF_OPEN: after `reset_timeout` one trial
request decides whether the circuit closes again.
"""

import logging

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)


class StateChangeLogger(CircuitBreakerListener):
    """Logs circuit transitions so an open circuit is visible in the service logs."""

    def __init__(self, name: str) -> None:
        self.name = name

    def state_change(self, cb, old_state, new_state) -> None:
        logger.warning(
            "Circuit breaker state changed",
            extra={
                "breaker_name": self.name,
                "old_state": old_state.name if old_state else None,
                "new_state": new_state.name,
            },
        )


stripe_breaker = CircuitBreaker(
    fail_max=5,  # Open circuit after 5 consecutive failures
    reset_timeout=60,  # Seconds before a trial request is allowed
    name="stripe_circuit_breaker",
    listeners=[StateChangeLogger("stripe")],
)


__all__ = [
    "stripe_breaker",
    "CircuitBreakerError",
    "StateChangeLogger",
]
