"""
Health check endpoints for container orchestration.

- /health and /health/live: liveness, always 200 while the process runs
- /health/ready: readiness, checks the database when running in SQL mode
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_session
from app.infrastructure.circuit_breaker import stripe_breaker

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "lesson-lifecycle-api"


@router.get("/health")
async def health_check():
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/live")
async def health_check_live():
    """Alias for /health; some orchestrators prefer the /live naming."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/ready")
async def health_check_ready(session: AsyncSession | None = Depends(get_session)):
    """
    Readiness check.

    Returns 503 when the database does not answer. The payment circuit state is
    reported but never fails readiness: bookings and check-ins work without Stripe.
    """
    health_status = {
        "status": "ready",
        "checks": {"payments_circuit": stripe_breaker.current_state},
    }

    if session is None:
        health_status["checks"]["database"] = "in_memory"
        return health_status

    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        health_status["checks"]["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.error("Readiness check: Database unhealthy", exc_info=e)
        health_status["status"] = "not_ready"
        health_status["checks"]["database"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
