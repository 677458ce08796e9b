import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import _in_memory_bundle, seed_demo_instructor
from app.api.routers.bookings import router as bookings_router
from app.api.routers.health import router as health_router
from app.api.routers.payments import router as payments_router
from app.config import get_settings
from app.domain.errors import DomainError
from app.infrastructure.db.engine import engine
from app.infrastructure.db.tables import metadata

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DOMAIN_ERROR_STATUS = {
    "NOT_FOUND": 404,
    "INVALID_TRANSITION": 409,
    "DOUBLE_BOOKING": 409,
    "SLOT_UNAVAILABLE": 409,
    "PAYMENT_ALREADY_INITIATED": 409,
    "CHECK_IN_WINDOW_CLOSED": 409,
    "NOT_AUTHORIZED": 403,
    "INELIGIBLE": 403,
    "MALFORMED_TOKEN": 422,
    "BOOKING_MISMATCH": 422,
    "INVALID_AMOUNT": 422,
    "AMOUNT_MISMATCH": 422,
    "PAYOUT_ACCOUNT_NOT_READY": 422,
    "VALIDATION_ERROR": 422,
    "INVALID_WEBHOOK_EVENT": 400,
    "PAYMENT_PROVIDER_ERROR": 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB tables (for dev/demo purposes)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    settings = get_settings()
    if settings.use_in_memory and settings.demo_instructor_id:
        seed_demo_instructor(
            _in_memory_bundle(), settings.demo_instructor_id, settings.demo_payout_account_ref
        )
        logger.info(
            "Demo instructor seeded",
            extra={"instructor_id": settings.demo_instructor_id},
        )
    yield
    await engine.dispose()

app = FastAPI(
    title="Lesson Lifecycle API",
    version="0.1.0",
    lifespan=lifespan
)


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    status_code = DOMAIN_ERROR_STATUS.get(exc.code, 400)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "Domain error",
        extra={
            "code": exc.code,
            "path": request.url.path,
            "method": request.method,
            "status_code": status_code,
        },
    )
    content = {"detail": exc.message, "code": exc.code, **exc.context()}
    if exc.retryable:
        content["retryable"] = True
    return JSONResponse(status_code=status_code, content=content)


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])
app.include_router(payments_router, prefix="/api/v1", tags=["Payments"])
