import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.dependencies import etg_supplier_service
from app.api.deps import engine
from app.api.routers.bookings import router as bookings_router
from app.api.routers.health import router as health_router
from app.api.routers.webhooks import router as webhooks_router
from app.api.routers.worker import router as worker_router
from app.config import get_settings
from app.domain.errors import (
    DomainError,
    NoRatesAvailableError,
    ReservationNotFoundError,
    SupplierError,
    ValidationError,
)
from app.infrastructure.db.tables import metadata

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    supplier_service = None
    if not settings.use_in_memory:
        # Missing ETG credentials abort startup
        supplier_service = etg_supplier_service()
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
    yield
    # Cleanup
    if supplier_service is not None:
        await supplier_service.close()
        etg_supplier_service.cache_clear()
    await engine.dispose()

app = FastAPI(
    title="Hotel Bookings API",
    version="0.1.0",
    lifespan=lifespan
)


def _error_body(exc: DomainError, **extra) -> dict:
    return {"detail": exc.message, "code": exc.code, **extra}


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content=_error_body(exc, fields=exc.fields))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({".".join(str(part) for part in error["loc"][1:]) or "body" for error in exc.errors()})
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "code": "VALIDATION_ERROR", "fields": fields})


@app.exception_handler(ReservationNotFoundError)
async def not_found_handler(request: Request, exc: ReservationNotFoundError):
    return JSONResponse(status_code=404, content=_error_body(exc))


@app.exception_handler(NoRatesAvailableError)
async def no_rates_handler(request: Request, exc: NoRatesAvailableError):
    return JSONResponse(status_code=422, content=_error_body(exc))


@app.exception_handler(SupplierError)
async def supplier_error_handler(request: Request, exc: SupplierError):
    logger.error(
        "Supplier error surfaced to client",
        extra={
            "path": request.url.path,
            "error_code": exc.code,
            "http_status": exc.http_status,
            "capability": exc.capability,
        },
    )
    return JSONResponse(
        status_code=502,
        content=_error_body(exc, supplier_status=exc.http_status, capability=exc.capability),
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=409, content=_error_body(exc))


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
app.include_router(webhooks_router, prefix="/api/v1", tags=["Webhooks"])
app.include_router(worker_router, prefix="/api/v1", tags=["Worker"])
