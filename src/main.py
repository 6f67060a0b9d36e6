import asyncio
import logging
import traceback
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from starlette.middleware.cors import CORSMiddleware

from src.routers import shipping_settings, order_shipments, custom_order_quotes
from src.database import Base, engine, SessionLocal
from src.core.settings import get_shipping_label_settings
from src.core.container_config import get_configured_container
from src.core.locks import get_shipment_lock_manager
from src.core.exceptions import (
    BaseApplicationException,
    ValidationException,
    NotFoundException,
    InfrastructureException,
    ProviderUnavailableException
)
from src.services.sync.label_reconciliation_service import run_label_reconciliation_task

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

PROVIDER_RETRY_AFTER_SECONDS = 30


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    Base.metadata.create_all(bind=engine)

    reconciliation_task = None
    if get_shipping_label_settings().label_reconciliation_enabled:
        reconciliation_task = asyncio.create_task(run_label_reconciliation_task(SessionLocal))
        logger.info("Label reconciliation task scheduled")

    yield

    # Cleanup
    if reconciliation_task is not None:
        reconciliation_task.cancel()
        with suppress(asyncio.CancelledError):
            await reconciliation_task
    await get_shipment_lock_manager().close()


app = FastAPI(
    title="Shipping Label API",
    lifespan=lifespan
)

# Inizializza il container DI
get_configured_container()

origins = ["http://localhost:4200", "http://localhost:8000"]

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# GLOBAL EXCEPTION HANDLERS
# ============================================================================

def _error_body(error_code: str, message: str, status_code: int, details=None) -> dict:
    return {"error_code": error_code, "message": message, "details": details or {}, "status_code": status_code}


def _application_error(request: Request, exc: BaseApplicationException, level: int, headers=None) -> JSONResponse:
    logger.log(level, f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.error_code} - {exc.message}",
               extra={"error_code": exc.error_code, "details": exc.details})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(BaseApplicationException)
async def application_exception_handler(request: Request, exc: BaseApplicationException):
    # InvalidState, ProviderRejected, ConcurrentModification...: esiti di business, non guasti
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    return _application_error(request, exc, level)

@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException):
    return _application_error(request, exc, logging.WARNING)

@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException):
    return _application_error(request, exc, logging.INFO)

@app.exception_handler(ProviderUnavailableException)
async def provider_unavailable_exception_handler(request: Request, exc: ProviderUnavailableException):
    """Vettore non raggiungibile o esito ambiguo: lo stato del collo non è cambiato, il client può ritentare"""
    return _application_error(request, exc, logging.WARNING,
                              headers={"Retry-After": str(PROVIDER_RETRY_AFTER_SECONDS)})

@app.exception_handler(InfrastructureException)
async def infrastructure_exception_handler(request: Request, exc: InfrastructureException):
    return _application_error(request, exc, logging.ERROR)

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Body o parametri non conformi agli schemi pydantic"""
    logger.warning(f"Request validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", 422, jsonable_errors(exc))
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """401/403 dell'autenticazione e 404 di routing"""
    logger.info(f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", str(exc.detail), exc.status_code),
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}",
                 extra={"traceback": traceback.format_exc()})
    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_SERVER_ERROR", "Internal server error", 500)
    )


def jsonable_errors(exc: RequestValidationError):
    """Gli errori pydantic possono contenere eccezioni non serializzabili in ctx"""
    from fastapi.encoders import jsonable_encoder
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str})


app.include_router(shipping_settings.router)
app.include_router(order_shipments.router)
app.include_router(custom_order_quotes.router)
