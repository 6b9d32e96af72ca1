# quoting/main.py
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.quote import router as quote_router
from .core.logging_config import logger, setup_logging
from .core.settings import settings
from .engine.errors import (
    ComputationError,
    ConfigurationError,
    ScenarioUnavailableError,
    ValidationError,
)

# ----------------------------------------------------
# App init
# ----------------------------------------------------
setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="Quoting Engine", version="0.1.0")
logger.info("startup", service="quoting-api", app_env=settings.APP_ENV)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id

    bound_logger = logger.bind(
        request_id=request_id,
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    latency_ms = round((time.time() - start) * 1000, 2)

    response.headers["X-Request-ID"] = request_id
    bound_logger.bind(status_code=response.status_code, latency_ms=latency_ms).info(
        "request_finished"
    )
    return response


# ----------------------------------------------------
# Error translation: internal categories stay in the logs
# ----------------------------------------------------
def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "unknown"


@app.exception_handler(ValidationError)
def validation_error_handler(request: Request, exc: ValidationError):
    logger.bind(request_id=_request_id(request)).info(
        "quote_validation_failed", field=exc.field, module_id=exc.module_id, error=exc.message
    )
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field},
    )


@app.exception_handler(ComputationError)
def computation_error_handler(request: Request, exc: ComputationError):
    logger.bind(request_id=_request_id(request)).error(
        "quote_computation_failed", module_id=exc.module_id, error=exc.message
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "The price could not be computed, please retry."},
    )


@app.exception_handler(ScenarioUnavailableError)
def scenario_unavailable_handler(request: Request, exc: ScenarioUnavailableError):
    logger.bind(request_id=_request_id(request)).warning(
        "quote_scenario_unavailable", scenario_id=exc.scenario_id, available=exc.available
    )
    return JSONResponse(
        status_code=409,
        content={"detail": "Price could not be confirmed, please request a new quote."},
    )


@app.exception_handler(ConfigurationError)
def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.bind(request_id=_request_id(request)).error(
        "quote_configuration_error", error=str(exc)
    )
    return JSONResponse(
        status_code=503,
        content={"detail": "Pricing is temporarily unavailable, please retry."},
    )


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(quote_router)
