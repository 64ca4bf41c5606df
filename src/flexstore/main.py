from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_fastapi_instrumentator import Instrumentator

from flexstore.api.routes.activity_logs import router as activity_logs_router
from flexstore.api.routes.auth import router as auth_router
from flexstore.api.routes.databases import router as databases_router
from flexstore.api.routes.records import router as records_router
from flexstore.config import get_settings
from flexstore.db.database import create_tables
from flexstore.errors import FlexstoreError, RateLimited
from flexstore.logging_config import configure_logging
from flexstore.tracing import configure_tracing

# ------------------------------------------------------------------
# Configure Observability
# ------------------------------------------------------------------
configure_logging()
configure_tracing()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if get_settings().auto_create_tables:
        create_tables()
        logger.info("Database tables ensured")
    yield


app = FastAPI(title="flexstore", lifespan=lifespan)

app.include_router(auth_router)
app.include_router(databases_router)
app.include_router(records_router)
app.include_router(activity_logs_router)


# ------------------------------------------------------------------
# Error rendering
# ------------------------------------------------------------------
@app.exception_handler(FlexstoreError)
async def flexstore_error_handler(request: Request, exc: FlexstoreError):
    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "invalid_input", "message": message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "internal_error", "message": "Internal server error"},
    )


# ------------------------------------------------------------------
# Observability
# ------------------------------------------------------------------
FastAPIInstrumentor.instrument_app(app)
Instrumentator().instrument(app).expose(app)


# ------------------------------------------------------------------
# Health Check
# ------------------------------------------------------------------
@app.get("/health")
def health_check():
    return {"status": "ok"}
