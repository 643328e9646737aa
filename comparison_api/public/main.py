"""
FastAPI application for the baseline comparison service.

- Baselines: store and read reference performance runs
- Comparisons: classify a run against a baseline, with fingerprint + HMAC evidence
- Audit logging (request ID, payload hash, latency, status)
- Domain errors mapped to HTTP via ComparisonErrorTaxonomy
"""
from fastapi import FastAPI, status, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import os
import json
import logging
import uuid
import time
from contextvars import ContextVar

from perf_kits.baseline_comparison.error_taxonomy import ComparisonErrorTaxonomy
from perf_kits.baseline_comparison.exceptions import BaselineComparisonError

from comparison_api.public.routes import health, baselines, comparisons
from comparison_api.public.middleware.audit_logging import AuditLoggingMiddleware
from comparison_api.public.db_init import init_db_if_enabled
from comparison_api.public.settings import settings

# Context var for trace_id (used in logging)
trace_id_ctx: ContextVar[str] = ContextVar('trace_id', default='-')


# Logging filter to inject trace_id into all log records
class TraceIdFilter(logging.Filter):
    def filter(self, record):
        record.trace_id = trace_id_ctx.get()
        return True


# Configure logging (audit logs to stdout)
root_logger = logging.getLogger()
if not root_logger.handlers:
    logging.basicConfig(
        level=logging.INFO,
        format='[%(trace_id)s] %(message)s',
    )

for handler in logging.root.handlers:
    if not any(isinstance(f, TraceIdFilter) for f in handler.filters):
        handler.addFilter(TraceIdFilter())

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Performance Baseline Comparison API",
    description="Compare performance-test results against stored baselines with deterministic verdicts.",
    version=settings.api_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)


@app.get("/")
def root():
    return {"name": "Performance Baseline Comparison API", "status": "running"}


@app.on_event("startup")
def _startup():
    if init_db_if_enabled():
        logger.info(json.dumps({"event": "db_init", "store": settings.baseline_store}))


# Trace ID middleware (sets request.state.trace_id and adds response headers)
@app.middleware("http")
async def add_trace_id_middleware(request: Request, call_next):
    trace_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.trace_id = trace_id

    token = trace_id_ctx.set(trace_id)
    try:
        start = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start

        response.headers["X-Request-ID"] = trace_id
        response.headers["X-Process-Time"] = str(process_time)
        return response
    finally:
        trace_id_ctx.reset(token)


if settings.enable_audit_logging:
    app.add_middleware(AuditLoggingMiddleware)

app.include_router(health.router)
app.include_router(baselines.router)
app.include_router(comparisons.router)


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", None) or request.headers.get("X-Request-ID") or str(uuid.uuid4())


# Domain errors: status code and error code come from the taxonomy
@app.exception_handler(BaselineComparisonError)
async def comparison_error_handler(request: Request, exc: BaselineComparisonError):
    info = ComparisonErrorTaxonomy.classify(exc)
    trace_id = _trace_id(request)
    logger.warning(json.dumps({
        "event": "comparison_error",
        "trace_id": trace_id,
        "category": info["category"],
        "error_code": info["error_code"],
        "error_type": type(exc).__name__,
        "message": str(exc),
    }))
    return JSONResponse(
        status_code=info["http_status"],
        content={
            "trace_id": trace_id,
            "status": "error",
            "error": {
                "code": info["error_code"],
                "message": str(exc),
                "category": info["category"],
            },
        },
    )


# HTTPException handler (wraps all HTTPException into ErrorResponse format)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict):
        err = exc.detail
    else:
        err = {"code": str(exc.detail), "message": str(exc.detail)}

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "trace_id": _trace_id(request),
            "status": "error",
            "error": err,
        },
        headers=getattr(exc, "headers", None),
    )


# RequestValidationError handler (wraps 422 validation errors into ErrorResponse format)
@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "trace_id": _trace_id(request),
            "status": "error",
            "error": {
                "code": "REQUEST_VALIDATION_ERROR",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "trace_id": _trace_id(request),
            "status": "error",
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred."
            }
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "comparison_api.public.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
    )
