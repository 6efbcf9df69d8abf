"""FastAPI application entrypoint.

Responsibilities kept minimal:
  * App / lifespan initialization (logging, schema)
  * Router registration (dashboard pages, meetings API, oauth)
  * Cross-cutting concerns: request id + metrics middleware, exception handlers
"""

from contextlib import asynccontextmanager
import logging
import os
import uuid
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from .config import get_settings, load_dotenv_if_enabled

load_dotenv_if_enabled()

from .api.dashboard import router as dashboard_router  # noqa: E402
from .api.meetings import router as meetings_router  # noqa: E402
from .api.oauth import router as oauth_router  # noqa: E402
from .db import models  # noqa: E402,F401 register models before create_all
from .db.session import engine, Base  # noqa: E402
from .errors import BaseAppException, InternalServerError  # noqa: E402
from .logging_config import configure_logging, request_id_var  # noqa: E402
from .services.state_store import get_state_store  # noqa: E402

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - simple startup path
    configure_logging(level=settings.log_level, service_name=settings.service_name)
    for problem in settings.validate():
        logger.warning("configuration problem", extra={"problem": problem})
    if not settings.nylas_configured:
        logger.warning("Nylas credentials not configured; calendar calls will fail")
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Booking Dashboard", version="0.1.0", lifespan=lifespan)

# --- OpenTelemetry Tracing (enabled by endpoint env) ---
if os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"):
    resource = Resource.create({"service.name": settings.service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"))))
    trace.set_tracer_provider(provider)
    tracer = trace.get_tracer(__name__)
else:
    tracer = None

# --- Metrics setup ---
REQUEST_COUNT = Counter(
    "booking_dashboard_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
REQUEST_LATENCY = Histogram(
    "booking_dashboard_request_latency_seconds", "Latency of HTTP requests", ["method", "path"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard_router)
app.include_router(meetings_router)
app.include_router(oauth_router)


def _path_label(path: str) -> str:
    # collapse ids so the label set stays bounded
    if path.startswith("/meetings/") and len(path) > len("/meetings/"):
        return "/meetings/:id"
    return path


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    method = request.method
    path_label = _path_label(request.url.path)
    with REQUEST_LATENCY.labels(method=method, path=path_label).time():
        if tracer:
            with tracer.start_as_current_span(f"HTTP {method} {path_label}"):
                response: Response = await call_next(request)
        else:
            response: Response = await call_next(request)
    REQUEST_COUNT.labels(method=method, path=path_label, status=str(response.status_code)).inc()
    return response


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = request_id_var.set(request_id)
    try:
        response: Response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/metrics")
def metrics():  # pragma: no cover - external scrape
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    if exc.http_status >= 500:
        logger.warning("request failed", extra={"code": exc.code, "path": request.url.path})
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": {"code": exc.code, "message": exc.message}},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error", extra={"path": request.url.path})
    err = InternalServerError("unexpected error")
    return JSONResponse(
        status_code=err.http_status,
        content={"detail": {"code": err.code, "message": err.message}},
    )


@app.get("/healthz")
async def health():
    health = {"status": "ok"}
    store = get_state_store()
    health["oauthStateBackend"] = store.backend
    if store.backend == "redis":
        try:
            health["redis"] = "up" if store.ping() else "down"
        except Exception:
            health["redis"] = "error"
    health["tracing"] = "enabled" if tracer else "disabled"
    return health
