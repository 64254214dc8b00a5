import logging
import time
import platform
import psutil
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import API_VERSION, SERVICE_NAME
from dependencies.storage import get_store
from services.storage import PredictionStore


root_router = APIRouter(tags=["Health"])
router = APIRouter(prefix="/health", tags=["Health"])

logger = logging.getLogger(__name__)

_START_TIME = time.time()


# ── Schemas ──────────────────────────────────────────────────────────────────

class ComponentHealth(BaseModel):
    status: str  # "healthy" | "unhealthy"
    latency_ms: Optional[float] = None
    detail: Optional[str] = None


class SystemMetrics(BaseModel):
    cpu_percent: float
    memory_percent: float
    memory_available_mb: float
    disk_percent: float
    python_version: str
    os: str


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    variant: str
    environment: str
    uptime_seconds: float
    timestamp: str
    components: dict[str, ComponentHealth]
    system: SystemMetrics


# ── Dependency Checks ────────────────────────────────────────────────────────

def check_storage(store: PredictionStore) -> ComponentHealth:
    """Check the prediction store (file directory or GitHub read)."""
    start = time.perf_counter()
    try:
        store.check()
    except Exception as exc:
        logger.warning("Storage health check failed", extra={"store": store.name, "error": str(exc)})
        return ComponentHealth(status="unhealthy", detail=type(exc).__name__)
    latency_ms = (time.perf_counter() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency_ms, 2))


def get_system_metrics() -> SystemMetrics:
    mem = psutil.virtual_memory()
    disk = psutil.disk_usage("/")
    return SystemMetrics(
        cpu_percent=psutil.cpu_percent(interval=None),
        memory_percent=mem.percent,
        memory_available_mb=round(mem.available / 1_048_576, 1),
        disk_percent=disk.percent,
        python_version=platform.python_version(),
        os=platform.system(),
    )


def _aggregate_status(components: dict[str, ComponentHealth]) -> str:
    if any(c.status == "unhealthy" for c in components.values()):
        return "unhealthy"
    return "healthy"


# ── Endpoints ────────────────────────────────────────────────────────────────

@root_router.get("/", summary="Service liveness")
def root() -> dict[str, str]:
    return {"status": "ok", "service": SERVICE_NAME}


@router.get(
    "",
    summary="Full health check",
    response_model=HealthResponse,
    responses={
        200: {"description": "Service is healthy"},
        503: {"description": "The prediction store is unusable"},
    },
)
def health_check(
    request: Request,
    store: PredictionStore = Depends(get_store),
) -> JSONResponse:
    """
    Checks the prediction store and reports process metrics.
    Responds with **200** when healthy, **503** when the store is unusable.
    """
    settings = request.app.state.settings
    components = {"storage": check_storage(store)}
    overall = _aggregate_status(components)

    payload = HealthResponse(
        status=overall,
        service=SERVICE_NAME,
        version=API_VERSION,
        variant=settings.api_variant,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _START_TIME, 2),
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=components,
        system=get_system_metrics(),
    )

    http_status = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if overall == "unhealthy"
        else status.HTTP_200_OK
    )
    return JSONResponse(content=payload.model_dump(), status_code=http_status)


@router.get(
    "/live",
    summary="Liveness check",
    description="Lightweight liveness check: confirms the process is running.",
)
def liveness() -> dict:
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}
