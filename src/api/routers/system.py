"""Health check and blob serving for the filesystem and database backends."""

from __future__ import annotations

import mimetypes
import time

import structlog
from fastapi import APIRouter, Request, Response

from src.api.schemas import HealthCheck, HealthResponse
from src.interfaces.storage_provider import IStorageProvider
from src.pipeline.job_queue import JobQueue
from src.utils.errors import StorageNotFoundError

logger = structlog.get_logger(logger_name=__name__)

APP_VERSION = "0.1.0"

# S3 serves its own URLs; these backends rely on the API.
_SERVED_BACKENDS = frozenset({"filesystem", "database", "memory"})

router = APIRouter(tags=["system"])


@router.get("/api/health", response_model=HealthResponse)
async def health(request: Request, response: Response) -> HealthResponse:
    """Report component status; 503 when the database does not answer."""
    state = request.app.state
    worker = getattr(state, "worker", None)
    checks = {"database": await _check_database(state.job_queue)}
    healthy = all(check.status == "ok" for check in checks.values())
    if not healthy:
        response.status_code = 503
    return HealthResponse(
        status="ok" if healthy else "degraded",
        version=APP_VERSION,
        storage=state.storage.get_provider_name(),
        sse_adapter=state.sse_manager.adapter_name,
        sse_connections=state.sse_manager.connection_count(),
        worker_running=bool(worker and worker.is_running),
        active_jobs=worker.active_jobs if worker else 0,
        checks=checks,
    )


async def _check_database(queue: JobQueue) -> HealthCheck:
    start = time.perf_counter()
    try:
        await queue.ping()
    except Exception as exc:  # noqa: BLE001
        latency = round((time.perf_counter() - start) * 1000, 2)
        logger.error("health_database_failed", error=str(exc))
        return HealthCheck(status="error", latency_ms=latency, error=str(exc) or type(exc).__name__)
    return HealthCheck(status="ok", latency_ms=round((time.perf_counter() - start) * 1000, 2))


@router.get("/storage/{key:path}")
async def serve_blob(key: str, request: Request) -> Response:
    storage: IStorageProvider = request.app.state.storage
    if storage.get_provider_name() not in _SERVED_BACKENDS:
        raise StorageNotFoundError(message=f"Blob {key} is not served by this backend")
    data = await storage.download(key)
    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type, headers={"Cache-Control": "private, max-age=300"})
