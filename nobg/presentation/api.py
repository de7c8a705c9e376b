from __future__ import annotations

import base64
import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from nobg.application.image_encoding import output_filename, read_upload
from nobg.application.remove_background_use_case import RemovalGuard, RemoveBackgroundUseCase
from nobg.config import settings
from nobg.domain.errors import (
    EmptyResultError,
    ImageReadError,
    ModelCommunicationError,
    NoImageSelectedError,
    RemovalError,
    RemovalInProgressError,
    UnknownMediaTypeError,
)
from nobg.domain.models import RemovalResult
from nobg.infrastructure.gemini_background_remover import GeminiBackgroundRemover
from nobg.infrastructure.metrics import metrics
from nobg.infrastructure.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger("nobg.api")
if not logger.handlers:
    logging.basicConfig(level=settings.log_level)

STATIC_DIR = Path(__file__).resolve().parent / "static"

ERROR_STATUS: dict[type[RemovalError], int] = {
    NoImageSelectedError: 400,
    ImageReadError: 400,
    UnknownMediaTypeError: 415,
    RemovalInProgressError: 409,
    ModelCommunicationError: 502,
    EmptyResultError: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails startup when the API key is missing.
    if getattr(app.state, "use_case", None) is None:
        remover = GeminiBackgroundRemover.from_settings(settings)
        app.state.use_case = RemoveBackgroundUseCase(remover, max_pixels=settings.max_result_pixels)
        logger.info("gemini background remover ready model=%s", remover.model)
    yield


app = FastAPI(title="AI Background Remover", lifespan=lifespan)
app.state.guard = RemovalGuard()
rate_limiter = SlidingWindowRateLimiter(window_seconds=60.0)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()

        request.state.request_id = request_id
        metrics.incr("http_requests_total")

        if request.url.path.startswith("/api/"):
            client_ip = request.client.host if request.client else "unknown"
            if not rate_limiter.allow(client_ip, settings.rate_limit_per_minute):
                metrics.incr("rate_limited_total")
                return Response(
                    content='{"detail":"Rate limit exceeded. Try again in a minute."}',
                    status_code=429,
                    media_type="application/json",
                    headers={"x-request-id": request_id},
                )

        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        response.headers["x-request-id"] = request_id
        logger.info(
            json.dumps(
                {
                    "request_id": request_id,
                    "method": request.method,
                    "path": str(request.url.path),
                    "status": response.status_code,
                    "elapsed_ms": elapsed_ms,
                }
            )
        )
        return response


app.add_middleware(RequestContextMiddleware)


def _client_key(request: Request) -> str:
    session_id = request.headers.get("x-session-id")
    if session_id:
        return session_id
    return request.client.host if request.client else "unknown"


def _ensure_upload_size(file: UploadFile) -> None:
    if file.size is not None and file.size > settings.max_image_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"{file.filename or 'file'} is too large. Max size is {settings.max_image_bytes // (1024 * 1024)} MB",
        )


def _content_disposition(filename: str) -> str:
    stem = Path(filename).stem.removesuffix("_no-bg")
    safe = "".join(ch for ch in stem if ch.isascii() and (ch.isalnum() or ch in ("-", "_", ".")))
    fallback = f"{safe or 'download'}_no-bg.png"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _use_case(request: Request) -> RemoveBackgroundUseCase:
    use_case = getattr(request.app.state, "use_case", None)
    if use_case is None:
        raise HTTPException(status_code=503, detail="Background remover is not configured")
    return use_case


async def _run_removal(request: Request, file: UploadFile | None) -> tuple[RemovalResult, str]:
    use_case = _use_case(request)
    guard: RemovalGuard = request.app.state.guard
    request_id = getattr(request.state, "request_id", "-")
    metrics.incr("removals_requested_total")

    try:
        with guard.hold(_client_key(request)):
            selected = None
            if file is not None:
                _ensure_upload_size(file)
                selected = await read_upload(file)
            result = await use_case.execute(selected)
    except RemovalError as exc:
        metrics.incr("removals_failed_total")
        logger.warning("removal failed request_id=%s kind=%s: %s", request_id, type(exc).__name__, exc)
        raise HTTPException(status_code=ERROR_STATUS.get(type(exc), 500), detail=str(exc)) from exc
    except HTTPException:
        metrics.incr("removals_failed_total")
        raise

    metrics.incr("removals_succeeded_total")
    return result, output_filename(file.filename if file is not None else None)


@app.post("/api/remove-bg")
async def remove_bg(request: Request, file: UploadFile | None = File(None)) -> dict[str, str | None]:
    result, filename = await _run_removal(request, file)
    return {
        "image": result.image,
        "note": result.note,
        "filename": filename,
        "media_type": "image/png",
    }


@app.post("/api/remove-bg/download")
async def remove_bg_download(request: Request, file: UploadFile | None = File(None)) -> Response:
    result, filename = await _run_removal(request, file)
    metrics.incr("downloads_total")
    return Response(
        content=base64.b64decode(result.image or ""),
        media_type="image/png",
        headers={"Content-Disposition": _content_disposition(filename)},
    )


@app.get("/api/metrics")
def get_metrics() -> dict:
    snapshot: dict = metrics.snapshot()
    snapshot["timestamp"] = int(datetime.now(timezone.utc).timestamp())
    return snapshot


@app.get("/api/metrics/prometheus")
def get_prometheus_metrics() -> PlainTextResponse:
    return PlainTextResponse(metrics.to_prometheus_text(), media_type="text/plain; version=0.0.4")


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/")
def root() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html")


app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
