"""
HOPETRACK export service - FastAPI application entry point.
"""
from __future__ import annotations

import logging
import os
import sys
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.api.authz import token_enforcement_enabled
from packages.shared.storage import DATA_DIR


def _parse_csv_env(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return [value.strip() for value in raw.split(",") if value.strip()]


def _parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("hopetrack")

app = FastAPI(
    title="HOPETRACK Export API",
    description="Case report rendering (PDF, Word, CSV, Excel) for HOPETRACK case management",
    version="0.1.0",
)

cors_allow_origins = _parse_csv_env(
    "CORS_ALLOW_ORIGINS",
    [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
)
cors_allow_credentials = _parse_bool_env("CORS_ALLOW_CREDENTIALS", True)
audit_logging_enabled = _parse_bool_env("EXPORT_AUDIT_LOGGING", True)
max_request_bytes = int(os.getenv("MAX_REQUEST_BYTES", str(10 * 1024 * 1024)))

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "x-auth-token", "X-Request-Id"],
    expose_headers=["Content-Disposition", "X-Request-Id"],
)


@app.middleware("http")
async def request_size_and_audit_middleware(request: Request, call_next):
    started = time.perf_counter()
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex

    if request.url.path != "/health":
        content_length = request.headers.get("Content-Length")
        if content_length:
            try:
                if int(content_length) > max_request_bytes:
                    return JSONResponse(
                        status_code=413,
                        content={"detail": "Request entity too large"},
                        headers={"X-Request-Id": request_id},
                    )
            except ValueError:
                pass

    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    response.headers.setdefault("X-Content-Type-Options", "nosniff")

    if audit_logging_enabled:
        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "request_audit request_id=%s method=%s path=%s status=%s duration_ms=%s",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )

    return response


@app.on_event("startup")
def startup():
    logger.info(
        "Export service starting (token enforcement=%s, data_dir=%s)",
        token_enforcement_enabled(),
        DATA_DIR,
    )


# Register routes
from apps.api.routes.exports import router as exports_router  # noqa: E402

app.include_router(exports_router)


@app.get("/health")
def health():
    return {"status": "ok", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("apps.api.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
