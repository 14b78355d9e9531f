import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from tholvi.adapters.sqlite.migrator import SQLiteMigrator
from tholvi.api.deps import get_rules, get_settings
from tholvi.app_shell.config import validate_ops_rules
from tholvi.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=os.environ.get("THOLVI_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = get_settings()

    # Load rules, validate and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        logger.info("Rules loaded from %s", settings.rules_path)
        SQLiteMigrator(
            settings.db_path,
            str(settings.migrations_dir),
            timeout=rules.store.timeout_seconds,
        ).run_migrations()
    except Exception as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="TholviTrader API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from tholvi.api.routes import (  # noqa: E402
    admin_content,
    admin_payments,
    admin_settings,
    admin_users,
    auth,
    content,
    files,
    notifications,
    payments,
    public,
    uploads,
    users,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(public.router, prefix="/api/public", tags=["Public"])
app.include_router(content.router, prefix="/api/content", tags=["Content"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(admin_content.router, prefix="/api/admin", tags=["Admin Content"])
app.include_router(admin_payments.router, prefix="/api/admin/payments", tags=["Admin Payments"])
app.include_router(admin_users.router, prefix="/api/admin", tags=["Admin Users"])
app.include_router(admin_settings.router, prefix="/api/admin/settings", tags=["Admin Settings"])
app.include_router(uploads.router, prefix="/api", tags=["Uploads"])
app.include_router(files.router, prefix="/files", tags=["Files"])


@app.middleware("http")
async def limit_upload_size(request: Request, call_next: Any) -> Any:
    """Refuse an upload whose declared length is over the limit before reading its body."""
    if request.method == "POST" and "/uploads/" in request.url.path:
        settings = app.dependency_overrides.get(get_settings, get_settings)()
        max_bytes = get_rules(settings).uploads.max_upload_bytes
        length = request.headers.get("content-length", "")
        if length.isdigit() and int(length) > max_bytes + uploads.MULTIPART_OVERHEAD_BYTES:
            logger.warning("Refused %s byte upload to %s", length, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"detail": uploads.too_large_detail(max_bytes)},
            )
    return await call_next(request)


# CORS (Allow Frontend)
origins = [
    origin.strip()
    for origin in os.environ.get(
        "THOLVI_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
