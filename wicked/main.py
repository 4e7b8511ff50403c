#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Wicked — FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from wicked.core.config import get_settings
from wicked.core.database import create_all_tables, init_db
from wicked.routes import auth, pages
from wicked.ui import views
from wicked.ui.templating import templates


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    init_db()
    await create_all_tables()   # safe: CREATE TABLE IF NOT EXISTS
    log.info("wicked %s ready", get_settings().app_version)
    yield


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A wiki whose pages answer their own requests.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # ── Static files ──────────────────────────────────────────────────────

    static_dir = Path(__file__).parent / "static"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api/v1"

    app.include_router(auth.router,  prefix=prefix)
    app.include_router(pages.router, prefix=prefix)

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {"status": "ok", "version": settings.app_version, "app": settings.app_name}

    # ── UI (Jinja2) router, last: it owns every remaining path ────────────

    app.include_router(views.router)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if request.url.path.startswith("/api/"):
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail},
                headers=getattr(exc, "headers", None),
            )
        return templates.TemplateResponse(
            request,
            "error.html",
            {"site_name": settings.site_name, "home_page": settings.home_page,
             "user": None, "status_code": exc.status_code, "message": exc.detail},
            status_code=exc.status_code,
        )

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------
