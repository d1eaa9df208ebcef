"""Aggregate app for the render service."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from renderhub import __version__
from renderhub.assets.routes import router as assets_router
from renderhub.common.error_envelope import register_error_handlers
from renderhub.common.health import router as health_router
from renderhub.compositions.routes import router as compositions_router
from renderhub.config import runtime_config
from renderhub.renders.routes import router as renders_router
from renderhub.uploads.routes import router as uploads_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    for directory in (runtime_config.get_renders_dir(), runtime_config.get_public_dir()):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(f"Cannot create {directory}: {exc}")
    logger.info("Render server ready")
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Render Server", version=__version__, lifespan=_lifespan)

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    )

    app.include_router(health_router)
    app.include_router(renders_router)
    app.include_router(compositions_router)
    app.include_router(assets_router)
    app.include_router(uploads_router)

    @app.get("/gallery", include_in_schema=False)
    def gallery():
        page = runtime_config.get_gallery_page()
        if not page.is_file():
            raise HTTPException(status_code=404, detail="Gallery page not found")
        return FileResponse(page, media_type="text/html")

    # Mounted after the routers so GET /renders and DELETE /renders/{filename} win.
    app.mount("/renders", StaticFiles(directory=runtime_config.get_renders_dir(), check_dir=False), name="renders")
    app.mount("/public", StaticFiles(directory=runtime_config.get_public_dir(), check_dir=False), name="public")
    return app


app = create_app()
