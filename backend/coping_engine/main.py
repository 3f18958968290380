"""Coping Paver Layout Engine: FastAPI application entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coping_engine.api.routes_export import router as export_router
from coping_engine.api.routes_extend import router as extend_router
from coping_engine.api.routes_layout import router as layout_router
from coping_engine.config import settings
from coping_engine.logging_config import setup_logging

__version__ = "0.1.0"

setup_logging(settings.log_level, settings.log_file)

app = FastAPI(
    title=settings.app_name,
    version=__version__,
    debug=settings.debug,
    description="Lay coping pavers around a pool outline, extend rows up to boundaries, export to DXF.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(layout_router, prefix="/api")
app.include_router(extend_router, prefix="/api")
app.include_router(export_router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": __version__}
