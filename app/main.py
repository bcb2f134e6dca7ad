# app/main.py
from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import routers
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.storage.local import PREVIEWS_URL_PREFIX

# === إعدادات وتسجيل ===
settings = get_settings()
logger = configure_logging()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
)

# === CORS ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Routers ===
for router in routers:
    app.include_router(router)

# === صور المعاينة المحفوظة ===
previews_dir: Path = settings.public_dir / "previews"
previews_dir.mkdir(parents=True, exist_ok=True)
app.mount(PREVIEWS_URL_PREFIX, StaticFiles(directory=str(previews_dir)), name="previews")


@app.get("/health")
async def health_check() -> dict:
    logger.debug("Health check invoked")
    return {
        "status": "ok",
        "message": "Preview Generator API is running",
        "pdf_rasterizer": settings.pdf_rasterizer,
    }
