# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""FastAPI server: admin and market read endpoints, background price poller."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv


# Load .env first so provider keys are visible to the credential resolver (for uvicorn and the CLI)
def _load_env() -> None:
    # 1) Repo root .env; override so file wins over empty shell vars
    _env_file = Path(__file__).resolve().parents[2] / ".env"
    if _env_file.exists():
        load_dotenv(_env_file, override=True)
    # 2) Current working directory .env
    load_dotenv()


_load_env()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from investwatch import __version__
from investwatch.api.admin_routes import router as admin_router
from investwatch.api.deps import get_services
from investwatch.api.market_routes import router as market_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Startup: build services, start the poller when enabled. Shutdown: stop it."""
    services = get_services()
    poller_enabled = services.config.poller.enabled
    if poller_enabled:
        services.poller.start()
        logger.info("[POLLER] enabled interval=%ss", services.config.poller.interval_sec)
    else:
        logger.info("[POLLER] disabled (PRICE_POLL_ENABLED=false)")

    yield

    if poller_enabled:
        services.poller.stop()


app = FastAPI(title="InvestWatch API", version=__version__, lifespan=_lifespan)

_CORS_ORIGINS = [
    o.strip() for o in (os.getenv("UI_CORS_ORIGINS") or "http://localhost:3000").split(",") if o.strip()
] or ["http://localhost:3000"]

app.include_router(admin_router)
app.include_router(market_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "version": __version__}


def run(host: str = "127.0.0.1", port: int = 8000) -> None:
    import uvicorn

    uvicorn.run(app, host=host, port=port)


__all__ = ["app", "run"]
