"""PawWalk walk API — main entry point.

This is the only file that wires a concrete gateway into the API layer.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pawwalk.api.monitoring import router as monitoring_router
from pawwalk.api.stamps import router as stamps_router
from pawwalk.api.walks import router as walks_router
from pawwalk.config import AppConfig, load_config
from pawwalk.wiring import make_gateway

if TYPE_CHECKING:
    from pawwalk.storage.base import WalkGateway

log = structlog.get_logger()

# Module-level singletons (set during startup)
_gateway: WalkGateway | None = None
_config: AppConfig | None = None


def get_gateway() -> WalkGateway:
    assert _gateway is not None, "Server not initialized"
    return _gateway


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


def setup_logging(config: AppConfig) -> None:
    """Configure structlog based on the logging config."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _gateway, _config

    _config = load_config()
    setup_logging(_config)

    log.info("server_starting",
             env=_config.server.env,
             storage_backend=_config.storage.backend,
             storage_dir=_config.storage.base_dir)

    _gateway = make_gateway(_config)

    log.info("server_started",
             host=_config.server.host,
             port=_config.server.port)

    yield

    log.info("server_stopped")


app = FastAPI(
    title="PawWalk",
    description="Pet walk records and calendar stamps",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware must be registered before startup, so CORS reads the config eagerly.
app.add_middleware(
    CORSMiddleware,
    allow_origins=load_config().server.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(walks_router)
app.include_router(stamps_router)
app.include_router(monitoring_router)
