from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import audits, expenses, health, registries
from workers import scheduler


def create_app() -> FastAPI:
    """Application factory for the back-office API."""
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            scheduler.enqueue_due_audits()
        except Exception:  # pragma: no cover - safety
            logger.exception("Failed to enqueue due registry audits on startup")
        yield

    app = FastAPI(title="Flower Shop Back Office", version="0.1.0", lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(registries.router)
    app.include_router(expenses.router)
    app.include_router(audits.router)

    return app


app = create_app()
