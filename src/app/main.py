# src/app/main.py
from __future__ import annotations
import asyncio
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.app.config import settings
from src.app.deps import get_existing_scheduler, get_scheduler
from src.app.routers.admin import router as admin_router

# Logging simples no stdout (bom para dev e containers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

log = logging.getLogger("app")

app = FastAPI(title="Receita Rápida API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin_router)


async def _bootstrap_scheduler() -> None:
    try:
        await get_scheduler().start()
    except Exception:
        log.exception("autogen.bootstrap_failed")


@app.on_event("startup")
async def startup() -> None:
    if settings.AUTOGEN_BOOTSTRAP:
        # Started in the background so the first cycle does not delay startup.
        app.state.autogen_bootstrap = asyncio.create_task(_bootstrap_scheduler())


@app.on_event("shutdown")
async def shutdown() -> None:
    bootstrap = getattr(app.state, "autogen_bootstrap", None)
    if bootstrap is not None and not bootstrap.done():
        await bootstrap
    scheduler = get_existing_scheduler()
    if scheduler is not None:
        await scheduler.shutdown()


@app.get("/health")
def health():
    return {"ok": True}
