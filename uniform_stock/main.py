# uniform_stock/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from uniform_stock.api.routers.inventory import router as inventory_router
from uniform_stock.api.routers.items import router as items_router
from uniform_stock.core.config import get_settings
from uniform_stock.core.logging import APP_LOGGER, setup_logging
from uniform_stock.db.base import init_models
from uniform_stock.db.session import close_engines
from uniform_stock.http_problem_handlers import register_exception_handlers
from uniform_stock.metrics import router as metrics_router

settings = get_settings()
setup_logging(settings.LOG_LEVEL, sql_echo=settings.SQL_ECHO)
logger = logging.getLogger(APP_LOGGER)

init_models()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("uniform-stock starting (env=%s)", settings.ENV)
    yield
    await close_engines()


app = FastAPI(
    title="Uniform Stock",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:8000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(inventory_router)
app.include_router(items_router)
app.include_router(metrics_router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
