"""
Lodge Ledger – FastAPI application entry point.

Run with:
    lodge-ledger                      (API_HOST / API_PORT from the environment)
    uvicorn lodge_ledger.main:app --reload --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from lodge_ledger.api.routes import router
from lodge_ledger.core.config import settings
from lodge_ledger.core.database import create_db_and_tables
from lodge_ledger.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown hooks."""
    setup_logging()
    logger.info("Starting Lodge Ledger backend …")
    create_db_and_tables()
    logger.info("Database tables ready")
    yield
    logger.info("Lodge Ledger backend shut down")


app = FastAPI(
    title="Lodge Ledger API",
    description="Historical rent and electricity payment import for the lodge back office",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
def root():
    return {"message": "Lodge Ledger API", "docs": "/docs"}


def run() -> None:
    """Console entry point: serve the API on API_HOST:API_PORT."""
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
