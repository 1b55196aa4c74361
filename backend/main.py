"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api import ingest, manual, plaid
from config import settings
from database import init_db
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and prepare the database on startup.

    A missing Plaid credential raises ``ConfigurationError`` here, so the
    server never starts in a state where an ingest would fail mid-run.
    """
    settings.require_plaid_credentials()
    init_db()
    logger.info("Mint Lite API ready (environment=%s)", settings.PLAID_ENVIRONMENT)
    yield


app = FastAPI(
    title="Mint Lite",
    description="Personal finance data hub: Plaid ingest and rule-based categorization",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(plaid.router)
app.include_router(ingest.router)
app.include_router(manual.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
