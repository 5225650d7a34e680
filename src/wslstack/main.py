import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from wslstack import __version__
from wslstack.api import provisioning
from wslstack.models.database import init_db
from wslstack.models.schemas import HealthResponse

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        logger.info("Starting wslstack application...")
        await init_db()
        logger.info("Database initialized")

        yield

        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Lifespan error: {e}")
        raise


app = FastAPI(
    title="wslstack - WSL and backing service provisioning",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(
    provisioning.router,
    prefix="/api/provisioning",
    tags=["provisioning"],
)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok")
