"""
FastAPI Application - Auction Service
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api import admin, auctions, events, health
from app.core.config import config
from app.core.errors import ErrorResponse, error_response_handler, http_exception_handler
from app.core.logger import logger
from app.core.telemetry import instrument_app
from app.db.mongodb import close_mongo_connection, connect_to_mongo, get_outbox_collection
from app.events.publishers.publisher import get_event_publisher
from app.middleware import TraceContextMiddleware
from app.repositories.outbox import OutboxRepository
from app.services.outbox_relay import OutboxRelay, run_outbox_relay


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting Auction Service...")
    await connect_to_mongo()

    stop_relay = asyncio.Event()
    relay_task = None
    if config.outbox_relay_enabled:
        relay = OutboxRelay(
            OutboxRepository(await get_outbox_collection()),
            get_event_publisher(),
            batch_size=config.outbox_relay_batch_size,
        )
        relay_task = asyncio.create_task(
            run_outbox_relay(relay, config.outbox_relay_interval_seconds, stop_relay)
        )

    logger.info(
        "Auction Service started successfully",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port
        }
    )

    yield

    logger.info("Shutting down Auction Service...")
    stop_relay.set()
    if relay_task is not None:
        await relay_task
    await close_mongo_connection()


app = FastAPI(
    title="Auction Service",
    description="Auction management with event-driven highest bid tracking",
    version=config.service_version,
    lifespan=lifespan
)

instrument_app(app)

app.add_exception_handler(ErrorResponse, error_response_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, lambda request, exc: JSONResponse(
    status_code=422,
    content={"error": "Validation error", "details": jsonable_encoder(exc.errors())}
))

app.add_middleware(TraceContextMiddleware)

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(auctions.router, prefix="/api/auctions", tags=["auctions"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(events.router)  # Dapr pub/sub subscriptions


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.environment == "development"
    )
