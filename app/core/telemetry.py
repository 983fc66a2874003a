"""
OpenTelemetry instrumentation for FastAPI.

Dapr propagates trace context and exports spans; this module only creates
spans for local operations (HTTP handlers, sidecar calls and MongoDB).
"""

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

from app.core.logger import logger


def instrument_app(app):
    """Instrument the application, its HTTPX client calls and PyMongo"""
    try:
        FastAPIInstrumentor.instrument_app(app)
        HTTPXClientInstrumentor().instrument()
        PymongoInstrumentor().instrument()
        logger.info(
            "OpenTelemetry instrumentation complete",
            metadata={"event": "telemetry_instrumented"}
        )
    except Exception as e:
        # Tracing is optional; the service runs without it
        logger.error("Failed to instrument application", error=e)
