"""
Health and operational API endpoints
"""

import time
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from app.core.config import config
from app.core.logger import logger
from app.db.mongodb import db

router = APIRouter()

# Track service start time
start_time = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health_check():
    """Liveness probe"""
    return {
        "status": "healthy",
        "service": config.service_name,
        "timestamp": _now(),
        "uptime_seconds": round(time.time() - start_time, 2),
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness probe: MongoDB reachable and Dapr sidecar healthy"""
    checks = [await check_database_health(), await check_dapr_sidecar_health()]
    failed = [check["name"] for check in checks if check["status"] != "healthy"]

    body = {
        "status": "ready" if not failed else "not ready",
        "service": config.service_name,
        "timestamp": _now(),
        "checks": checks,
    }
    if failed:
        logger.warning(
            f"Readiness check failed - {len(failed)} checks failed",
            metadata={"event": "readiness_check_failed", "failed_checks": failed}
        )
        return JSONResponse(status_code=503, content=body)
    return body


async def check_database_health() -> dict:
    check_start = time.time()
    try:
        if db.client is None:
            raise RuntimeError("MongoDB client not initialised")
        await db.client.admin.command('ping')
        return {
            "name": "database",
            "status": "healthy",
            "response_time_ms": round((time.time() - check_start) * 1000, 2),
        }
    except (PyMongoError, RuntimeError) as e:
        return {"name": "database", "status": "unhealthy", "error": str(e)}


async def check_dapr_sidecar_health() -> dict:
    health_url = f"http://localhost:{config.dapr_http_port}/v1.0/healthz"
    try:
        async with httpx.AsyncClient(timeout=3.0) as client:
            response = await client.get(health_url)
        if response.status_code == 204 or response.status_code == 200:
            return {"name": "dapr", "status": "healthy"}
        return {"name": "dapr", "status": "unhealthy", "error": f"status {response.status_code}"}
    except httpx.HTTPError as e:
        return {"name": "dapr", "status": "unhealthy", "error": str(e)}


@router.get("/version")
def get_version():
    """Service version information"""
    return {
        "service": config.service_name,
        "version": config.service_version,
        "api_version": config.api_version,
        "environment": config.environment,
        "timestamp": _now(),
    }
