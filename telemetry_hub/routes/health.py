"""
Telemetry Hub - Health Check Routes

Provides health check endpoints for monitoring.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemetry_hub.routes.deps import get_db
from telemetry_hub.timeutil import format_timestamp, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "ok",
        "timestamp": format_timestamp(utcnow()),
        "service": "telemetry-hub",
    }


@router.get("/ready")
def readiness(db: Session = Depends(get_db)):
    """Readiness check - verifies database connectivity"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.error("Readiness check failed", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "timestamp": format_timestamp(utcnow())},
        )
    return {
        "status": "ready",
        "timestamp": format_timestamp(utcnow()),
    }


@router.get("/live")
async def liveness():
    """Liveness check - indicates service is running"""
    return {
        "status": "alive",
        "timestamp": format_timestamp(utcnow()),
    }
