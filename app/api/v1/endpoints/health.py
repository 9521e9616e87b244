"""
Health check endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from app.core.database import get_session
from app.config import settings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/live")
async def liveness() -> Any:
    """
    Liveness probe
    """
    return {"status": "alive", "service": settings.APP_NAME}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> Any:
    """
    Readiness probe - checks the database
    """
    checks = {
        "database": False,
        "api": True
    }

    try:
        result = await db.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except Exception as e:
        logger.warning(f"Readiness database check failed: {e}")

    ready = all(checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not ready",
            "checks": checks,
            "version": settings.APP_VERSION
        }
    )
