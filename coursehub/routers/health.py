"""Health check endpoints."""
from fastapi import APIRouter, Depends
import logging

from ..core.config import settings
from ..core.database import health_check_db
from ..core.realtime import get_room_registry
from ..services.chat.room_registry import RoomRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])

@router.get("/")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "CourseHub Realtime",
        "version": settings.app_version,
    }

@router.get("/db")
async def database_health():
    """Database connectivity check"""
    healthy = await health_check_db()
    return {"status": "healthy" if healthy else "unhealthy"}

@router.get("/realtime")
async def realtime_health(registry: RoomRegistry = Depends(get_room_registry)):
    """Live room and connection counts for this process"""
    return {"status": "healthy", **registry.stats()}
