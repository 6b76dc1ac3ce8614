"""
HubSpoke Server - Status Endpoints

This module contains status-related endpoints: health check and
registry lock status.
"""

from datetime import datetime, timezone
from fastapi import APIRouter


# Create router instance
router = APIRouter()


# ==================== Health Check Endpoint ====================

@router.get("/health", tags=["Status"])
async def health_check():
    """
    Health check endpoint to verify server is running

    Returns:
        dict: Server status information
    """
    from database import site_registry

    return {
        "status": "healthy",
        "service": "HubSpoke Manager Server",
        "version": "1.0.0",
        "site_count": len(site_registry) if site_registry is not None else 0,
        "timestamp_utc": datetime.now(timezone.utc).isoformat()
    }


# ==================== Status Endpoints ====================

@router.get("/status/lock", tags=["Status"])
async def get_lock_status():
    """
    Get current registry lock status

    Returns:
        Lock information or indication that the registry is unlocked
    """
    from database import changeset_engine

    lock_info = changeset_engine.GetActiveLockInfo()

    if lock_info is None:
        return {
            "locked": False,
            "user": None,
            "operation": None,
            "title": None,
            "started_ago_seconds": None
        }

    return lock_info
