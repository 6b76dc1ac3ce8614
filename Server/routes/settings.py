"""
HubSpoke Server - Settings Endpoints
"""

import logging
from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from models.api import SettingsUpdateRequest


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()

VALID_DELETE_POLICIES = ["cascade", "orphan"]


@router.get("/api/settings", tags=["Settings"])
async def get_settings():
    """
    Get current server settings

    Returns:
        Dictionary of all server settings
    """
    from database import db_manager

    db_session = db_manager.GetSession()
    try:
        settings = db_manager.GetSettings(db_session)
        settings["lock_timeout_seconds"] = int(settings["lock_timeout_seconds"])
        return settings
    finally:
        db_session.close()


@router.put("/api/settings", tags=["Settings"])
async def update_settings(request: SettingsUpdateRequest):
    """
    Update server settings; omitted fields keep their value

    Raises:
        HTTPException: 400 for an unknown delete policy
    """
    from database import db_manager

    if request.delete_policy is not None and request.delete_policy not in VALID_DELETE_POLICIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid delete_policy. Must be one of: {', '.join(VALID_DELETE_POLICIES)}"
        )

    db_session = db_manager.GetSession()
    try:
        for key, value in request.model_dump(exclude_none=True).items():
            db_manager.SetSetting(db_session, key, str(value))
            logger.info(f"Setting updated: {key} = {value}")
        db_session.commit()

        settings = db_manager.GetSettings(db_session)
        settings["lock_timeout_seconds"] = int(settings["lock_timeout_seconds"])
        return settings

    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"Error updating settings: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update settings"
        )
    finally:
        db_session.close()
