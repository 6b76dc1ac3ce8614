"""
HubSpoke Server - CSV Endpoints

This module contains endpoints for importing sites from the card-sort CSV
file and exporting the current hierarchy in the same format.
"""

import logging
from typing import Optional
from fastapi import APIRouter, File as FastAPIFile, Form, HTTPException, Response, UploadFile, status

from csv_transform import ParseCsvText, ExportSitesToRows, RowsToCsvText, ExportFileName
from routes.responses import ValueOrRaise


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


@router.post("/api/csv/upload", status_code=status.HTTP_201_CREATED, tags=["CSV"])
async def upload_csv(
    file: UploadFile = FastAPIFile(...),
    user_id: Optional[str] = Form(None)
):
    """
    Import a CSV file as one committed changeset

    Raises:
        HTTPException: 400 if the file is not a readable CSV, 422 with every
                       validation error if the rows are invalid
    """
    from database import changeset_engine

    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed"
        )

    content = await file.read()
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded"
        )

    rows = ParseCsvText(text)
    logger.info(f"Received CSV upload '{file.filename}' with {len(rows)} rows")

    changeset = ValueOrRaise(changeset_engine.ImportCsv(rows, user_id, f"CSV Import: {file.filename}"))
    return {
        "success": True,
        "sites_created": len(changeset["site_changes"]),
        "changeset": changeset
    }


@router.get("/api/csv/export", tags=["CSV"])
async def export_csv():
    """
    Export all sites as a CSV download
    """
    from database import site_registry

    text = RowsToCsvText(ExportSitesToRows(site_registry))
    filename = ExportFileName()
    return Response(
        content=text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
