import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from snapdrop.core.cors import CORS_HEADERS, preflight_response
from snapdrop.core.db import get_db
from snapdrop.core.errors import SnapDropError
from snapdrop.core.storage import BlobStore, get_blob_store
from snapdrop.controllers.cleanup_controller import cleanup_expired
from snapdrop.schemas.paste_schema import CleanupResponse

logger = logging.getLogger("snapdrop.cleanup")

router = APIRouter(tags=["maintenance"])


@router.options("/cleanup-expired", include_in_schema=False)
def cleanup_expired_preflight():
    return preflight_response()


@router.post("/cleanup-expired", response_model=CleanupResponse)
def cleanup_expired_route(
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    try:
        result = cleanup_expired(db, blobs)
    except (SQLAlchemyError, SnapDropError):
        db.rollback()
        logger.exception("Error in cleanup of expired pastes")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to clean up expired pastes"},
            headers=CORS_HEADERS,
        )
    return JSONResponse(content=result.model_dump(), headers=CORS_HEADERS)
