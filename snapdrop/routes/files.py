from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from snapdrop.core.cors import CORS_HEADERS, preflight_response
from snapdrop.core.db import get_db
from snapdrop.core.storage import BlobStore, get_blob_store
from snapdrop.controllers.file_controller import content_disposition, download_file

router = APIRouter(tags=["files"])


@router.options("/download-file", include_in_schema=False)
def download_file_preflight():
    return preflight_response()


@router.get("/download-file")
def download_file_route(
    file_id: str | None = Query(None, alias="fileId"),
    key: str | None = Query(None),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    info, data = download_file(db, blobs, file_id, key)
    return Response(
        content=data,
        status_code=200,
        media_type=info.mime_type,
        headers={
            **CORS_HEADERS,
            "Content-Disposition": content_disposition(info.filename),
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )
