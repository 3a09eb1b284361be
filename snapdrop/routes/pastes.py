from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from snapdrop.core.config import get_settings
from snapdrop.core.db import get_db
from snapdrop.core.errors import PayloadTooLarge
from snapdrop.core.storage import BlobStore, get_blob_store
from snapdrop.controllers.paste_controller import create_paste, delete_paste, view_paste
from snapdrop.schemas.file_schema import IncomingFile
from snapdrop.schemas.paste_schema import (
    PasteCreate,
    PasteCreated,
    PasteDeleteResponse,
    PasteView,
)

router = APIRouter(prefix="/pastes", tags=["pastes"])


async def _read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    buffer = bytearray()
    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise PayloadTooLarge(f"File too large. Max size is {max_bytes} bytes.")
    return bytes(buffer)


@router.post("", response_model=PasteCreated, status_code=status.HTTP_201_CREATED)
async def create_paste_route(
    content: str = Form(""),
    filename: str | None = Form(None),
    delete_after_view: bool = Form(False),
    files: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    settings = get_settings()
    incoming = []
    for upload in files or []:
        data = await _read_upload_bytes(upload, settings.max_upload_bytes)
        incoming.append(
            IncomingFile(
                filename=upload.filename or "file",
                mime_type=upload.content_type or "application/octet-stream",
                data=data,
            )
        )
    payload = PasteCreate(content=content, filename=filename, delete_after_view=delete_after_view)
    return create_paste(db, blobs, payload, incoming)


@router.get("/{key}", response_model=PasteView)
def view_paste_route(
    key: str,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return view_paste(db, blobs, key)


@router.delete("/{key}", response_model=PasteDeleteResponse)
def delete_paste_route(
    key: str,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return delete_paste(db, blobs, key)
