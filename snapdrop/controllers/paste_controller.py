import logging
import os
import re
import uuid
from datetime import timedelta
from pathlib import Path
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from snapdrop.core.clock import utcnow
from snapdrop.core.config import get_settings
from snapdrop.core.errors import CollaboratorError, NotFound, ValidationError
from snapdrop.core.keys import allocate_key, validate_key
from snapdrop.core.storage import BlobStore
from snapdrop.repositories.paste_repo import (
    create_paste as insert_paste,
    delete_paste_by_id,
    get_paste_by_key,
    increment_views_and_fetch,
    key_exists,
)
from snapdrop.repositories.paste_file_repo import (
    create_paste_file,
    delete_files_for_pastes,
    list_files_for_paste,
    list_storage_paths,
)
from snapdrop.schemas.file_schema import IncomingFile, PasteFileCreate
from snapdrop.schemas.paste_schema import (
    PasteCreate,
    PasteCreated,
    PasteDeleteResponse,
    PasteFileRead,
    PasteView,
)

logger = logging.getLogger("snapdrop.pastes")


def _storage_path(key: str, filename: str) -> str:
    ext = re.sub(r"[^A-Za-z0-9]", "", Path(filename).suffix)
    suffix = f".{ext.lower()}" if ext else ""
    return f"{key}/{uuid.uuid4()}{suffix}"


def purge_paste(db: Session, blobs: BlobStore, paste_id: int) -> bool:
    """Remove a paste with every attached blob and file row.

    Blobs go first, then file rows, then the paste. A blob failure is logged
    and does not stop the row deletes.
    """
    paths = list_storage_paths(db, [paste_id])
    try:
        blobs.remove(paths)
    except CollaboratorError:
        logger.exception("Failed to remove blobs of paste %s", paste_id)
    delete_files_for_pastes(db, [paste_id])
    return delete_paste_by_id(db, paste_id)


def _purge_quietly(db: Session, blobs: BlobStore, paste_id: int, reason: str) -> None:
    try:
        purge_paste(db, blobs, paste_id)
        logger.info("Deleted paste %s (%s)", paste_id, reason)
    except (SQLAlchemyError, CollaboratorError):
        db.rollback()
        logger.exception("Failed to delete paste %s (%s)", paste_id, reason)


def create_paste(
    db: Session,
    blobs: BlobStore,
    data: PasteCreate,
    files: list[IncomingFile],
) -> PasteCreated:
    settings = get_settings()
    content = (data.content or "").strip()
    if not content and not files:
        raise ValidationError("Please enter some code/text or upload files")
    if len(content) > settings.max_paste_chars:
        raise ValidationError(f"Content too large. Maximum size is {settings.max_paste_chars} characters")

    filename = (data.filename or "").strip() or None
    key = allocate_key(
        db,
        key_exists,
        length=settings.key_length,
        max_attempts=settings.key_max_attempts,
    )
    created_at = utcnow()
    expires_at = created_at + timedelta(days=settings.paste_ttl_days)
    paste = insert_paste(
        db,
        key,
        PasteCreate(content=content, filename=filename, delete_after_view=data.delete_after_view),
        created_at=created_at,
        expires_at=expires_at,
    )

    stored: list[PasteFileRead] = []
    uploaded_paths: list[str] = []
    try:
        for incoming in files:
            storage_path = _storage_path(key, incoming.filename)
            blobs.upload(storage_path, incoming.data)
            uploaded_paths.append(storage_path)
            row = create_paste_file(
                db,
                PasteFileCreate(
                    file_id=str(uuid.uuid4()),
                    paste_id=paste.paste_id,
                    filename=os.path.basename(incoming.filename) or "file",
                    mime_type=incoming.mime_type or "application/octet-stream",
                    size_bytes=len(incoming.data),
                    storage_path=storage_path,
                ),
                uploaded_at=utcnow(),
            )
            stored.append(PasteFileRead.model_validate(row))
    except (SQLAlchemyError, CollaboratorError) as exc:
        logger.exception("Failed to store files for paste %s, rolling back", key)
        db.rollback()
        try:
            blobs.remove(uploaded_paths)
        except CollaboratorError:
            logger.exception("Failed to remove partial uploads of paste %s", key)
        _purge_quietly(db, blobs, paste.paste_id, "failed creation")
        raise CollaboratorError("Failed to create paste. Please try again.") from exc

    logger.info(
        "Created paste %s (files=%d, delete_after_view=%s, expires_at=%s)",
        key,
        len(stored),
        data.delete_after_view,
        expires_at.isoformat(),
    )
    return PasteCreated(
        key=key,
        created_at=created_at,
        expires_at=expires_at,
        delete_after_view=data.delete_after_view,
        files=stored,
    )


def view_paste(db: Session, blobs: BlobStore, key: str) -> PasteView:
    settings = get_settings()
    validate_key(key, settings.key_length)

    viewed = increment_views_and_fetch(db, key)
    if viewed is None:
        raise NotFound()

    if utcnow() >= viewed.expires_at:
        _purge_quietly(db, blobs, viewed.paste_id, "expired")
        raise NotFound()

    files = list_files_for_paste(db, viewed.paste_id)
    deletion_scope = None
    if viewed.delete_after_view:
        if viewed.previous_views == 0:
            if files:
                deletion_scope = "files"
            else:
                _purge_quietly(db, blobs, viewed.paste_id, "viewed once")
                deletion_scope = "paste"
        elif not files:
            # Consumed by an earlier viewer whose delete has not landed yet.
            raise NotFound()

    logger.info("Served paste %s (views=%d)", key, viewed.views)
    return PasteView(
        key=viewed.key,
        content=viewed.content,
        filename=viewed.filename,
        views=viewed.views,
        previous_views=viewed.previous_views,
        created_at=viewed.created_at,
        expires_at=viewed.expires_at,
        delete_after_view=viewed.delete_after_view,
        deletion_scope=deletion_scope,
        files=[PasteFileRead.model_validate(f) for f in files],
    )


def delete_paste(db: Session, blobs: BlobStore, key: str) -> PasteDeleteResponse:
    validate_key(key, get_settings().key_length)
    paste = get_paste_by_key(db, key)
    if paste is None:
        return PasteDeleteResponse(deleted=False, message="Paste already deleted")
    deleted = purge_paste(db, blobs, paste.paste_id)
    if not deleted:
        return PasteDeleteResponse(deleted=False, message="Paste already deleted")
    logger.info("Deleted paste %s on request", key)
    return PasteDeleteResponse(deleted=True, message="Paste deleted successfully")
