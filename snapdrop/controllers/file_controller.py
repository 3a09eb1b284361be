import logging
import re
from urllib.parse import quote
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from snapdrop.controllers.paste_controller import purge_paste
from snapdrop.core.clock import utcnow
from snapdrop.core.config import get_settings
from snapdrop.core.errors import BlobNotFound, CollaboratorError, NotFound, ValidationError
from snapdrop.core.keys import validate_key
from snapdrop.core.storage import BlobStore
from snapdrop.repositories.paste_file_repo import delete_file_by_id, get_file_for_download
from snapdrop.schemas.file_schema import FileDownload

logger = logging.getLogger("snapdrop.files")


def safe_filename(filename: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", filename) or "file"


def content_disposition(filename: str) -> str:
    """ASCII fallback name plus the RFC 5987 form when the name needs encoding."""
    fallback = safe_filename(filename)
    value = f'attachment; filename="{fallback}"'
    encoded = quote(filename, safe="")
    if encoded != fallback:
        value += f"; filename*=utf-8''{encoded}"
    return value


def _consume(db: Session, blobs: BlobStore, info: FileDownload) -> None:
    """Tear down a consume-once file and its parent paste, step by step."""
    try:
        blobs.remove([info.storage_path])
    except CollaboratorError:
        logger.exception("Failed to remove blob of file %s", info.file_id)
    try:
        delete_file_by_id(db, info.file_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete metadata of file %s", info.file_id)
    try:
        purge_paste(db, blobs, info.paste_id)
    except (SQLAlchemyError, CollaboratorError):
        db.rollback()
        logger.exception("Failed to delete parent paste %s of file %s", info.paste_id, info.file_id)


def download_file(
    db: Session,
    blobs: BlobStore,
    file_id: str | None,
    key: str | None,
) -> tuple[FileDownload, bytes]:
    if not file_id or not key:
        raise ValidationError("Missing fileId or key parameter")
    validate_key(key, get_settings().key_length)

    info = get_file_for_download(db, file_id, key, utcnow())
    if info is None:
        raise NotFound("File not found or already deleted")

    try:
        data = blobs.download(info.storage_path)
    except BlobNotFound as exc:
        # Lost the race to a concurrent delete or sweep.
        logger.info("Blob of file %s vanished before download", file_id)
        raise NotFound("File not found or already deleted") from exc
    except CollaboratorError as exc:
        logger.exception("Failed to download blob of file %s", file_id)
        raise CollaboratorError("Failed to download file") from exc

    if info.should_delete:
        logger.info("Deleting file %s after first view", file_id)
        _consume(db, blobs, info)
    return info, data
