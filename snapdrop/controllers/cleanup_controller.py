import logging
from sqlalchemy.orm import Session
from snapdrop.core.clock import utcnow
from snapdrop.core.errors import CollaboratorError
from snapdrop.core.storage import BlobStore
from snapdrop.repositories.paste_repo import delete_expired_pastes, list_expired_paste_ids
from snapdrop.repositories.paste_file_repo import delete_files_for_pastes, list_storage_paths
from snapdrop.schemas.paste_schema import CleanupResponse

logger = logging.getLogger("snapdrop.cleanup")


def cleanup_expired(db: Session, blobs: BlobStore) -> CleanupResponse:
    """Delete every paste whose ``expires_at`` has passed, files included.

    Safe to run concurrently with itself: rows already gone are skipped.
    """
    now = utcnow()
    logger.info("Starting cleanup of expired pastes...")
    paste_ids = list_expired_paste_ids(db, now)
    if paste_ids:
        paths = list_storage_paths(db, paste_ids)
        try:
            blobs.remove(paths)
        except CollaboratorError:
            logger.exception("Failed to remove some blobs of expired pastes")
        delete_files_for_pastes(db, paste_ids)
    deleted_count = delete_expired_pastes(db, paste_ids, now)
    logger.info("Cleanup complete. Deleted %d expired pastes.", deleted_count)
    return CleanupResponse(
        deletedCount=deleted_count,
        message=f"Deleted {deleted_count} expired pastes",
    )
