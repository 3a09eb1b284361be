from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import select, update, delete
from snapdrop.models.paste_model import Paste
from snapdrop.models.paste_file_model import PasteFile
from snapdrop.schemas.file_schema import FileDownload, PasteFileCreate

_files = PasteFile.__table__


def create_paste_file(db: Session, data: PasteFileCreate, uploaded_at: datetime) -> PasteFile:
    f = PasteFile(**data.model_dump(), uploaded_at=uploaded_at)
    db.add(f)
    db.commit()
    db.refresh(f)
    return f


def list_files_for_paste(db: Session, paste_id: int) -> list[PasteFile]:
    stmt = (
        select(PasteFile)
        .where(PasteFile.paste_id == paste_id)
        .where(PasteFile.consumed_at.is_(None))
        .order_by(PasteFile.uploaded_at, PasteFile.file_id)
    )
    return list(db.execute(stmt).scalars().all())


def list_storage_paths(db: Session, paste_ids: list[int]) -> list[str]:
    if not paste_ids:
        return []
    stmt = select(PasteFile.storage_path).where(PasteFile.paste_id.in_(paste_ids))
    return list(db.execute(stmt).scalars().all())


def get_file_for_download(db: Session, file_id: str, key: str, now: datetime) -> FileDownload | None:
    """Resolve a file of a live paste, claiming it when the paste is consume-once.

    The claim is a conditional UPDATE on ``consumed_at``; of several
    concurrent callers only the one whose update matched gets the row.
    """
    stmt = (
        select(
            PasteFile.file_id,
            PasteFile.paste_id,
            PasteFile.storage_path,
            PasteFile.filename,
            PasteFile.mime_type,
            Paste.delete_after_view,
        )
        .join(Paste, Paste.paste_id == PasteFile.paste_id)
        .where(PasteFile.file_id == file_id)
        .where(Paste.key == key)
        .where(Paste.expires_at > now)
        .where(PasteFile.consumed_at.is_(None))
    )
    row = db.execute(stmt).first()
    if row is None:
        return None

    if row.delete_after_view:
        live_paste = select(Paste.paste_id).where(Paste.key == key).where(Paste.expires_at > now)
        claim = (
            update(_files)
            .where(_files.c.file_id == file_id)
            .where(_files.c.consumed_at.is_(None))
            .where(_files.c.paste_id.in_(live_paste))
            .values(consumed_at=now)
        )
        result = db.execute(claim)
        db.commit()
        if result.rowcount != 1:
            return None

    return FileDownload(
        file_id=row.file_id,
        paste_id=row.paste_id,
        storage_path=row.storage_path,
        filename=row.filename,
        mime_type=row.mime_type,
        should_delete=bool(row.delete_after_view),
    )


def delete_file_by_id(db: Session, file_id: str) -> bool:
    result = db.execute(delete(_files).where(_files.c.file_id == file_id))
    db.commit()
    return result.rowcount > 0


def delete_files_for_pastes(db: Session, paste_ids: list[int]) -> int:
    if not paste_ids:
        return 0
    result = db.execute(delete(_files).where(_files.c.paste_id.in_(paste_ids)))
    db.commit()
    return result.rowcount
