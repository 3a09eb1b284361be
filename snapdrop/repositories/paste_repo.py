from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from snapdrop.core.clock import as_utc
from snapdrop.core.errors import KeyExhaustion
from snapdrop.models.paste_model import Paste
from snapdrop.schemas.paste_schema import PasteCreate, ViewedPaste

_pastes = Paste.__table__


def key_exists(db: Session, key: str) -> bool:
    stmt = select(Paste.paste_id).where(Paste.key == key)
    return db.execute(stmt).first() is not None


def create_paste(
    db: Session,
    key: str,
    data: PasteCreate,
    created_at: datetime,
    expires_at: datetime,
) -> Paste:
    paste = Paste(
        key=key,
        content=data.content,
        filename=data.filename,
        views=0,
        delete_after_view=data.delete_after_view,
        created_at=created_at,
        expires_at=expires_at,
    )
    db.add(paste)
    try:
        db.commit()
    except IntegrityError as exc:
        # Another creator took the key between probe and insert.
        db.rollback()
        raise KeyExhaustion() from exc
    db.refresh(paste)
    return paste


def get_paste_by_key(db: Session, key: str) -> Paste | None:
    stmt = select(Paste).where(Paste.key == key)
    return db.execute(stmt).scalars().first()


def increment_views_and_fetch(db: Session, key: str) -> ViewedPaste | None:
    """Bump the view counter and read the row back in one statement.

    Concurrent callers serialize on the row, so exactly one of them sees
    ``views == 1`` (``previous_views == 0``).
    """
    stmt = (
        update(_pastes)
        .where(_pastes.c.key == key)
        .values(views=_pastes.c.views + 1)
        .returning(
            _pastes.c.paste_id,
            _pastes.c.key,
            _pastes.c.content,
            _pastes.c.filename,
            _pastes.c.views,
            _pastes.c.created_at,
            _pastes.c.expires_at,
            _pastes.c.delete_after_view,
        )
    )
    row = db.execute(stmt).mappings().first()
    db.commit()
    if row is None:
        return None
    data = dict(row)
    data["created_at"] = as_utc(data["created_at"])
    data["expires_at"] = as_utc(data["expires_at"])
    data["content"] = data["content"] or ""
    return ViewedPaste(**data)


def delete_paste_by_id(db: Session, paste_id: int) -> bool:
    result = db.execute(delete(_pastes).where(_pastes.c.paste_id == paste_id))
    db.commit()
    return result.rowcount > 0


def list_expired_paste_ids(db: Session, now: datetime) -> list[int]:
    stmt = select(Paste.paste_id).where(Paste.expires_at <= now)
    return list(db.execute(stmt).scalars().all())


def delete_expired_pastes(db: Session, paste_ids: list[int], now: datetime) -> int:
    """Delete the given pastes if they are still expired; returns rows removed."""
    if not paste_ids:
        return 0
    stmt = (
        delete(_pastes)
        .where(_pastes.c.paste_id.in_(paste_ids))
        .where(_pastes.c.expires_at <= now)
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount
