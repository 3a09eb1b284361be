import re
import secrets
import string
from typing import Callable

from sqlalchemy.orm import Session

from snapdrop.core.errors import KeyExhaustion, ValidationError

ALPHABET = string.ascii_letters + string.digits
KEY_LENGTH = 6
MAX_ATTEMPTS = 10

_KEY_CHARS = re.compile(r"[A-Za-z0-9]+")


def generate_key(length: int = KEY_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def validate_key(key: str | None, length: int = KEY_LENGTH) -> str:
    if not key or len(key) != length or not _KEY_CHARS.fullmatch(key):
        raise ValidationError(f"Key must be {length} alphanumeric characters")
    return key


def allocate_key(
    db: Session,
    exists: Callable[[Session, str], bool],
    length: int = KEY_LENGTH,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """Return a key that no live paste currently holds.

    The probe and the later insert are not atomic; the unique constraint on
    ``paste_tbl.key`` catches whatever slips through.
    """
    for _ in range(max_attempts):
        key = generate_key(length)
        if not exists(db, key):
            return key
    raise KeyExhaustion()
