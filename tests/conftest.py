import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("PASTE_TTL_DAYS", "30")

import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from snapdrop.core.clock import utcnow
from snapdrop.core.db import enable_sqlite_foreign_keys, get_db
from snapdrop.core.storage import BlobStore, get_blob_store
from snapdrop.main import app
from snapdrop.models.base import Base
from snapdrop.models.paste_model import Paste
from snapdrop.models.paste_file_model import PasteFile


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def blob_store(tmp_path):
    return BlobStore(tmp_path / "paste-files")


@pytest.fixture()
def client(db_session, blob_store):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def seed(db_session, blob_store):
    """Insert a paste directly, bypassing the create endpoint.

    Returns ``(key, {filename: (file_id, storage_path)})``.
    """

    def _seed(
        key="AbC123",
        content="secret",
        delete_after_view=False,
        expires_in=timedelta(days=30),
        views=0,
        files=(),
    ):
        now = utcnow()
        paste = Paste(
            key=key,
            content=content,
            views=views,
            delete_after_view=delete_after_view,
            created_at=now,
            expires_at=now + expires_in,
        )
        db_session.add(paste)
        db_session.commit()
        db_session.refresh(paste)

        stored = {}
        for name, data in files:
            file_id = str(uuid.uuid4())
            path = f"{key}/{uuid.uuid4()}.bin"
            blob_store.upload(path, data)
            db_session.add(
                PasteFile(
                    file_id=file_id,
                    paste_id=paste.paste_id,
                    filename=name,
                    mime_type="text/plain",
                    size_bytes=len(data),
                    storage_path=path,
                    uploaded_at=now,
                )
            )
            stored[name] = (file_id, path)
        db_session.commit()
        return key, stored

    return _seed


@pytest.fixture()
def blob_exists(blob_store):
    def _exists(storage_path):
        return (blob_store.root / storage_path).is_file()

    return _exists
