import pytest
from datetime import timedelta
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from snapdrop import sweeper
from snapdrop.core.errors import CollaboratorError
from snapdrop.models.paste_model import Paste
from snapdrop.models.paste_file_model import PasteFile
from snapdrop.repositories.paste_repo import get_paste_by_key


def _failing_remove(_paths):
    raise CollaboratorError("Failed to remove 1 blob(s)")


def _stored_blobs(blob_store):
    if not blob_store.root.exists():
        return []
    return [p for p in blob_store.root.rglob("*") if p.is_file()]


def _file_rows(db):
    return db.execute(select(PasteFile.file_id)).scalars().all()


def test_manual_delete_removes_rows_when_blob_removal_fails(client, seed, db_session, blob_store, monkeypatch):
    key, _ = seed(key="Fail01", files=[("a.txt", b"a"), ("b.txt", b"b")])
    monkeypatch.setattr(blob_store, "remove", _failing_remove)

    resp = client.delete(f"/pastes/{key}")
    assert resp.status_code == 200
    assert resp.json()["deleted"] is True
    assert get_paste_by_key(db_session, key) is None
    assert _file_rows(db_session) == []


def test_consumed_download_removes_rows_when_blob_removal_fails(client, seed, db_session, blob_store, monkeypatch):
    key, files = seed(key="Fail02", delete_after_view=True, files=[("a.txt", b"A"), ("b.txt", b"B")])
    file_id, _ = files["a.txt"]
    monkeypatch.setattr(blob_store, "remove", _failing_remove)

    resp = client.get("/download-file", params={"fileId": file_id, "key": key})
    assert resp.status_code == 200
    assert resp.content == b"A"
    assert get_paste_by_key(db_session, key) is None
    assert _file_rows(db_session) == []


def test_sweep_removes_rows_when_blob_removal_fails(client, seed, db_session, blob_store, monkeypatch):
    seed(key="Fail03", expires_in=timedelta(hours=-1), files=[("a.txt", b"a")])
    monkeypatch.setattr(blob_store, "remove", _failing_remove)

    resp = client.post("/cleanup-expired")
    assert resp.status_code == 200
    assert resp.json()["deletedCount"] == 1
    assert _file_rows(db_session) == []


def test_failed_upload_rolls_back_paste_and_blobs(client, db_session, blob_store, monkeypatch):
    real_upload = blob_store.upload
    calls = []

    def upload_once_then_fail(path, data):
        calls.append(path)
        if len(calls) > 1:
            raise CollaboratorError("Failed to upload blob")
        real_upload(path, data)

    monkeypatch.setattr(blob_store, "upload", upload_once_then_fail)
    resp = client.post(
        "/pastes",
        data={"content": "with files"},
        files=[
            ("files", ("one.txt", b"1", "text/plain")),
            ("files", ("two.txt", b"2", "text/plain")),
        ],
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create paste. Please try again."}
    assert len(calls) == 2
    assert db_session.execute(select(Paste.paste_id)).first() is None
    assert _file_rows(db_session) == []
    assert _stored_blobs(blob_store) == []


def test_failed_file_row_insert_rolls_back_paste_and_blobs(client, db_session, blob_store, monkeypatch):
    def broken_insert(*_args, **_kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr("snapdrop.controllers.paste_controller.create_paste_file", broken_insert)
    resp = client.post(
        "/pastes",
        data={"content": "with files"},
        files=[("files", ("one.txt", b"1", "text/plain"))],
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create paste. Please try again."}
    assert db_session.execute(select(Paste.paste_id)).first() is None
    assert _stored_blobs(blob_store) == []


@pytest.fixture()
def sweeper_env(session_factory, blob_store, monkeypatch):
    monkeypatch.setattr(sweeper, "SessionLocal", session_factory)
    monkeypatch.setattr(sweeper, "get_engine", lambda: session_factory.kw["bind"])
    monkeypatch.setattr(sweeper, "get_blob_store", lambda: blob_store)


def test_sweeper_once_deletes_expired(sweeper_env, seed, db_session):
    seed(key="Swp001", expires_in=timedelta(days=-1))
    seed(key="Swp002")

    assert sweeper.main(["--once"]) == 0
    assert get_paste_by_key(db_session, "Swp001") is None
    assert get_paste_by_key(db_session, "Swp002") is not None


def test_sweeper_once_reports_failure(sweeper_env, monkeypatch):
    def broken(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, Exception("no such table"))

    monkeypatch.setattr(sweeper, "run_once", broken)
    assert sweeper.main(["--once"]) == 1


class _StopLoop(Exception):
    pass


def test_sweeper_loop_keeps_going_after_failure(sweeper_env, monkeypatch):
    runs = []
    sleeps = []

    def flaky_run():
        runs.append(len(runs))
        if len(runs) == 1:
            raise OperationalError("SELECT", {}, Exception("database is locked"))
        return 0

    def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 2:
            raise _StopLoop()

    monkeypatch.setattr(sweeper, "run_once", flaky_run)
    monkeypatch.setattr(sweeper.time, "sleep", fake_sleep)

    with pytest.raises(_StopLoop):
        sweeper.main(["--interval", "5"])
    assert runs == [0, 1]
    assert sleeps == [5, 5]


def test_sweeper_interval_defaults_to_settings(sweeper_env, monkeypatch):
    from snapdrop.core.config import get_settings

    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        raise _StopLoop()

    monkeypatch.setattr(sweeper, "run_once", lambda: 0)
    monkeypatch.setattr(sweeper.time, "sleep", fake_sleep)

    with pytest.raises(_StopLoop):
        sweeper.main([])
    assert sleeps == [get_settings().sweep_interval_seconds]
