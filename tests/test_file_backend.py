"""Tests for the JSON file storage backend."""

from __future__ import annotations

import json
import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from teamgit.domain.entities import ActivityEvent, FileEdit, FileStatus
from teamgit.domain.exceptions import BackendUnavailable
from teamgit.infrastructure.storage import FileActivityBackend, tenant_file_name

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _event(**overrides) -> ActivityEvent:
    values = {
        "timestamp": T0,
        "user_name": "Alice",
        "user_email": "alice@x.com",
        "repo_name": "r1",
        "branch": "main",
        "machine_name": "M1",
        "remote_url": None,
        "modified_files": (FileEdit("src/app.py", FileStatus.ADDED, True),),
        "tenant": "acme",
    }
    values.update(overrides)
    return ActivityEvent(**values)


@pytest.fixture()
def backend(tmp_path: Path) -> FileActivityBackend:
    return FileActivityBackend(tmp_path / "data")


@pytest.mark.parametrize(
    ("tenant", "expected"),
    [
        ("acme", "users-acme.json"),
        ("team-a_1", "users-team-a_1.json"),
        ("../etc/passwd", "users-___etc_passwd.json"),
        ("a b.c", "users-a_b_c.json"),
    ],
)
def test_tenant_file_name_is_sanitized(tenant, expected):
    assert tenant_file_name(tenant) == expected


def test_record_activity_writes_camel_case_document(backend: FileActivityBackend):
    backend.record_activity(_event())

    path = backend.data_dir / "users-acme.json"
    [document] = json.loads(path.read_text(encoding="utf-8"))
    assert document["id"] == "acme::alice@x.com"
    assert document["tenant"] == "acme"
    assert document["userEmail"] == "alice@x.com"
    assert document["lastActivity"] == "2025-03-01T09:00:00+00:00"
    entry = document["activities"]["r1::M1"]
    assert entry["modifiedFiles"] == [
        {"filePath": "src/app.py", "status": "Added", "isStaged": True}
    ]
    assert entry["machineName"] == "M1"


def test_missing_tenant_file_reads_as_empty(backend: FileActivityBackend):
    assert backend.get_all_users("nobody") == []
    assert backend.get_all_users() == []
    assert backend.get_user_by_email("nobody", "a@x.com") is None


def test_get_all_users_without_tenant_concatenates_files(backend: FileActivityBackend):
    backend.record_activity(_event(tenant="a", timestamp=T0))
    backend.record_activity(_event(tenant="b", timestamp=T0 + timedelta(minutes=1)))

    users = backend.get_all_users()

    assert [user.id for user in users] == ["b::alice@x.com", "a::alice@x.com"]


def test_tenants_sharing_a_file_name_do_not_leak(backend: FileActivityBackend):
    backend.record_activity(_event(tenant="a.b"))
    backend.record_activity(_event(tenant="a_b", user_email="bob@x.com"))

    assert [user.user_email for user in backend.get_all_users("a.b")] == ["alice@x.com"]
    assert [user.user_email for user in backend.get_all_users("a_b")] == ["bob@x.com"]


def test_corrupt_file_is_skipped_and_counted(backend: FileActivityBackend):
    backend.record_activity(_event(tenant="good"))
    (backend.data_dir / "users-bad.json").write_text("{not json", encoding="utf-8")

    users = backend.get_all_users()

    assert [user.tenant for user in users] == ["good"]
    assert backend.skipped_documents == 1


def test_malformed_record_is_skipped_but_others_survive(backend: FileActivityBackend):
    backend.record_activity(_event())
    path = backend.data_dir / "users-acme.json"
    documents = json.loads(path.read_text(encoding="utf-8"))
    documents.append({"id": "acme::broken@x.com", "tenant": "acme"})
    path.write_text(json.dumps(documents), encoding="utf-8")

    assert [user.user_email for user in backend.get_all_users("acme")] == ["alice@x.com"]
    assert backend.skipped_documents == 1

    backend.record_activity(_event(user_email="carol@x.com"))
    stored_ids = {document["id"] for document in json.loads(path.read_text(encoding="utf-8"))}
    assert stored_ids == {"acme::alice@x.com", "acme::broken@x.com", "acme::carol@x.com"}


def test_corrupt_file_is_set_aside_before_rewrite(backend: FileActivityBackend):
    backend.data_dir.mkdir(parents=True)
    path = backend.data_dir / "users-acme.json"
    path.write_text("[{broken", encoding="utf-8")

    backend.record_activity(_event())

    aside = list(backend.data_dir.glob("users-acme.json.corrupt-*"))
    assert len(aside) == 1
    assert aside[0].read_text(encoding="utf-8") == "[{broken"
    assert [user.id for user in backend.get_all_users("acme")] == ["acme::alice@x.com"]


def test_delete_user_rewrites_file_and_is_idempotent(backend: FileActivityBackend):
    backend.record_activity(_event())
    backend.record_activity(_event(user_email="bob@x.com"))

    backend.delete_user("acme", "alice@x.com")
    backend.delete_user("acme", "alice@x.com")
    backend.delete_user("missing-tenant", "alice@x.com")

    assert [user.user_email for user in backend.get_all_users("acme")] == ["bob@x.com"]


def test_write_failure_raises_backend_unavailable(tmp_path: Path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    backend = FileActivityBackend(blocker)

    with pytest.raises(BackendUnavailable):
        backend.record_activity(_event())


def test_concurrent_writers_do_not_lose_updates(backend: FileActivityBackend):
    emails = [f"user{index}@x.com" for index in range(20)]
    barrier = threading.Barrier(len(emails))

    def _record(email: str) -> None:
        barrier.wait()
        backend.record_activity(_event(user_email=email))

    threads = [threading.Thread(target=_record, args=(email,)) for email in emails]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    stored = {user.user_email for user in backend.get_all_users("acme")}
    assert stored == set(emails)
    assert not list(backend.data_dir.glob("*.tmp"))


def test_stored_raw_status_codes_are_read_back(backend: FileActivityBackend):
    backend.record_activity(_event())
    path = backend.data_dir / "users-acme.json"
    documents = json.loads(path.read_text(encoding="utf-8"))
    documents[0]["activities"]["r1::M1"]["modifiedFiles"][0]["status"] = "R100"
    path.write_text(json.dumps(documents), encoding="utf-8")

    [user] = backend.get_all_users("acme")

    [edit] = user.activities["r1::M1"].modified_files
    assert edit.status is FileStatus.RENAMED
    assert backend.skipped_documents == 0
