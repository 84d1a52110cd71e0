# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests. Nothing here needs a running
# MongoDB: FakeCollection implements the handful of collection
# methods the pipeline uses (find, estimated_document_count, drop,
# insert_many) in memory.
#
# FIXTURES:
# ---------
# - clean_config      → (autouse) forget cached config, clear ETL_* env
# - sample_group_record / sample_member_record / sample_association_record
# - make_group_records(n) → list of well-formed group records
# - source_collection / target_collection
# ==============================================

import threading
import uuid
from types import SimpleNamespace

import pytest
from pymongo.errors import AutoReconnect, BulkWriteError

from collection_etl.config import reset_config

ENV_VARS = (
    "MONGO_URI",
    "ETL_BATCH_SIZE",
    "ETL_READ_AHEAD",
    "ETL_TRANSFORM_CONCURRENCY",
    "ETL_WRITE_CONCURRENCY",
    "ETL_DROP_TARGET",
    "ETL_ABORT_ON_WRITE_ERROR",
    "ETL_LOG_LEVEL",
)


class FakeCursor:
    """Iterates documents; optionally loses the connection part way."""

    def __init__(self, documents, fail_after=None):
        self._documents = documents
        self._fail_after = fail_after
        self.closed = False

    def __iter__(self):
        for index, document in enumerate(self._documents):
            if self._fail_after is not None and index >= self._fail_after:
                raise AutoReconnect("connection lost")
            yield document

    def close(self):
        self.closed = True


class FakeCollection:
    """In-memory stand-in for a pymongo collection."""

    def __init__(self, documents=None, estimated_count=None, fail_cursor_after=None):
        self.documents = list(documents or [])
        self.estimated_count = estimated_count
        self.fail_cursor_after = fail_cursor_after
        self.inserted = []
        self.insert_calls = []
        self.find_calls = []
        self.cursors = []
        self.dropped = 0
        self._ids = set()
        self._lock = threading.Lock()

    def find(self, query=None, batch_size=0):
        self.find_calls.append({"query": query, "batch_size": batch_size})
        cursor = FakeCursor(self.documents, self.fail_cursor_after)
        self.cursors.append(cursor)
        return cursor

    def estimated_document_count(self):
        if self.estimated_count is not None:
            return self.estimated_count
        return len(self.documents)

    def drop(self):
        with self._lock:
            self.dropped += 1
            self.inserted = []
            self._ids = set()

    def insert_many(self, documents, ordered=True):
        documents = list(documents)
        with self._lock:
            self.insert_calls.append({"size": len(documents), "ordered": ordered})
            inserted_ids = []
            errors = []
            for index, document in enumerate(documents):
                key = document.get("_id")
                if key in self._ids:
                    errors.append({
                        "index": index,
                        "code": 11000,
                        "errmsg": f"E11000 duplicate key error dup key: {{ _id: {key} }}",
                        "op": document,
                    })
                    if ordered:
                        break
                    continue
                self._ids.add(key)
                self.inserted.append(document)
                inserted_ids.append(key)
        if errors:
            raise BulkWriteError({
                "writeErrors": errors,
                "writeConcernErrors": [],
                "nInserted": len(inserted_ids),
            })
        return SimpleNamespace(inserted_ids=inserted_ids, acknowledged=True)

    def seed(self, documents):
        """Put documents in the collection as if inserted earlier."""
        for document in documents:
            self._ids.add(document.get("_id"))
            self.inserted.append(document)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts with no cached config and no ETL_* variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sample_group_record() -> dict:
    return {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "contextid": 1042,
        "contexttype": "org",
        "createdat": "2020-01-01 00:00:00",
        "name": "Billing admins",
        "parentid": "",
        "permissions": "['read', 'write', 'approve']",
        "system": "crm",
        "type": "static",
        "updatedat": "2021-06-15 13:45:00",
    }


@pytest.fixture
def sample_member_record() -> dict:
    return {
        "memberid": 998877,
        "system": "crm",
        "membertype": "user",
        "groupid": "6fa459ea-ee8a-3ca4-894e-db77e160355e",
        "createdat": "2019-03-04 05:06:07",
        "updatedat": "",
    }


@pytest.fixture
def sample_association_record() -> dict:
    return {
        "id": "org-001",
        "associd": "a-17",
        "authgroupid": "g-3",
        "authgrouptype": 2,
        "status": "active",
        "assocblob": '{"role": "owner", "scopes": ["billing", "users"]}',
        "createdate": "2018-12-31 23:59:59",
        "updatedate": "yesterday",
    }


@pytest.fixture
def make_group_records():
    def _make(count: int) -> list:
        return [
            {
                "id": str(uuid.uuid4()),
                "name": f"group-{index}",
                "createdat": "2020-01-01 00:00:00",
                "permissions": "['read']",
            }
            for index in range(count)
        ]
    return _make


@pytest.fixture
def target_collection() -> FakeCollection:
    return FakeCollection()
