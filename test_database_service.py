import itertools

import pytest

from resenix.database.database_service import DatabaseService

pytestmark = pytest.mark.asyncio


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, store, doc_id):
        self._store = store
        self.id = doc_id

    def set(self, data):
        self._store[self.id] = dict(data)

    def get(self):
        return FakeSnapshot(self.id, self._store.get(self.id))

    def update(self, data):
        self._store[self.id].update(data)

    def delete(self):
        self._store.pop(self.id, None)


class FakeQuery:
    def __init__(self, store, filters=(), limit=None):
        self._store = store
        self.filters = list(filters)
        self._limit = limit

    def where(self, filter):
        return FakeQuery(self._store, self.filters + [filter], self._limit)

    def limit(self, count):
        return FakeQuery(self._store, self.filters, count)

    def stream(self):
        snapshots = [FakeSnapshot(k, v) for k, v in self._store.items()]
        return snapshots[: self._limit] if self._limit else snapshots


class FakeCollection(FakeQuery):
    _ids = itertools.count(1)

    def document(self, doc_id=None):
        return FakeDocRef(self._store, doc_id or f"auto-{next(self._ids)}")


class FakeFirestore:
    def __init__(self):
        self.data = {}

    def collection(self, name):
        return FakeCollection(self.data.setdefault(name, {}))


class BrokenFirestore:
    def collection(self, name):
        raise RuntimeError("backend unavailable")


@pytest.fixture
def db():
    return DatabaseService(client=FakeFirestore())


async def test_create_and_get(db):
    ok, doc_id, error = await db.create_document("vendors", {"name": "Acme"})
    assert ok and error is None

    ok, doc, error = await db.get_document("vendors", doc_id)
    assert ok
    assert doc == {"name": "Acme", "_doc_id": doc_id, "id": doc_id}


async def test_create_with_explicit_id(db):
    ok, doc_id, _ = await db.create_document("users", {"email": "a@resenixpro.com", "role": "viewer", "status": "active"}, "uid-9")
    assert ok and doc_id == "uid-9"


async def test_required_fields_are_checked(db):
    ok, doc_id, error = await db.create_document("vendors", {"contact": "nobody"})
    assert not ok and doc_id is None
    assert "name" in error

    ok, _, _ = await db.create_document("vendors", {"contact": "nobody"}, validate=False)
    assert ok


async def test_missing_document(db):
    ok, doc, error = await db.get_document("vendors", "nope")
    assert not ok and doc is None
    assert "not found" in error

    ok, error = await db.update_document("vendors", "nope", {"name": "x"})
    assert not ok and "not found" in error


async def test_update_and_delete(db):
    _, doc_id, _ = await db.create_document("vendors", {"name": "Acme"})

    assert await db.update_document("vendors", doc_id, {"phone": "555"}) == (True, None)
    _, doc, _ = await db.get_document("vendors", doc_id)
    assert doc["phone"] == "555"

    assert await db.delete_document("vendors", doc_id) == (True, None)
    ok, _, _ = await db.get_document("vendors", doc_id)
    assert not ok


async def test_query_with_limit(db):
    for name in ("a", "b", "c"):
        await db.create_document("vendors", {"name": name})

    ok, docs, _ = await db.query_documents("vendors", [("name", "==", "a")], limit=2)
    assert ok
    assert len(docs) == 2
    assert all("_doc_id" in d for d in docs)


async def test_store_failures_come_back_as_tuples():
    db = DatabaseService(client=BrokenFirestore())
    assert await db.create_document("vendors", {"name": "x"}) == (False, None, "backend unavailable")
    assert await db.query_documents("vendors") == (False, [], "backend unavailable")
    assert (await db.delete_document("vendors", "x"))[0] is False
    assert await db.increment_counter("counters", "pr_counter_2024") == (False, None, "backend unavailable")
