import asyncio
import copy
import itertools

import pytest


class FakeDB:
    """In-memory stand-in for DatabaseService with the same return tuples."""

    def __init__(self):
        self.storage = {}
        self._ids = itertools.count(1)
        self.fail_creates = set()

    def _doc(self, collection, doc_id):
        doc = copy.deepcopy(self.storage[collection][doc_id])
        doc["_doc_id"] = doc_id
        doc.setdefault("id", doc_id)
        return doc

    def seed(self, collection, doc_id, data):
        self.storage.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        return doc_id

    async def create_document(self, collection, data, document_id=None, validate=True):
        if collection in self.fail_creates:
            return False, None, f"write to {collection} refused"
        doc_id = document_id or f"{collection}_{next(self._ids)}"
        self.seed(collection, doc_id, data)
        return True, doc_id, None

    async def get_document(self, collection, doc_id):
        if doc_id not in self.storage.get(collection, {}):
            return False, None, f"Document {doc_id} not found in {collection}"
        return True, self._doc(collection, doc_id), None

    async def update_document(self, collection, doc_id, data, validate=False):
        if doc_id not in self.storage.get(collection, {}):
            return False, f"Document {doc_id} not found in {collection}"
        self.storage[collection][doc_id].update(copy.deepcopy(data))
        return True, None

    async def delete_document(self, collection, doc_id):
        if doc_id not in self.storage.get(collection, {}):
            return False, f"Document {doc_id} not found in {collection}"
        del self.storage[collection][doc_id]
        return True, None

    async def increment_counter(self, collection, doc_id, field="counter", extra=None):
        # Yield first so concurrent callers interleave; the bump itself never suspends
        await asyncio.sleep(0)
        doc = self.storage.setdefault(collection, {}).setdefault(doc_id, {})
        doc.update(copy.deepcopy(extra or {}))
        doc[field] = doc.get(field, 0) + 1
        return True, doc[field], None

    async def query_documents(self, collection, filters=None, limit=None):
        docs = [self._doc(collection, doc_id) for doc_id in self.storage.get(collection, {})]
        for field, op, value in filters or []:
            assert op == "==", f"FakeDB only supports equality filters, got {op}"
            docs = [d for d in docs if d.get(field) == value]
        if limit:
            docs = docs[:limit]
        return True, docs, None


@pytest.fixture
def fake_db():
    return FakeDB()
