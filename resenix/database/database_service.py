from typing import Any, Dict, List, Optional, Tuple
import logging

from firebase_admin import firestore
from google.cloud.firestore_v1 import FieldFilter

from ..core.firebase_init import initialize_firebase, is_firebase_available
from .collections import COLLECTION_SCHEMAS

logger = logging.getLogger(__name__)

Filter = Tuple[str, str, Any]


class DatabaseService:
    """
    Thin async facade over a Firestore client.

    Every method reports failures through its return tuple instead of raising,
    so callers decide how a missing document or a store error is surfaced.
    The Firestore client is injected; when omitted it is created from the
    default Firebase app on first use.
    """

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not is_firebase_available() and not initialize_firebase():
                raise RuntimeError("Firebase is not initialized - Firestore unavailable")
            self._client = firestore.client()
        return self._client

    def _validate(self, collection_name: str, data: Dict[str, Any]) -> Optional[str]:
        schema = COLLECTION_SCHEMAS.get(collection_name)
        if not schema:
            return None
        missing = [f for f in schema['required'] if data.get(f) in (None, "")]
        if missing:
            return f"Missing required fields for {collection_name}: {', '.join(missing)}"
        return None

    @staticmethod
    def _with_id(snapshot) -> Dict[str, Any]:
        doc = snapshot.to_dict() or {}
        doc['_doc_id'] = snapshot.id
        doc.setdefault('id', snapshot.id)
        return doc

    async def create_document(
        self,
        collection_name: str,
        data: Dict[str, Any],
        document_id: Optional[str] = None,
        validate: bool = True,
    ) -> Tuple[bool, Optional[str], Optional[str]]:
        try:
            if validate:
                error = self._validate(collection_name, data)
                if error:
                    return False, None, error

            collection = self.client.collection(collection_name)
            doc_ref = collection.document(document_id) if document_id else collection.document()
            doc_ref.set(data)
            logger.debug(f"[DB] Created {collection_name}/{doc_ref.id}")
            return True, doc_ref.id, None
        except Exception as e:
            logger.error(f"[DB] Error creating document in {collection_name}: {e}")
            return False, None, str(e)

    async def get_document(
        self, collection_name: str, document_id: str
    ) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        try:
            snapshot = self.client.collection(collection_name).document(document_id).get()
            if not snapshot.exists:
                return False, None, f"Document {document_id} not found in {collection_name}"
            return True, self._with_id(snapshot), None
        except Exception as e:
            logger.error(f"[DB] Error fetching {collection_name}/{document_id}: {e}")
            return False, None, str(e)

    async def update_document(
        self,
        collection_name: str,
        document_id: str,
        data: Dict[str, Any],
        validate: bool = False,
    ) -> Tuple[bool, Optional[str]]:
        try:
            doc_ref = self.client.collection(collection_name).document(document_id)
            if not doc_ref.get().exists:
                return False, f"Document {document_id} not found in {collection_name}"
            doc_ref.update(data)
            return True, None
        except Exception as e:
            logger.error(f"[DB] Error updating {collection_name}/{document_id}: {e}")
            return False, str(e)

    async def delete_document(self, collection_name: str, document_id: str) -> Tuple[bool, Optional[str]]:
        try:
            self.client.collection(collection_name).document(document_id).delete()
            return True, None
        except Exception as e:
            logger.error(f"[DB] Error deleting {collection_name}/{document_id}: {e}")
            return False, str(e)

    async def increment_counter(
        self,
        collection_name: str,
        document_id: str,
        field: str = 'counter',
        extra: Optional[Dict[str, Any]] = None,
    ) -> Tuple[bool, Optional[int], Optional[str]]:
        """Add one to `field` inside a transaction and return the new value."""
        try:
            client = self.client
            doc_ref = client.collection(collection_name).document(document_id)

            @firestore.transactional
            def bump(transaction):
                snapshot = doc_ref.get(transaction=transaction)
                current = (snapshot.to_dict() or {}).get(field, 0) if snapshot.exists else 0
                value = current + 1
                transaction.set(doc_ref, {**(extra or {}), field: value}, merge=True)
                return value

            return True, bump(client.transaction()), None
        except Exception as e:
            logger.error(f"[DB] Error incrementing {collection_name}/{document_id}.{field}: {e}")
            return False, None, str(e)

    async def query_documents(
        self,
        collection_name: str,
        filters: Optional[List[Filter]] = None,
        limit: Optional[int] = None,
    ) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        try:
            query = self.client.collection(collection_name)
            for field, op, value in filters or []:
                query = query.where(filter=FieldFilter(field, op, value))
            if limit:
                query = query.limit(limit)
            return True, [self._with_id(s) for s in query.stream()], None
        except Exception as e:
            logger.error(f"[DB] Error querying {collection_name}: {e}")
            return False, [], str(e)


database_service = DatabaseService()
