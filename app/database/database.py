from typing import Any, Iterable

from fastapi import HTTPException, Request, status
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from app.config.config import Settings
from app.utils.logger_config import setup_logger
from app.utils.utils import chunked

logger = setup_logger()

# Firestore addresses the document id through this pseudo field
DOCUMENT_ID = "__name__"

# Firestore 'in' queries accept at most 30 values
IN_QUERY_LIMIT = 30

# Firestore write batches accept at most 500 operations
BATCH_WRITE_LIMIT = 500

STORE_NOT_CONFIGURED = (
    "Firebase not initialized. Please set FIREBASE_PROJECT_ID, "
    "FIREBASE_CLIENT_EMAIL, and FIREBASE_PRIVATE_KEY environment variables."
)

Filter = tuple[str, str, Any]


class Collections:
    VENDORS = "vendors"
    DELIVERY_PERSONS = "deliveryPersons"
    CUSTOMERS = "customers"
    ORDERS = "orders"
    MENU_ITEMS = "menuItems"
    DELIVERY_TASKS = "deliveryTasks"
    COMPLAINTS = "complaints"
    ADMIN_LOGS = "adminLogs"
    PLATFORM_SETTINGS = "platformSettings"
    COD_SETTLEMENTS = "codSettlements"
    VENDOR_PAYOUTS = "vendorPayouts"
    DELIVERY_PAYOUTS = "deliveryPayouts"


class DocumentStore:
    """
    Thin async wrapper around the Firestore client.

    Documents are returned as plain dicts with the document id under ``"id"``.
    """

    def __init__(self, client: firestore.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentStore | None":
        if not settings.firebase_configured:
            logger.warning(STORE_NOT_CONFIGURED)
            return None

        credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "project_id": settings.FIREBASE_PROJECT_ID,
                "client_email": settings.FIREBASE_CLIENT_EMAIL,
                "private_key": settings.firebase_private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
        client = firestore.AsyncClient(
            project=settings.FIREBASE_PROJECT_ID, credentials=credentials
        )
        logger.info(f"Firestore client created for project {settings.FIREBASE_PROJECT_ID}")
        return cls(client)

    def _query(
        self,
        collection: str,
        filters: Iterable[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ):
        col = self._client.collection(collection)
        query = col
        for field, op, value in filters or []:
            if field == DOCUMENT_ID:
                value = [col.document(doc_id) for doc_id in value] if op == "in" else col.document(value)
            query = query.where(filter=FieldFilter(field, op, value))
        if order_by:
            direction = (
                firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)
        if limit:
            query = query.limit(limit)
        return query

    async def get_documents(
        self,
        collection: str,
        filters: Iterable[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        query = self._query(collection, filters, order_by, descending, limit)
        return [{**snapshot.to_dict(), "id": snapshot.id} async for snapshot in query.stream()]

    async def get_document(self, collection: str, doc_id: str) -> dict | None:
        snapshot = await self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return {**snapshot.to_dict(), "id": snapshot.id}

    async def update_document(self, collection: str, doc_id: str, data: dict) -> None:
        await self._client.collection(collection).document(doc_id).update(data)

    async def set_document(
        self, collection: str, doc_id: str, data: dict, merge: bool = True
    ) -> None:
        await self._client.collection(collection).document(doc_id).set(data, merge=merge)

    async def add_document(self, collection: str, data: dict) -> str:
        _, ref = await self._client.collection(collection).add(data)
        return ref.id

    async def batch_update(self, collection: str, updates: dict[str, dict]) -> None:
        col = self._client.collection(collection)
        for chunk in chunked(list(updates.items()), BATCH_WRITE_LIMIT):
            batch = self._client.batch()
            for doc_id, data in chunk:
                batch.update(col.document(doc_id), data)
            await batch.commit()

    def close(self) -> None:
        self._client.close()


async def fetch_by_ids(
    db: DocumentStore,
    collection: str,
    ids: Iterable[str],
    field: str = DOCUMENT_ID,
) -> dict[str, list[dict]]:
    """
    Resolve many ids against one collection, IN_QUERY_LIMIT ids per query.

    Results of every chunk are merged and keyed by the matched id, so a
    document-id lookup yields one document per key while a lookup on another
    field (e.g. ``vendorId``) may yield several.
    """
    unique_ids = list(dict.fromkeys(i for i in ids if i))
    merged: dict[str, list[dict]] = {}
    for chunk in chunked(unique_ids, IN_QUERY_LIMIT):
        documents = await db.get_documents(collection, filters=[(field, "in", chunk)])
        for document in documents:
            key = document["id"] if field == DOCUMENT_ID else document.get(field)
            merged.setdefault(key, []).append(document)
    return merged


def get_db(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        logger.error(STORE_NOT_CONFIGURED)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=STORE_NOT_CONFIGURED,
        )
    return store
