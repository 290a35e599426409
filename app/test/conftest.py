import os

# Must be set before the app settings are imported
os.environ["TEST"] = "true"

import itertools
from collections import defaultdict
from copy import deepcopy
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.database.database import DOCUMENT_ID, get_db
from app.main import app


class StoreError(RuntimeError):
    pass


def _matches(document: dict, field: str, op: str, value: Any) -> bool:
    actual = document["id"] if field == DOCUMENT_ID else document.get(field)
    if op == "==":
        return actual == value
    if op == "in":
        return actual in value
    raise ValueError(f"Unsupported operator {op}")


class InMemoryDocumentStore:
    """
    Stand-in for DocumentStore keeping collections in dicts.

    Every ``get_documents`` call is recorded in ``queries`` and any operation
    named in ``failing`` raises StoreError.
    """

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = defaultdict(dict)
        self.queries: list[tuple[str, list]] = []
        self.failing: set[str] = set()
        self._ids = itertools.count(1)

    def seed(self, collection: str, *documents: dict) -> None:
        for document in documents:
            data = dict(document)
            doc_id = data.pop("id")
            self.collections[collection][doc_id] = data

    def raw(self, collection: str, doc_id: str) -> dict | None:
        return self.collections[collection].get(doc_id)

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise StoreError(f"{operation} unavailable")

    async def get_documents(
        self, collection, filters=None, order_by=None, descending=False, limit=None
    ) -> list[dict]:
        self._check("get_documents")
        self.queries.append((collection, list(filters or [])))
        documents = [
            {**data, "id": doc_id} for doc_id, data in self.collections[collection].items()
        ]
        for field, op, value in filters or []:
            documents = [d for d in documents if _matches(d, field, op, value)]
        if order_by:
            documents = [d for d in documents if d.get(order_by) is not None]
            documents.sort(key=lambda d: d[order_by], reverse=descending)
        if limit:
            documents = documents[:limit]
        return deepcopy(documents)

    async def get_document(self, collection, doc_id) -> dict | None:
        self._check("get_document")
        data = self.collections[collection].get(doc_id)
        return None if data is None else {**deepcopy(data), "id": doc_id}

    async def update_document(self, collection, doc_id, data) -> None:
        self._check("update_document")
        if doc_id not in self.collections[collection]:
            raise StoreError(f"No document to update: {collection}/{doc_id}")
        self.collections[collection][doc_id].update(deepcopy(data))

    async def set_document(self, collection, doc_id, data, merge=True) -> None:
        self._check("set_document")
        current = self.collections[collection].get(doc_id, {}) if merge else {}
        self.collections[collection][doc_id] = {**current, **deepcopy(data)}

    async def add_document(self, collection, data) -> str:
        self._check("add_document")
        doc_id = f"{collection}-{next(self._ids)}"
        self.collections[collection][doc_id] = deepcopy(data)
        return doc_id

    async def batch_update(self, collection, updates) -> None:
        self._check("batch_update")
        missing = [doc_id for doc_id in updates if doc_id not in self.collections[collection]]
        if missing:
            raise StoreError(f"No documents to update: {missing}")
        for doc_id, data in updates.items():
            self.collections[collection][doc_id].update(deepcopy(data))

    def close(self) -> None:
        pass


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest_asyncio.fixture(scope="function")
async def client(store: InMemoryDocumentStore) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client whose get_db dependency hands out the in-memory store.
    """
    app.dependency_overrides[get_db] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def unconfigured_client() -> AsyncGenerator[AsyncClient, None]:
    """
    Test client for an app started without store credentials.
    """
    app.state.store = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
