"""ユニットテスト共通のフィクスチャ"""

import itertools
from typing import Any, Optional

import pytest


class InMemoryFirestoreClient:
    """FirestoreClientと同じインターフェースを持つメモリ上の実装"""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._ids = itertools.count(1)

    def _collection(self, collection_path: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(collection_path, {})

    def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        document_id = f"doc{next(self._ids)}"
        self._collection(collection_path)[document_id] = dict(data)
        return document_id

    def get_document(self, collection_path: str, document_id: str) -> Optional[dict[str, Any]]:
        data = self._collection(collection_path).get(document_id)
        return {**data, "id": document_id} if data is not None else None

    def query_documents(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        docs = [{**data, "id": doc_id} for doc_id, data in self._collection(collection_path).items()]
        if order_by:
            docs.sort(key=lambda doc: doc[order_by], reverse=descending)
        return docs[:limit] if limit else docs

    def update_document(
        self, collection_path: str, document_id: str, updates: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        collection = self._collection(collection_path)
        if document_id not in collection:
            return None
        collection[document_id].update(updates)
        return self.get_document(collection_path, document_id)

    def delete_document(self, collection_path: str, document_id: str) -> None:
        self._collection(collection_path).pop(document_id, None)


@pytest.fixture
def firestore_client() -> InMemoryFirestoreClient:
    return InMemoryFirestoreClient()
