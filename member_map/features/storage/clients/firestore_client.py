"""Firestoreクライアント"""
import os
from typing import Any, Callable, Optional

from google.cloud import firestore

from ....shared.exceptions.errors import StorageError
from ....shared.logging.config import get_logger

logger = get_logger(__name__)

SnapshotCallback = Callable[[Any, Any, Any], None]


class FirestoreClient:
    """Firestore操作クライアント"""

    def __init__(
        self,
        project_id: Optional[str],
        database_id: str = "(default)",
        client: Optional[Any] = None,
    ) -> None:
        """
        Firestoreクライアントを初期化

        Args:
            project_id: GCPプロジェクトID
            database_id: データベースID（デフォルトは"(default)"）
            client: firestore.Client（テスト用に差し替え可能）
        """
        self.project_id = project_id
        self.database_id = database_id

        if client is not None:
            self.client = client
            return

        emulator_host = os.environ.get("FIRESTORE_EMULATOR_HOST")

        try:
            self.client = firestore.Client(project=project_id, database=database_id)

            if emulator_host:
                logger.info(
                    f"Firestore client initialized (EMULATOR MODE): "
                    f"host={emulator_host}, project={project_id}, database={database_id}"
                )
            else:
                logger.info(
                    f"Firestore client initialized: project={project_id}, database={database_id}"
                )
        except Exception as e:
            raise StorageError(f"Failed to initialize Firestore client: {e}") from e

    def get_collection(self, collection_path: str) -> Any:
        """
        コレクション参照を取得

        Args:
            collection_path: コレクションパス

        Returns:
            CollectionReference: コレクション参照
        """
        return self.client.collection(collection_path)

    def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        """
        自動採番IDでドキュメントを追加

        Returns:
            str: 採番されたドキュメントID
        """
        try:
            doc_ref = self.get_collection(collection_path).document()
            doc_ref.set(data)
            logger.info(f"Document {doc_ref.id} added to {collection_path}")
            return doc_ref.id

        except Exception as e:
            raise StorageError(f"Failed to add document to {collection_path}: {e}") from e

    def get_document(self, collection_path: str, document_id: str) -> Optional[dict[str, Any]]:
        """
        ドキュメントを取得

        Returns:
            Optional[dict[str, Any]]: ドキュメントデータ（存在しない場合はNone）
        """
        try:
            doc = self.get_collection(collection_path).document(document_id).get()

            if doc.exists:
                return _with_id(doc)
            return None

        except Exception as e:
            raise StorageError(
                f"Failed to get document {document_id} from {collection_path}: {e}"
            ) from e

    def query_documents(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """
        ドキュメントを一覧取得

        Args:
            collection_path: コレクションパス
            order_by: 並び替えフィールド
            descending: 降順にするか
            limit: 取得件数の上限

        Returns:
            list[dict[str, Any]]: ドキュメントのリスト（"id"にドキュメントIDを含む）
        """
        try:
            query = self.get_collection(collection_path)

            if order_by:
                direction = (
                    firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                )
                query = query.order_by(order_by, direction=direction)

            if limit:
                query = query.limit(limit)

            return [_with_id(doc) for doc in query.stream() if doc.exists]

        except Exception as e:
            raise StorageError(f"Failed to query documents from {collection_path}: {e}") from e

    def update_document(
        self, collection_path: str, document_id: str, updates: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        """
        ドキュメントを部分更新

        Returns:
            Optional[dict[str, Any]]: 更新後のドキュメント（存在しない場合はNone）
        """
        try:
            doc_ref = self.get_collection(collection_path).document(document_id)
            if not doc_ref.get().exists:
                return None

            doc_ref.update(updates)
            logger.info(f"Document {document_id} updated in {collection_path}: {sorted(updates)}")
            return _with_id(doc_ref.get())

        except Exception as e:
            raise StorageError(
                f"Failed to update document {document_id} in {collection_path}: {e}"
            ) from e

    def delete_document(self, collection_path: str, document_id: str) -> None:
        """ドキュメントを削除（存在しなくてもエラーにしない）"""
        try:
            self.get_collection(collection_path).document(document_id).delete()
            logger.info(f"Document {document_id} deleted from {collection_path}")

        except Exception as e:
            raise StorageError(
                f"Failed to delete document {document_id} from {collection_path}: {e}"
            ) from e

    def watch_collection(self, collection_path: str, callback: SnapshotCallback) -> Any:
        """
        コレクションのスナップショットリスナーを開始

        Args:
            collection_path: コレクションパス
            callback: callback(docs, changes, read_time)。Firestoreのスレッドから呼ばれる

        Returns:
            Watch: unsubscribe() で停止できるハンドル
        """
        try:
            return self.get_collection(collection_path).on_snapshot(callback)
        except Exception as e:
            raise StorageError(f"Failed to watch {collection_path}: {e}") from e


def _with_id(doc: Any) -> dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data
