"""Firestoreのスナップショットリスナーによる変更通知"""
from typing import Any, Optional

from ....shared.logging.config import get_logger
from ...storage.clients.firestore_client import FirestoreClient
from ..domain.enums import ChangeType
from ..domain.models import ChangeEvent, Member
from .change_feed import ChangeFeed

logger = get_logger(__name__)

# Firestoreの変更種別 → ChangeType
FIRESTORE_CHANGE_TYPES = {
    "ADDED": ChangeType.INSERT,
    "MODIFIED": ChangeType.UPDATE,
    "REMOVED": ChangeType.DELETE,
}


class FirestoreChangeFeed(ChangeFeed):
    """
    メンバーコレクションの on_snapshot を変更通知に変換

    - 最初の購読者でリスナーを開始し、最後の購読者の終了で停止する
    - 初回スナップショット（既存ドキュメント全件）は通知しない
    """

    def __init__(self, firestore_client: FirestoreClient, collection_name: str = "members") -> None:
        """
        Args:
            firestore_client: Firestoreクライアント
            collection_name: 監視するコレクション名
        """
        super().__init__()
        self.firestore_client = firestore_client
        self.collection_name = collection_name
        self._watch: Optional[Any] = None
        self._initial_snapshot = True

    def _open(self) -> None:
        self._initial_snapshot = True
        try:
            self._watch = self.firestore_client.watch_collection(
                self.collection_name, self._on_snapshot
            )
        except Exception as e:
            self.fail(f"Failed to open change feed on {self.collection_name}: {e}")
            return

        logger.info(f"Firestore change feed opened: {self.collection_name}")

    def _close(self) -> None:
        if self._watch is None:
            return

        self._watch.unsubscribe()
        self._watch = None
        logger.info(f"Firestore change feed closed: {self.collection_name}")

    def _on_snapshot(self, docs: Any, changes: Any, read_time: Any) -> None:
        """Firestoreのスレッドから呼ばれるコールバック"""
        if self._initial_snapshot:
            self._initial_snapshot = False
            logger.debug(f"Skipping initial snapshot: {len(changes)} document(s)")
            return

        try:
            for change in changes:
                event = self._to_event(change)
                if event is not None:
                    self.publish(event)
        except Exception as e:
            self.fail(f"Failed to process change notification: {e}")

    @staticmethod
    def _to_event(change: Any) -> Optional[ChangeEvent]:
        """DocumentChangeをChangeEventに変換"""
        event_type = FIRESTORE_CHANGE_TYPES.get(change.type.name)
        if event_type is None:
            logger.warning(f"Unknown Firestore change type: {change.type.name}")
            return None

        document = change.document

        if event_type is ChangeType.DELETE:
            return ChangeEvent(event_type=event_type, old_id=document.id)

        data = document.to_dict() or {}
        data.setdefault("id", document.id)
        return ChangeEvent(event_type=event_type, new=Member.from_dict(data))
