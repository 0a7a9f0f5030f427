"""メンバーリポジトリ"""
from typing import Any, Iterable, Optional

from ...members.domain.models import EDITABLE_FIELDS, Member, MemberDraft
from ....shared.exceptions.errors import StorageError, ValidationError
from ....shared.logging.config import get_logger
from ....shared.utils.datetime_utils import now_utc
from ..clients.firestore_client import FirestoreClient

logger = get_logger(__name__)


class MemberRepository:
    """メンバーデータのリポジトリ（MemberStoreのサーバー側）"""

    COLLECTION_NAME = "members"

    def __init__(
        self, firestore_client: FirestoreClient, collection_name: Optional[str] = None
    ) -> None:
        """
        Args:
            firestore_client: Firestoreクライアント
            collection_name: コレクション名（未指定なら"members"）
        """
        self.client = firestore_client
        self.collection_name = collection_name or self.COLLECTION_NAME
        logger.info(f"MemberRepository initialized: {self.collection_name}")

    def list_all(self) -> list[Member]:
        """
        全メンバーを取得（created_at降順）

        Raises:
            StorageError: 取得に失敗した場合
        """
        docs = self.client.query_documents(
            self.collection_name, order_by="created_at", descending=True
        )
        members = [Member.from_dict(doc) for doc in docs]
        logger.info(f"Retrieved {len(members)} members")
        return members

    def get_by_id(self, member_id: str) -> Optional[Member]:
        """IDでメンバーを取得"""
        doc = self.client.get_document(self.collection_name, member_id)
        return Member.from_dict(doc) if doc else None

    def create(self, draft: MemberDraft) -> Member:
        """
        メンバーを作成

        Raises:
            ValidationError: 名前が空の場合
            StorageError: 保存に失敗した場合
        """
        if not draft.name or not draft.name.strip():
            raise ValidationError("name is required")

        timestamp = now_utc()
        data = draft.to_dict()
        data["created_at"] = timestamp
        data["updated_at"] = timestamp

        member_id = self.client.add_document(self.collection_name, data)
        logger.info(f"Member created: {member_id} - {draft.name}")

        return Member.from_dict({**data, "id": member_id})

    def update(self, member_id: str, partial: dict[str, Any]) -> Optional[Member]:
        """
        メンバーを部分更新（updated_atを更新）

        Returns:
            Optional[Member]: 更新後のメンバー（存在しない場合はNone）

        Raises:
            ValidationError: 更新できないフィールドを含む場合、または name が空・座標が null の場合
            StorageError: 更新に失敗した場合
        """
        unknown = set(partial) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {sorted(unknown)}")

        if "name" in partial and not (partial["name"] or "").strip():
            raise ValidationError("name is required")

        for key in ("latitude", "longitude"):
            if key in partial and partial[key] is None:
                raise ValidationError(f"{key} cannot be null")

        updates = dict(partial)
        updates["updated_at"] = now_utc()

        doc = self.client.update_document(self.collection_name, member_id, updates)
        if doc is None:
            logger.info(f"Member not found for update: {member_id}")
            return None

        return Member.from_dict(doc)

    def delete(self, member_id: str) -> None:
        """
        メンバーを削除

        Raises:
            StorageError: 削除に失敗した場合
        """
        self.client.delete_document(self.collection_name, member_id)
        logger.info(f"Member deleted: {member_id}")

    def seed(self, drafts: Iterable[MemberDraft]) -> list[Member]:
        """
        サンプルメンバーを一括作成

        Raises:
            StorageError: 作成に失敗した場合
        """
        created = []
        try:
            for draft in drafts:
                created.append(self.create(draft))
        except ValidationError as e:
            raise StorageError(f"Failed to seed members: {e}") from e

        logger.info(f"Seeded {len(created)} members")
        return created
