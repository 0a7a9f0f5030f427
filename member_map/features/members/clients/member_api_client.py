"""メンバーAPIクライアント（リモートのMemberStore）"""
from typing import Any, Optional

import requests

from ....shared.exceptions.errors import HTTPError, MemberNotFoundError, MemberStoreError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger
from ..domain.models import EDITABLE_FIELDS, MemberDraft

logger = get_logger(__name__)


class MemberApiClient:
    """
    /members APIのクライアント

    レスポンスは生の辞書で返す（クリーニングはMemberSync側で行う）。
    すべての失敗はMemberStoreErrorとして送出する。
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[HTTPClient] = None,
        timeout: float = 15.0,
    ) -> None:
        """
        Args:
            base_url: APIのベースURL（例: http://localhost:8080）
            http_client: HTTPクライアント
            timeout: タイムアウト（秒）
        """
        self.base_url = base_url.rstrip("/")
        self.members_url = f"{self.base_url}/members"
        self.http_client = http_client or HTTPClient(timeout=timeout)

        logger.info(f"MemberApiClient initialized: {self.members_url}")

    def list_members(self) -> list[dict[str, Any]]:
        """
        全メンバーを取得（created_at降順）

        Raises:
            MemberStoreError: 取得に失敗した場合
        """
        data = self._send("GET", action="load members")
        members = data.get("members")
        if not isinstance(members, list) or not all(isinstance(m, dict) for m in members):
            raise MemberStoreError("Failed to load members: malformed response")
        return members

    def create_member(self, draft: MemberDraft) -> dict[str, Any]:
        """
        メンバーを作成

        Raises:
            MemberStoreError: 作成に失敗した場合
        """
        data = self._send("POST", json=draft.to_dict(), action="create member")
        return self._member_from(data, "create member")

    def update_member(self, member_id: str, partial: dict[str, Any]) -> dict[str, Any]:
        """
        メンバーを部分更新

        Raises:
            MemberNotFoundError: IDが存在しない場合
            MemberStoreError: 更新に失敗した場合
        """
        unknown = set(partial) - set(EDITABLE_FIELDS)
        if unknown:
            raise MemberStoreError(f"Cannot update read-only fields: {sorted(unknown)}")

        data = self._send(
            "PUT", params={"id": member_id}, json=partial, action=f"update member {member_id}"
        )
        return self._member_from(data, f"update member {member_id}")

    def delete_member(self, member_id: str) -> str:
        """
        メンバーを削除

        Returns:
            str: サーバーのメッセージ

        Raises:
            MemberStoreError: 削除に失敗した場合
        """
        data = self._send("DELETE", params={"id": member_id}, action=f"delete member {member_id}")
        return str(data.get("message", ""))

    def close(self) -> None:
        """HTTPセッションをクローズ"""
        self.http_client.close()

    def _send(
        self,
        method: str,
        action: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> dict[str, Any]:
        """リクエストを送信し、JSONボディを返す"""
        try:
            response = self.http_client.request(
                method, self.members_url, params=params, json=json, raise_for_status=False
            )
        except HTTPError as e:
            raise MemberStoreError(f"Failed to {action}: {e}") from e

        if response.status_code >= 400:
            message = f"Failed to {action}: {_error_message(response)}"
            if response.status_code == 404:
                raise MemberNotFoundError(message, status_code=404)
            raise MemberStoreError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise MemberStoreError(f"Failed to {action}: invalid JSON response") from e

        if not isinstance(data, dict):
            raise MemberStoreError(f"Failed to {action}: malformed response")

        return data

    @staticmethod
    def _member_from(data: dict[str, Any], action: str) -> dict[str, Any]:
        member = data.get("member")
        if not isinstance(member, dict):
            raise MemberStoreError(f"Failed to {action}: response has no member")
        return member


def _error_message(response: requests.Response) -> str:
    """エラーレスポンスから人が読めるメッセージを取り出す"""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            if body.get(key):
                return str(body[key])

    return f"HTTP {response.status_code}"
