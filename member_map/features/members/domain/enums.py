"""メンバー機能のEnum定義"""
from enum import Enum


class ChangeType(str, Enum):
    """変更通知の種類"""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def from_value(cls, value: str) -> "ChangeType":
        """大文字・小文字を問わず変換（例: "INSERT" → INSERT）"""
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Invalid change event type: {value}")


class SyncState(str, Enum):
    """MemberSyncの状態"""

    IDLE = "idle"  # 待機中
    LOADING = "loading"  # 通信中
    ERROR = "error"  # 直近の操作が失敗
