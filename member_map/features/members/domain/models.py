"""メンバー機能のドメインモデル"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ...geocoding.domain.models import is_valid_coordinates
from ....shared.utils.datetime_utils import format_timestamp, parse_timestamp
from .enums import ChangeType

# ストアに書き込めるフィールド（id・タイムスタンプはストアが管理）
EDITABLE_FIELDS = (
    "name",
    "latitude",
    "longitude",
    "address",
    "description",
    "poste",
    "ville",
    "pays",
)


@dataclass(frozen=True)
class Member:
    """
    メンバー情報

    id・created_at はストアが採番し、以後変更されない。
    updated_at は更新のたびにストアが更新する。
    """

    id: str
    name: str
    latitude: Optional[float] = None  # 緯度
    longitude: Optional[float] = None  # 経度
    address: str = ""  # 住所（自由記述）
    description: str = ""  # 説明
    poste: str = ""  # 役職
    ville: str = ""  # 市区町村
    pays: str = ""  # 国
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_renderable(self) -> bool:
        """地図上にマーカーとして表示できるか"""
        return is_valid_coordinates(self.latitude, self.longitude)

    def to_dict(self) -> dict[str, Any]:
        """JSON用の辞書に変換"""
        return {
            "id": self.id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "description": self.description,
            "poste": self.poste,
            "ville": self.ville,
            "pays": self.pays,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Member":
        """
        ストアのレコードからメンバーを生成

        created_at / createdAt のどちらの表記も受け付ける。
        文字列フィールドのNoneは""として扱う。
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Member record must be an object, got {type(data).__name__}")

        if not data.get("id"):
            raise ValueError("Member record requires an id")

        return cls(
            id=str(data["id"]),
            name=_text(data.get("name")),
            latitude=_float_or_none(data.get("latitude")),
            longitude=_float_or_none(data.get("longitude")),
            address=_text(data.get("address")),
            description=_text(data.get("description")),
            poste=_text(data.get("poste")),
            ville=_text(data.get("ville")),
            pays=_text(data.get("pays")),
            created_at=parse_timestamp(data.get("created_at", data.get("createdAt"))),
            updated_at=parse_timestamp(data.get("updated_at", data.get("updatedAt"))),
        )


@dataclass(frozen=True)
class MemberDraft:
    """新規メンバーの作成内容（id・タイムスタンプなし）"""

    name: str
    latitude: float
    longitude: float
    address: str = ""
    description: str = ""
    poste: str = ""
    ville: str = ""
    pays: str = ""

    def to_dict(self) -> dict[str, Any]:
        """リクエストボディ用の辞書に変換"""
        return {name: getattr(self, name) for name in EDITABLE_FIELDS}


@dataclass(frozen=True)
class ChangeEvent:
    """
    メンバーテーブルの変更通知

    insert/update は new を、delete は old_id を持つ。
    """

    event_type: ChangeType
    new: Optional[Member] = None
    old_id: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def member_id(self) -> Optional[str]:
        """対象メンバーのID"""
        if self.new is not None:
            return self.new.id
        return self.old_id


def parse_change_event(payload: dict[str, Any]) -> ChangeEvent:
    """
    変更通知ペイロードを解析

    形式: {"eventType": "insert|update|delete", "new": {...}, "old": {"id": ...}}

    Raises:
        ValueError: 形式が不正な場合
    """
    if not isinstance(payload, Mapping):
        raise ValueError("Change notification must be an object")

    event_type = ChangeType.from_value(payload.get("eventType", payload.get("event_type", "")))

    new_data = payload.get("new") or None
    old_data = payload.get("old") or {}
    if not isinstance(old_data, Mapping):
        raise ValueError("'old' must be an object")

    new = Member.from_dict(new_data) if new_data else None
    old_id = str(old_data["id"]) if old_data.get("id") else None

    if event_type in (ChangeType.INSERT, ChangeType.UPDATE) and new is None:
        raise ValueError(f"{event_type.value} event requires a 'new' record")

    if event_type is ChangeType.DELETE and old_id is None:
        raise ValueError("delete event requires 'old.id'")

    return ChangeEvent(event_type=event_type, new=new, old_id=old_id, raw=payload)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
