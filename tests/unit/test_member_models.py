"""メンバーのドメインモデルのテスト"""

import math
from datetime import datetime, timezone

import pytest

from member_map.features.members.domain.enums import ChangeType
from member_map.features.members.domain.models import Member, MemberDraft, parse_change_event


def test_from_dict_accepts_both_timestamp_spellings() -> None:
    """created_at / createdAt のどちらも受け付ける"""
    snake = Member.from_dict({"id": "a", "name": "A", "created_at": "2024-01-02T03:04:05+00:00"})
    camel = Member.from_dict({"id": "a", "name": "A", "createdAt": "2024-01-02T03:04:05Z"})

    expected = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert snake.created_at == expected
    assert camel.created_at == expected


def test_from_dict_requires_id() -> None:
    """idのないレコードは拒否"""
    with pytest.raises(ValueError):
        Member.from_dict({"name": "No id"})


@pytest.mark.parametrize("record", ["garbage", 42, None, ["id", "a"]])
def test_from_dict_rejects_non_object(record) -> None:
    """オブジェクト以外のレコードはValueError"""
    with pytest.raises(ValueError):
        Member.from_dict(record)


def test_to_dict_serializes_timestamps() -> None:
    """タイムスタンプはISO-8601文字列"""
    member = Member(
        id="a",
        name="A",
        created_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
    )
    data = member.to_dict()

    assert data["created_at"] == "2024-01-02T00:00:00+00:00"
    assert data["updated_at"] is None


@pytest.mark.parametrize(
    "latitude,longitude,expected",
    [
        (48.85, 2.35, True),
        (-90.0, 180.0, True),
        (None, 2.35, False),
        (91.0, 0.0, False),
        (0.0, -180.5, False),
        (math.nan, 0.0, False),
    ],
)
def test_is_renderable(latitude, longitude, expected: bool) -> None:
    """座標が揃っていて範囲内のときだけ表示できる"""
    member = Member(id="a", name="A", latitude=latitude, longitude=longitude)
    assert member.is_renderable is expected


def test_draft_to_dict_has_only_editable_fields() -> None:
    """作成内容にはid・タイムスタンプを含めない"""
    draft = MemberDraft(name="A", latitude=1.0, longitude=2.0, ville="Lyon")
    data = draft.to_dict()

    assert "id" not in data
    assert "created_at" not in data
    assert data["ville"] == "Lyon"
    assert data["poste"] == ""


def test_parse_insert_event() -> None:
    """insertイベントの解析"""
    event = parse_change_event({"eventType": "INSERT", "new": {"id": "x", "name": "X"}})

    assert event.event_type is ChangeType.INSERT
    assert event.new is not None
    assert event.member_id == "x"


def test_parse_delete_event() -> None:
    """deleteイベントは old.id を使う"""
    event = parse_change_event({"eventType": "delete", "new": {}, "old": {"id": "x"}})

    assert event.event_type is ChangeType.DELETE
    assert event.new is None
    assert event.member_id == "x"


@pytest.mark.parametrize(
    "payload",
    [
        {"eventType": "truncate"},
        {"eventType": "insert"},
        {"eventType": "update", "new": {"name": "no id"}},
        {"eventType": "delete", "old": {}},
        {"eventType": "insert", "new": "garbage"},
        {"eventType": "delete", "old": "x"},
        ["not", "an", "object"],
    ],
)
def test_parse_invalid_events(payload) -> None:
    """形式不正はValueError"""
    with pytest.raises(ValueError):
        parse_change_event(payload)
