"""日時関連ユーティリティ"""

from datetime import datetime, timezone
from typing import Any, Optional


def now_utc() -> datetime:
    """現在のUTC時間を取得"""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    datetimeをUTCに変換

    Args:
        dt: 変換対象のdatetime（タイムゾーン情報がない場合はUTCとして扱う）

    Returns:
        UTCのdatetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    ISO-8601文字列またはdatetimeをUTCのdatetimeに変換

    Args:
        value: 変換対象（None、空文字、不正な値はNone）

    Returns:
        Optional[datetime]: UTCのdatetime
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return to_utc(value)

    if isinstance(value, str):
        text = value.strip()
        # Python 3.10以前は末尾の"Z"を解釈できない
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_utc(datetime.fromisoformat(text))
        except ValueError:
            return None

    return None


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """datetimeをISO-8601文字列に変換"""
    if dt is None:
        return None

    return to_utc(dt).isoformat()
