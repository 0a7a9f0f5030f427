"""テキスト処理ユーティリティ"""

import re
from typing import Optional


def normalize_text(text: Optional[str]) -> Optional[str]:
    """
    テキストを正規化

    - 前後の空白を除去
    - 連続する空白を1つに
    - ノーブレークスペースを通常のスペースに変換
    """
    if not text:
        return None

    text = text.replace("\u00a0", " ")
    text = re.sub(r"\s+", " ", text)
    text = text.strip()

    return text if text else None


def normalize_address(address: Optional[str]) -> str:
    """
    ジオコーディングキャッシュのキーとして使う住所の正規化

    大文字・小文字は保持する（キャッシュは大文字・小文字を区別する）。

    Args:
        address: 住所文字列

    Returns:
        正規化された住所（空の場合は""）
    """
    return normalize_text(address) or ""


def join_non_empty(*parts: Optional[str], separator: str = " ") -> str:
    """空でない要素だけを前後の空白を除いて連結"""
    return separator.join(part.strip() for part in parts if part and part.strip())
