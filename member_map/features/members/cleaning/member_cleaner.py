"""メンバーレコードのデータクリーニング"""

import dataclasses
import re
from typing import Any

from ....shared.utils.text import join_non_empty
from ..domain.models import Member

# "Poste: 〇〇" の断片（行の途中でもよい、単語の一部は除く）
POSTE_PATTERN = re.compile(r"\bposte\s*:\s*(?P<value>[^\r\n]*)", re.IGNORECASE)

# 削除対象の行頭ラベル
LOCATION_LINE_PATTERN = re.compile(r"^\s*(ville|pays)\s*:", re.IGNORECASE)


def clean(member: Member) -> Member:
    """
    過去の入力不具合で崩れたレコードを正規の形に整える

    - ville / pays のどちらかがあれば、address を "ville pays" で作り直す
    - description に "Poste:" があれば "Poste: <値>" だけにする
    - それ以外の description からは "Ville:" / "Pays:" で始まる行を除く

    検証ではないので、レコードを拒否することはない。冪等。

    Args:
        member: メンバー

    Returns:
        Member: 整形後のメンバー（変更がなければ同じ値）
    """
    address = clean_address(member.address, member.ville, member.pays)
    description = clean_description(member.description)

    if address == member.address and description == member.description:
        return member

    return dataclasses.replace(member, address=address, description=description)


def clean_record(record: dict[str, Any]) -> Member:
    """ストアの生レコードをMemberに変換してクリーニング"""
    return clean(Member.from_dict(record))


def clean_address(address: str, ville: str, pays: str) -> str:
    """ville / pays から住所を再構成（どちらも空なら元の住所）"""
    if (ville and ville.strip()) or (pays and pays.strip()):
        return join_non_empty(ville, pays)
    return address


def clean_description(description: str) -> str:
    """説明文から混入した役職・所在地の断片を整理"""
    if not description:
        return description

    match = POSTE_PATTERN.search(description)
    if match:
        return f"Poste: {match.group('value').strip()}"

    lines = description.splitlines()
    kept = [line for line in lines if not LOCATION_LINE_PATTERN.match(line)]
    if len(kept) == len(lines):
        return description

    return "\n".join(kept)
