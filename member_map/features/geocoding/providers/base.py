"""ジオコーダーのインターフェース"""
from typing import Optional, Protocol

from ..domain.models import GeoLocation


class AddressGeocoder(Protocol):
    """
    住所 → 座標の変換を行うプロバイダー

    見つからない場合・失敗した場合は例外ではなくNoneを返すこと。
    """

    def geocode(self, address: str) -> Optional[GeoLocation]:
        ...
