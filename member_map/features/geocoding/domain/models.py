"""ジオコーディング機能のドメインモデル"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class GeoLocation:
    """地理的位置情報"""

    latitude: float  # 緯度
    longitude: float  # 経度
    formatted_address: Optional[str] = None  # プロバイダーが返した正規化済み住所
    place_id: Optional[str] = None  # プロバイダー固有のID（オプション）

    def __repr__(self) -> str:
        return f"GeoLocation(lat={self.latitude}, lng={self.longitude})"

    def to_tuple(self) -> tuple[float, float]:
        """(緯度, 経度)のタプルとして返す"""
        return (self.latitude, self.longitude)

    @property
    def is_valid(self) -> bool:
        """緯度・経度が有限かつ範囲内か"""
        return is_valid_coordinates(self.latitude, self.longitude)


class Unresolvable(Enum):
    """
    「ジオコーディングを試みたが見つからなかった」を表すマーカー

    「まだ試していない」（キャッシュに存在しない）とは区別される。
    """

    UNRESOLVABLE = "unresolvable"

    def __repr__(self) -> str:
        return "UNRESOLVABLE"


UNRESOLVABLE = Unresolvable.UNRESOLVABLE

# キャッシュに保存される結果
GeocodeResult = Union[GeoLocation, Unresolvable]


def is_valid_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """緯度[-90, 90]・経度[-180, 180]の範囲内の有限値か"""
    if latitude is None or longitude is None:
        return False

    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        return False

    if math.isnan(lat) or math.isnan(lng) or math.isinf(lat) or math.isinf(lng):
        return False

    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0
