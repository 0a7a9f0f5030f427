"""Nominatim（OpenStreetMap）ジオコーディング実装"""
from typing import Any, Optional

from ..domain.models import GeoLocation
from ....shared.exceptions.errors import HTTPError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "member-map-geocoder/1.0"


class NominatimGeocoder:
    """
    Nominatim検索APIによるジオコーダー

    - 最適な1件のみ取得（limit=1）
    - 失敗はすべてNoneで返す（例外を送出しない）
    - リトライしない。一時的な失敗と「該当なし」は区別できない
    """

    def __init__(
        self,
        http_client: Optional[HTTPClient] = None,
        base_url: str = DEFAULT_NOMINATIM_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            http_client: HTTPクライアント（未指定ならリトライなしで作成）
            base_url: 検索エンドポイント
            user_agent: User-Agent（Nominatimは識別できないリクエストを拒否する）
            timeout: タイムアウト（秒）
        """
        if not user_agent:
            raise ValueError("user_agent is required by the Nominatim usage policy")

        self.base_url = base_url
        self.user_agent = user_agent
        self.http_client = http_client or HTTPClient(
            timeout=timeout, max_retries=0, user_agent=user_agent
        )

        logger.info(f"NominatimGeocoder initialized: url={base_url}, user_agent={user_agent}")

    def geocode(self, address: str) -> Optional[GeoLocation]:
        """
        住所をジオコーディング

        Args:
            address: 住所文字列

        Returns:
            Optional[GeoLocation]: 地理的位置情報（見つからない・失敗した場合はNone）
        """
        if not address or not address.strip():
            logger.warning("Empty address provided for geocoding")
            return None

        params = {"q": address, "format": "json", "limit": 1}

        try:
            logger.debug(f"Geocoding address: {address}")
            response = self.http_client.get(
                self.base_url,
                params=params,
                headers={"User-Agent": self.user_agent},
            )
            results = response.json()
        except HTTPError as e:
            logger.warning(f"Geocoding request failed for {address}: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Malformed geocoding response for {address}: {e}")
            return None

        return self._parse_first_result(address, results)

    def _parse_first_result(self, address: str, results: Any) -> Optional[GeoLocation]:
        """レスポンスの先頭要素をGeoLocationに変換"""
        if not isinstance(results, list) or not results:
            logger.warning(f"No geocoding results for address: {address}")
            return None

        result = results[0]
        if not isinstance(result, dict):
            logger.warning(f"Invalid geocoding result (not an object): {address}")
            return None

        try:
            latitude = float(result["lat"])
            longitude = float(result["lon"])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Invalid geocoding result (missing lat/lon): {address}")
            return None

        geo_location = GeoLocation(
            latitude=latitude,
            longitude=longitude,
            formatted_address=result.get("display_name"),
            place_id=str(result["place_id"]) if result.get("place_id") is not None else None,
        )

        if not geo_location.is_valid:
            logger.warning(f"Geocoding result out of range for {address}: {geo_location}")
            return None

        logger.debug(f"Geocoded: {address} -> ({latitude}, {longitude})")

        return geo_location
