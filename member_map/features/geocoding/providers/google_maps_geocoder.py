"""Google Maps Geocoding API実装"""
from typing import Any, Optional

import googlemaps

from ..domain.models import GeoLocation
from ....shared.exceptions.errors import GeocodingError
from ....shared.logging.config import get_logger

logger = get_logger(__name__)


class GoogleMapsGeocoder:
    """
    Google Maps Geocoding API実装

    NominatimGeocoderと同じく、APIエラー・通信エラーはNoneとして返す。
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        region: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Args:
            api_key: Google Maps API キー
            region: 地域バイアス（例: "fr"）
            client: googlemaps.Client（テスト用に差し替え可能）

        Raises:
            GeocodingError: クライアントの初期化に失敗した場合
        """
        self.region = region

        if client is not None:
            self.client = client
        else:
            try:
                self.client = googlemaps.Client(key=api_key)
            except Exception as e:
                raise GeocodingError(f"Failed to initialize Google Maps client: {e}") from e

        logger.info("GoogleMapsGeocoder initialized")

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

        try:
            logger.debug(f"Geocoding address: {address}")
            results = self.client.geocode(address, region=self.region)
        except googlemaps.exceptions.ApiError as e:
            logger.warning(f"Google Maps API error for {address}: {e}")
            return None
        except (googlemaps.exceptions.TransportError, googlemaps.exceptions.Timeout) as e:
            logger.warning(f"Google Maps transport error for {address}: {e}")
            return None

        if not results:
            logger.warning(f"No geocoding results for address: {address}")
            return None

        # 最初の結果を使用
        result = results[0]
        location = result.get("geometry", {}).get("location", {})

        latitude = location.get("lat")
        longitude = location.get("lng")

        if latitude is None or longitude is None:
            logger.warning(f"Invalid geocoding result (missing lat/lng): {address}")
            return None

        geo_location = GeoLocation(
            latitude=float(latitude),
            longitude=float(longitude),
            formatted_address=result.get("formatted_address"),
            place_id=result.get("place_id"),
        )

        logger.debug(f"Geocoded: {address} -> ({latitude}, {longitude})")

        return geo_location
