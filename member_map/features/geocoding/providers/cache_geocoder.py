"""キャッシュ・レート制限付きジオコーダー"""

from typing import Optional

from ....shared.exceptions.errors import CacheFileError
from ....shared.http.rate_limiter import RateLimiter
from ....shared.logging.config import get_logger
from ..domain.models import UNRESOLVABLE, GeocodeResult, GeoLocation
from ..repositories.cache_file_repository import GeocodeCacheFileRepository
from .base import AddressGeocoder

logger = get_logger(__name__)


class CacheGeocoder:
    """
    キャッシュ付きジオコーダー（GeocodeCache）

    - キーは住所文字列そのもの（大文字・小文字を区別、正規化は呼び出し側で行う）
    - 見つからなかった結果もUNRESOLVABLEとしてキャッシュし、再試行しない
    - キャッシュミスでプロバイダーを呼ぶ前にRateLimiterで間隔を空ける。
      ヒット時は待機しない
    - repositoryが指定された場合、起動時に読み込み、ミスのたびにファイルへ保存する
    """

    def __init__(
        self,
        geocoder: AddressGeocoder,
        rate_limiter: Optional[RateLimiter] = None,
        repository: Optional[GeocodeCacheFileRepository] = None,
        min_interval: float = 0.1,
    ) -> None:
        """
        Args:
            geocoder: ベースとなるジオコーダー
            rate_limiter: キャッシュミス間のレート制限（未指定ならmin_intervalで作成）
            repository: キャッシュの永続化先（未指定ならメモリのみ）
            min_interval: キャッシュミス間の最小間隔（秒）
        """
        self.geocoder = geocoder
        self.rate_limiter = rate_limiter or RateLimiter(min_interval=min_interval)
        self.repository = repository
        self.cache: dict[str, GeocodeResult] = {}
        self.hit_count = 0
        self.miss_count = 0

        if repository is not None:
            self.cache.update(repository.load())

        logger.info(
            f"CacheGeocoder initialized: entries={len(self.cache)}, "
            f"min_interval={self.rate_limiter.min_interval}s, "
            f"persistent={repository is not None}"
        )

    def resolve(self, address: str) -> GeocodeResult:
        """
        住所を解決（キャッシュあり）

        Args:
            address: 住所文字列（正規化済み）

        Returns:
            GeocodeResult: GeoLocation、または UNRESOLVABLE
        """
        if address in self.cache:
            self.hit_count += 1
            logger.debug(f"Cache hit for address: {address}")
            return self.cache[address]

        self.miss_count += 1
        logger.debug(f"Cache miss for address: {address}")

        self.rate_limiter.wait()
        geo_location = self.geocoder.geocode(address)

        result: GeocodeResult = geo_location if geo_location is not None else UNRESOLVABLE
        self.cache[address] = result

        if result is UNRESOLVABLE:
            logger.info(f"Address could not be located: {address}")

        self._persist({address: result})

        return result

    def geocode(self, address: str) -> Optional[GeoLocation]:
        """
        住所をジオコーディング（キャッシュあり、AddressGeocoderと同じ契約）

        Returns:
            Optional[GeoLocation]: 地理的位置情報（見つからない場合はNone）
        """
        result = self.resolve(address)
        return result if isinstance(result, GeoLocation) else None

    def contains(self, address: str) -> bool:
        """住所が解決済み（成功・失敗を問わず）か"""
        return address in self.cache

    def get_cache_stats(self) -> dict[str, float]:
        """
        キャッシュ統計を取得

        Returns:
            dict[str, float]: キャッシュ統計（サイズ、ヒット数、ミス数、ヒット率）
        """
        total_requests = self.hit_count + self.miss_count
        hit_rate = (self.hit_count / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "cache_size": len(self.cache),
            "unresolvable": sum(1 for v in self.cache.values() if v is UNRESOLVABLE),
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "total_requests": total_requests,
            "hit_rate_percent": round(hit_rate, 2),
        }

    def _persist(self, entries: dict[str, GeocodeResult]) -> None:
        """新しいエントリをファイルに保存（失敗してもメモリ上のキャッシュは維持）"""
        if self.repository is None:
            return

        try:
            self.repository.save(entries)
        except CacheFileError as e:
            logger.error(f"Geocode cache not persisted: {e}")
