"""ジオコーディングサービス"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from tqdm import tqdm

from ...members.domain.models import MemberDraft
from ....infrastructure.config.settings import Settings
from ....infrastructure.gcp.secret_manager import resolve_google_maps_api_key
from ....shared.exceptions.errors import GeocodingError
from ....shared.http.rate_limiter import RateLimiter
from ....shared.logging.config import get_logger
from ....shared.utils.text import normalize_address
from ..domain.models import GeoLocation
from ..providers.base import AddressGeocoder
from ..providers.cache_geocoder import CacheGeocoder
from ..providers.google_maps_geocoder import GoogleMapsGeocoder
from ..providers.nominatim_geocoder import NominatimGeocoder
from ..repositories.cache_file_repository import GeocodeCacheFileRepository

logger = get_logger(__name__)


@dataclass
class AddressRow:
    """バッチジオコーディングの入力行"""

    name: str
    address: str
    description: str = ""
    poste: str = ""
    ville: str = ""
    pays: str = ""


@dataclass
class BatchGeocodingResult:
    """バッチジオコーディングの結果"""

    drafts: list[MemberDraft] = field(default_factory=list)
    failed_addresses: list[str] = field(default_factory=list)  # 住所が見つからなかった行
    skipped: int = 0  # 住所が空の行
    total: int = 0

    @property
    def success(self) -> int:
        return len(self.drafts)

    @property
    def failure(self) -> int:
        return len(self.failed_addresses)

    def counts(self) -> dict[str, int]:
        """件数の辞書（成功数、失敗数、スキップ数、総数）"""
        return {
            "success": self.success,
            "failure": self.failure,
            "skipped": self.skipped,
            "total": self.total,
        }


def create_provider(settings: Settings) -> AddressGeocoder:
    """設定に応じたジオコーディングプロバイダーを作成"""
    if settings.geocoding_provider == "google":
        return GoogleMapsGeocoder(api_key=resolve_google_maps_api_key(settings))

    return NominatimGeocoder(
        base_url=settings.nominatim_url,
        user_agent=settings.geocoding_user_agent,
        timeout=settings.geocoding_timeout,
    )


def create_cache_geocoder(
    settings: Settings,
    batch: bool = False,
    cache_file: Optional[str] = None,
    provider: Optional[AddressGeocoder] = None,
) -> CacheGeocoder:
    """
    設定からキャッシュ付きジオコーダーを作成

    Args:
        settings: アプリケーション設定
        batch: バッチ用の間隔（geocoding_batch_min_interval）を使うか
        cache_file: キャッシュファイル（未指定なら設定値）
        provider: プロバイダー（未指定なら設定から作成）
    """
    path = cache_file or settings.geocoding_cache_file
    interval = settings.geocoding_batch_min_interval if batch else settings.geocoding_min_interval

    return CacheGeocoder(
        geocoder=provider or create_provider(settings),
        rate_limiter=RateLimiter(min_interval=interval),
        repository=GeocodeCacheFileRepository(path) if path else None,
    )


class GeocodingService:
    """ジオコーディングサービス"""

    def __init__(self, cache_geocoder: CacheGeocoder) -> None:
        """
        Args:
            cache_geocoder: キャッシュ付きジオコーダー（プロセスまたはバッチごとに1つ）
        """
        self.geocoder = cache_geocoder
        logger.info("GeocodingService initialized")

    @classmethod
    def from_settings(cls, settings: Settings, batch: bool = False) -> "GeocodingService":
        """設定から作成"""
        return cls(create_cache_geocoder(settings, batch=batch))

    def geocode_address(self, address: str) -> Optional[GeoLocation]:
        """
        住所をジオコーディング（空白を正規化してからキャッシュを引く）

        Returns:
            Optional[GeoLocation]: 地理的位置情報（見つからない場合はNone）
        """
        key = normalize_address(address)
        if not key:
            return None
        return self.geocoder.geocode(key)

    def build_draft(
        self,
        name: str,
        address: str,
        description: str = "",
        poste: str = "",
        ville: str = "",
        pays: str = "",
    ) -> MemberDraft:
        """
        住所から座標付きのメンバー作成内容を組み立てる

        Raises:
            GeocodingError: 住所が見つからない場合
        """
        geo_location = self.geocode_address(address)

        if geo_location is None:
            raise GeocodingError(f"Could not locate address: {address}")

        return MemberDraft(
            name=name,
            latitude=geo_location.latitude,
            longitude=geo_location.longitude,
            address=address,
            description=description,
            poste=poste,
            ville=ville,
            pays=pays,
        )

    def geocode_drafts_batch(
        self, rows: Iterable[AddressRow], show_progress: bool = True
    ) -> BatchGeocodingResult:
        """
        複数の行をバッチジオコーディング

        Args:
            rows: 入力行
            show_progress: プログレスバーを表示するか

        Returns:
            BatchGeocodingResult: 作成内容と、失敗・スキップの内訳
        """
        rows = list(rows)
        result = BatchGeocodingResult(total=len(rows))

        logger.info(f"Starting batch geocoding: {len(rows)} rows")

        iterator = tqdm(rows, desc="Geocoding") if show_progress else rows

        for row in iterator:
            if not normalize_address(row.address):
                result.skipped += 1
                continue

            try:
                result.drafts.append(
                    self.build_draft(
                        name=row.name,
                        address=row.address,
                        description=row.description,
                        poste=row.poste,
                        ville=row.ville,
                        pays=row.pays,
                    )
                )
            except GeocodingError as e:
                logger.warning(str(e))
                result.failed_addresses.append(row.address)

        logger.info(
            f"Batch geocoding completed: {result.success} success, "
            f"{result.failure} failure, {result.skipped} skipped"
        )

        return result

    def get_cache_stats(self) -> dict[str, float]:
        """キャッシュ統計を取得"""
        stats = self.geocoder.get_cache_stats()
        logger.info(f"Cache stats: {stats}")
        return stats
