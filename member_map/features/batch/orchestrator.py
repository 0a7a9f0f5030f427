"""バッチオーケストレーター"""

import os
from pathlib import Path
from typing import Optional, Union

from ...infrastructure.config.settings import Settings
from ...shared.http.client import HTTPClient
from ...shared.logging.config import get_logger
from ..geocoding.services.geocoding_service import GeocodingService, create_cache_geocoder
from ..members.changes.firestore_change_feed import FirestoreChangeFeed
from ..members.clients.member_api_client import MemberApiClient
from ..members.sync.member_sync import MemberSync
from ..storage.clients.firestore_client import FirestoreClient
from .jobs.csv_geocoding_job import CsvGeocodingJob, CsvGeocodingResult

logger = get_logger(__name__)


class BatchOrchestrator:
    """
    バッチオーケストレーター

    各Featureを統合し、依存性注入を行う
    """

    def __init__(self, settings: Settings) -> None:
        """
        Args:
            settings: アプリケーション設定
        """
        self.settings = settings

        # Firestoreエミュレータの設定を環境変数に反映
        if settings.firestore_emulator_host:
            os.environ.setdefault("FIRESTORE_EMULATOR_HOST", settings.firestore_emulator_host)

        logger.info("BatchOrchestrator initialized")

    def create_geocoding_service(
        self, batch: bool = False, cache_file: Optional[str] = None
    ) -> GeocodingService:
        """キャッシュ付きジオコーディングサービスを作成"""
        return GeocodingService(
            create_cache_geocoder(self.settings, batch=batch, cache_file=cache_file)
        )

    def run_csv_geocoding(
        self,
        base_csv: Union[str, Path],
        new_csv: Union[str, Path],
        output_csv: Union[str, Path],
        cache_file: Optional[str] = None,
    ) -> CsvGeocodingResult:
        """新規メンバーCSVのジオコーディングジョブを実行"""
        logger.info("Starting CSV geocoding job")

        geocoding_service = self.create_geocoding_service(batch=True, cache_file=cache_file)
        job = CsvGeocodingJob(geocoding_service)
        result = job.execute(base_csv, new_csv, output_csv)

        logger.info(f"CSV geocoding job completed in {result.duration_seconds:.1f}s")
        return result

    def create_member_sync(self) -> MemberSync:
        """APIクライアントとFirestoreの変更通知を使うMemberSyncを作成"""
        store = MemberApiClient(
            base_url=self.settings.members_api_url,
            http_client=HTTPClient(timeout=self.settings.members_api_timeout),
        )
        firestore_client = FirestoreClient(
            project_id=self.settings.gcp_project_id,
            database_id=self.settings.firestore_database_id,
        )
        change_feed = FirestoreChangeFeed(
            firestore_client, self.settings.firestore_members_collection
        )

        return MemberSync(
            store=store,
            change_feed=change_feed,
            resync_interval=self.settings.member_sync_resync_interval,
        )
