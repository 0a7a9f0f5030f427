"""アプリケーション設定（Pydantic Settings）"""
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリケーション設定"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Project
    project_name: str = Field(
        default="member-map",
        description="プロジェクト名",
    )
    environment: str = Field(
        default="development",
        description="環境 (development, staging, production)",
    )

    # GCP
    gcp_project_id: Optional[str] = Field(
        default=None,
        description="GCPプロジェクトID（Firestore / Secret Manager / Cloud Logging用）",
    )

    # Firestore
    firestore_database_id: str = Field(
        default="(default)",
        description="FirestoreデータベースID",
    )
    firestore_emulator_host: Optional[str] = Field(
        default=None,
        description="Firestoreエミュレータのホスト（例: localhost:8080）。設定された場合はエミュレータに接続",
    )
    firestore_members_collection: str = Field(
        default="members",
        description="メンバーコレクション名",
    )

    # Geocoding
    geocoding_provider: Literal["nominatim", "google"] = Field(
        default="nominatim",
        description="ジオコーディングプロバイダー",
    )
    nominatim_url: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        description="Nominatim検索エンドポイント",
    )
    geocoding_user_agent: str = Field(
        default="member-map-geocoder/1.0",
        description="ジオコーディングリクエストのUser-Agent（Nominatimは必須）",
    )
    geocoding_timeout: float = Field(
        default=10.0,
        description="ジオコーディングのタイムアウト（秒）",
    )
    geocoding_min_interval: float = Field(
        default=0.1,
        description="対話利用時のキャッシュミス間の最小間隔（秒）",
    )
    geocoding_batch_min_interval: float = Field(
        default=1.0,
        description="バッチ処理時のキャッシュミス間の最小間隔（秒）",
    )
    geocoding_cache_file: Optional[str] = Field(
        default=None,
        description="ジオコーディングキャッシュのJSONファイルパス（未設定ならメモリのみ）",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps API Key（ローカル開発用）",
    )
    google_maps_api_key_secret_name: str = Field(
        default="google-maps-api-key",
        description="Google Maps API KeyのSecret Manager名",
    )

    # Member API / sync
    members_api_url: str = Field(
        default="http://localhost:8080",
        description="メンバーAPIのベースURL",
    )
    members_api_timeout: float = Field(
        default=15.0,
        description="メンバーAPIのタイムアウト（秒）",
    )
    member_sync_resync_interval: Optional[float] = Field(
        default=None,
        description="MemberSyncの定期再読み込み間隔（秒）。未設定なら無効",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    gcp_logging_enabled: bool = Field(
        default=False,
        description="Cloud Loggingを有効にするか",
    )

    # Cloud Run
    port: int = Field(
        default=8080,
        description="HTTPサーバーのポート番号",
    )

    @property
    def is_production(self) -> bool:
        """本番環境かどうか"""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """開発環境かどうか"""
        return self.environment.lower() == "development"
