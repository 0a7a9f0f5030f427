"""GCP Secret Manager連携"""
from typing import Any, Optional

from google.cloud import secretmanager

from ..config.settings import Settings
from ...shared.exceptions.errors import ConfigurationError
from ...shared.logging.config import get_logger

logger = get_logger(__name__)


class SecretManagerClient:
    """Secret Managerクライアント"""

    def __init__(self, project_id: str, client: Optional[Any] = None):
        """
        Args:
            project_id: GCPプロジェクトID
            client: SecretManagerServiceClient（テスト用に差し替え可能）
        """
        self.project_id = project_id
        self.client = client or secretmanager.SecretManagerServiceClient()

    def get_secret(self, secret_name: str, version: str = "latest") -> str:
        """
        シークレットの値を取得

        Raises:
            ConfigurationError: シークレット取得失敗時
        """
        try:
            name = f"projects/{self.project_id}/secrets/{secret_name}/versions/{version}"
            logger.debug(f"Fetching secret: {name}")

            response = self.client.access_secret_version(request={"name": name})
            secret_value = response.payload.data.decode("UTF-8")

            logger.info(f"Successfully fetched secret: {secret_name}")
            return secret_value

        except Exception as e:
            logger.error(f"Failed to fetch secret {secret_name}: {e}")
            raise ConfigurationError(f"Failed to fetch secret {secret_name}: {e}") from e


def resolve_google_maps_api_key(
    settings: Settings, secret_client: Optional[SecretManagerClient] = None
) -> str:
    """
    Google Maps API Keyを取得

    環境変数の値を優先し、なければSecret Managerから取得する。

    Raises:
        ConfigurationError: どちらからも取得できない場合
    """
    if settings.google_maps_api_key:
        return settings.google_maps_api_key

    if secret_client is None:
        if not settings.gcp_project_id:
            raise ConfigurationError(
                "GOOGLE_MAPS_API_KEY or GCP_PROJECT_ID is required for the google provider"
            )
        secret_client = SecretManagerClient(settings.gcp_project_id)

    return secret_client.get_secret(settings.google_maps_api_key_secret_name)
