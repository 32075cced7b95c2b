"""プロバイダーのAPIキー解決"""
from typing import Optional

from ...shared.logging.config import get_logger
from ..gcp.secret_manager import SecretManagerClient
from .settings import Settings

logger = get_logger(__name__)

# プロバイダー名 -> (設定のキー属性, Secret Manager名の属性)
CREDENTIAL_FIELDS = {
    "google": ("google_maps_api_key", "google_maps_api_key_secret_name"),
    "mapbox": ("mapbox_api_key", "mapbox_api_key_secret_name"),
    "opencage": ("opencage_api_key", "opencage_api_key_secret_name"),
}


class CredentialResolver:
    """
    APIキーを設定から取得し、なければSecret Managerを参照する

    開発環境ではSecret Managerを使わない
    """

    def __init__(self, settings: Settings, secret_manager: Optional[SecretManagerClient] = None) -> None:
        self.settings = settings
        self.secret_manager = secret_manager
        self._resolved: dict[str, Optional[str]] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialResolver":
        secret_manager = None
        if not settings.is_development and settings.gcp_project_id:
            secret_manager = SecretManagerClient(settings.gcp_project_id)
        return cls(settings, secret_manager)

    def get(self, provider: str) -> Optional[str]:
        """
        プロバイダーのAPIキーを取得

        Returns:
            Optional[str]: APIキー（キー不要のプロバイダー、または未設定の場合はNone）
        """
        if provider not in CREDENTIAL_FIELDS:
            return None

        if provider in self._resolved:
            return self._resolved[provider]

        key_field, secret_field = CREDENTIAL_FIELDS[provider]
        api_key = getattr(self.settings, key_field)

        if not api_key and self.secret_manager:
            api_key = self.secret_manager.get_secret_or_none(getattr(self.settings, secret_field))

        if not api_key:
            logger.debug(f"No API key configured for {provider}")

        self._resolved[provider] = api_key
        return api_key
