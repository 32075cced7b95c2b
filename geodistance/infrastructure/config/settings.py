"""アプリケーション設定（Pydantic Settings）"""
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_UNITS = ("kilometers", "km", "miles", "mi", "meters", "m", "feet", "ft")


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
        default="geodistance",
        description="プロジェクト名",
    )
    environment: str = Field(
        default="development",
        description="環境 (development, staging, production)",
    )
    gcp_project_id: Optional[str] = Field(
        default=None,
        description="GCPプロジェクトID（Secret Manager / Cloud Logging 用）",
    )

    # Geocoding
    geocoding_provider: str = Field(
        default="nominatim",
        description="既定のジオコーディングプロバイダー (nominatim, google, mapbox, opencage)",
    )
    geocoding_use_fallback: bool = Field(
        default=False,
        description="フォールバックチェーンを使うか",
    )
    geocoding_fallback_providers: str = Field(
        default="nominatim,opencage,mapbox",
        description="フォールバックで試すプロバイダー（カンマ区切り、試す順）",
    )
    geocoding_min_accuracy: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="フォールバックを打ち切る最低精度 (0-1)",
    )
    local_coordinates: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description='既知住所の座標（JSON、例: {"Main Office": {"lat": 6.5, "lon": 3.4}}）',
    )
    local_coordinates_file: Optional[str] = Field(
        default=None,
        description="既知住所の座標を定義したYAMLファイルのパス",
    )

    # Geocoding cache
    geocoding_cache_enabled: bool = Field(
        default=True,
        description="プロバイダー結果をキャッシュするか",
    )
    geocoding_cache_duration: int = Field(
        default=1440,
        ge=0,
        description="キャッシュ保持期間（分、0の場合は保存しない）",
    )
    geocoding_cache_prefix: str = Field(
        default="geocoding",
        description="キャッシュキーのプレフィックス",
    )

    # Providers
    nominatim_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="NominatimのURL",
    )
    nominatim_user_agent: str = Field(
        default="geodistance/1.0",
        description="Nominatimに送るUser-Agent（利用規約上必須）",
    )
    nominatim_timeout: float = Field(default=10, description="Nominatimのタイムアウト（秒）")
    nominatim_requests_per_second: float = Field(
        default=1.0,
        gt=0,
        description="Nominatimへの最大リクエスト数（リクエスト/秒）",
    )

    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps API Key（ローカル開発用）",
    )
    google_maps_api_key_secret_name: str = Field(
        default="google-maps-api-key",
        description="Google Maps API KeyのSecret Manager名",
    )
    google_timeout: float = Field(default=10, description="Google Mapsのタイムアウト（秒）")

    mapbox_api_key: Optional[str] = Field(
        default=None,
        description="Mapboxアクセストークン（ローカル開発用）",
    )
    mapbox_api_key_secret_name: str = Field(
        default="mapbox-api-key",
        description="MapboxアクセストークンのSecret Manager名",
    )
    mapbox_geocoding_url: str = Field(
        default="https://api.mapbox.com/geocoding/v5/mapbox.places",
        description="Mapbox Geocoding APIのURL",
    )
    mapbox_directions_url: str = Field(
        default="https://api.mapbox.com/directions/v5/mapbox",
        description="Mapbox Directions APIのURL",
    )
    mapbox_timeout: float = Field(default=10, description="Mapboxのタイムアウト（秒）")

    opencage_api_key: Optional[str] = Field(
        default=None,
        description="OpenCage APIキー（ローカル開発用）",
    )
    opencage_api_key_secret_name: str = Field(
        default="opencage-api-key",
        description="OpenCage APIキーのSecret Manager名",
    )
    opencage_url: str = Field(
        default="https://api.opencagedata.com/geocode/v1/json",
        description="OpenCage APIのURL",
    )
    opencage_timeout: float = Field(default=10, description="OpenCageのタイムアウト（秒）")

    # Routing
    routing_provider: str = Field(
        default="osrm",
        description="ルーティングプロバイダー (osrm, mapbox, google)",
    )
    routing_mode: str = Field(
        default="driving",
        description="既定の移動手段 (driving, walking, cycling)",
    )
    osrm_url: str = Field(
        default="https://router.project-osrm.org",
        description="OSRMサーバーのURL",
    )
    osrm_timeout: float = Field(default=10, description="OSRMのタイムアウト（秒）")
    straight_line_fallback: bool = Field(
        default=True,
        description="ルート取得失敗時に直線距離の結果を返すか",
    )

    # Distance
    distance_unit: str = Field(
        default="kilometers",
        description="既定の距離単位 (kilometers, miles, meters, feet)",
    )

    # HTTP
    http_max_retries: int = Field(default=3, ge=0, description="HTTPリトライ回数")
    http_backoff_factor: float = Field(default=0.1, ge=0, description="HTTPリトライのバックオフ係数")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    gcp_logging_enabled: bool = Field(
        default=False,
        description="Cloud Loggingを有効にするか",
    )

    # HTTP server
    port: int = Field(
        default=8080,
        description="HTTPサーバーのポート番号",
    )

    @field_validator("distance_unit")
    @classmethod
    def _validate_unit(cls, value: str) -> str:
        unit = value.lower()
        if unit not in SUPPORTED_UNITS:
            raise ValueError(f"Unsupported distance unit: {value}")
        return unit

    @field_validator("geocoding_provider", "routing_provider", "routing_mode")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    def get_fallback_provider_names(self) -> list[str]:
        """フォールバックで試すプロバイダー名のリストを取得"""
        return [
            name.strip().lower()
            for name in self.geocoding_fallback_providers.split(",")
            if name.strip()
        ]

    @property
    def cache_ttl_seconds(self) -> int:
        """キャッシュ保持期間（秒）"""
        return self.geocoding_cache_duration * 60

    @property
    def is_development(self) -> bool:
        """開発環境かどうか"""
        return self.environment.lower() == "development"
