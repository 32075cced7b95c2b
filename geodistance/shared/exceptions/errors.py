"""カスタム例外定義"""


class DistanceError(Exception):
    """geodistance基底例外"""

    pass


class HTTPError(DistanceError):
    """HTTP関連のエラー"""

    pass


class ConfigurationError(DistanceError):
    """設定エラー"""

    pass


class MissingCredentialError(ConfigurationError):
    """APIキー未設定エラー（プロバイダー生成時に発生）"""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(
            f"No API key configured for provider '{provider}'. "
            "Please set the appropriate API key in your environment or .env file."
        )


class ValidationError(DistanceError):
    """バリデーションエラー"""

    pass


class InvalidCoordinateError(ValidationError):
    """緯度・経度が範囲外"""

    pass


class InvalidLocationError(ValidationError):
    """位置指定の形式が不正"""

    pass


class GeocodingError(DistanceError):
    """ジオコーディングエラー"""

    pass


class NotFoundError(GeocodingError):
    """ジオコーディング結果が0件"""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Could not geocode address: {address}")


class ProviderError(GeocodingError):
    """上流API・ネットワークのエラー"""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.upstream_message = message
        super().__init__(f"Geocoding API error ({provider}): {message}")


class RoutingError(DistanceError):
    """ルーティングエラー"""

    pass


class NoRouteFoundError(RoutingError):
    """ルートが見つからない"""

    def __init__(self) -> None:
        super().__init__("No route found between the specified locations.")
