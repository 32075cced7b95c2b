"""HTTPクライアント（リトライ機能付き）"""

from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions.errors import HTTPError
from ..logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "geodistance/1.0 (+https://github.com/geodistance/geodistance)"


class HTTPClient:
    """
    プロバイダー共通のHTTPクライアント

    Features:
    - 自動リトライ（指数バックオフ、5xx/429）
    - タイムアウト設定
    - ベースURLからの相対パス解決
    - セッション管理

    リトライはこの層の責務。フォールバックチェーン側では同一プロバイダーを再試行しない。
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10,
        max_retries: int = 3,
        backoff_factor: float = 0.1,
        status_forcelist: tuple[int, ...] = (429, 500, 502, 503, 504),
        user_agent: Optional[str] = None,
    ):
        """
        Args:
            base_url: ベースURL（相対パス指定時に前置）
            timeout: リクエストタイムアウト（秒）
            max_retries: 最大リトライ回数
            backoff_factor: バックオフ係数
            status_forcelist: リトライ対象のステータスコード
            user_agent: User-Agentヘッダー
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist
        self.user_agent = user_agent or DEFAULT_USER_AGENT

        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """セッションを作成"""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["HEAD", "GET"],
            # 最終的なステータスは raise_for_status で扱う
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})

        return session

    def build_url(self, path: str = "") -> str:
        """ベースURLとパスを結合"""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path:
            return self.base_url
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(
        self,
        path: str = "",
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> requests.Response:
        """
        GETリクエスト

        Args:
            path: ベースURLからの相対パス、または絶対URL
            params: クエリパラメータ
            headers: 追加ヘッダー

        Returns:
            レスポンスオブジェクト

        Raises:
            HTTPError: リクエスト失敗時
        """
        url = self.build_url(path)
        try:
            logger.debug(f"GET request to {url}")
            response = self.session.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            logger.debug(f"GET request successful: {url} (status={response.status_code})")
            return response

        except requests.RequestException as e:
            # クエリにAPIキーが含まれるためURLのみ記録
            logger.error(f"GET request failed: {url} - {type(e).__name__}")
            raise HTTPError(f"Failed to GET {url}: {e}") from e

    def get_json(
        self,
        path: str = "",
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        GETリクエストを送り、JSONとしてデコードした本文を返す

        Raises:
            HTTPError: リクエスト失敗時、またはJSONでない応答
        """
        response = self.get(path, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as e:
            raise HTTPError(f"Invalid JSON response from {self.build_url(path)}: {e}") from e

    def close(self) -> None:
        """セッションをクローズ"""
        if self.session:
            self.session.close()
            logger.debug("HTTP session closed")

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
