"""HTTPクライアント（リトライ機能付き）"""

from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions.errors import HTTPError
from ..logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "member-map/1.0"


class HTTPClient:
    """
    リトライ機能付きHTTPクライアント

    Features:
    - 自動リトライ（指数バックオフ、max_retries=0で無効）
    - タイムアウト設定
    - セッション管理（User-Agentを全リクエストに付与）
    """

    def __init__(
        self,
        timeout: float = 20,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        status_forcelist: tuple[int, ...] = (500, 502, 503, 504),
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            timeout: リクエストタイムアウト（秒）
            max_retries: 最大リトライ回数
            backoff_factor: バックオフ係数
            status_forcelist: リトライ対象のステータスコード
            user_agent: User-Agentヘッダー
            session: 既存のセッション（テスト用）
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist
        self.user_agent = user_agent or DEFAULT_USER_AGENT

        self.session = session or self._create_session()
        self.session.headers.update({"User-Agent": self.user_agent})

    def _create_session(self) -> requests.Session:
        """セッションを作成"""
        session = requests.Session()

        if self.max_retries > 0:
            retry_strategy = Retry(
                total=self.max_retries,
                backoff_factor=self.backoff_factor,
                status_forcelist=self.status_forcelist,
                allowed_methods=["HEAD", "GET", "PUT", "DELETE", "OPTIONS"],
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
        else:
            adapter = HTTPAdapter(max_retries=0)

        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
        raise_for_status: bool = True,
    ) -> requests.Response:
        """
        HTTPリクエストを送信

        Args:
            method: HTTPメソッド
            url: リクエストURL
            params: クエリパラメータ
            json: JSONボディ
            headers: 追加ヘッダー
            raise_for_status: 4xx/5xxをHTTPErrorとして送出するか

        Returns:
            レスポンスオブジェクト

        Raises:
            HTTPError: 通信失敗時、またはraise_for_status=Trueでエラーステータスの場合
        """
        try:
            logger.debug(f"{method} request to {url}")
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )

            if raise_for_status:
                response.raise_for_status()

            logger.debug(f"{method} request finished: {url} (status={response.status_code})")
            return response

        except requests.RequestException as e:
            logger.error(f"{method} request failed: {url} - {e}")
            status_code = e.response.status_code if e.response is not None else None
            raise HTTPError(f"Failed to {method} {url}: {e}", status_code=status_code) from e

    def get(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        raise_for_status: bool = True,
    ) -> requests.Response:
        """GETリクエスト"""
        return self.request(
            "GET", url, params=params, headers=headers, raise_for_status=raise_for_status
        )

    def close(self) -> None:
        """セッションをクローズ"""
        if self.session:
            self.session.close()
            logger.debug("HTTP session closed")

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
