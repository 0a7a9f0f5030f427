"""レート制限ユーティリティ"""

import time
from typing import Callable, Optional

from ..logging.config import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    呼び出し間の最小間隔を保証するレート制限

    外部APIの利用規約（例: Nominatimは1リクエスト/秒）を守るため、
    前回の呼び出しから min_interval 秒経過するまで待機する。
    最初の呼び出しは待機しない。
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        requests_per_second: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            min_interval: 呼び出し間の最小間隔（秒）
            requests_per_second: 秒あたりの最大リクエスト数（設定時はmin_intervalを上書き）
            clock: 現在時刻を返す関数（テスト用）
            sleep: スリープ関数（テスト用）
        """
        if requests_per_second:
            min_interval = 1.0 / requests_per_second

        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")

        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self.last_request_time: Optional[float] = None

        logger.debug(f"RateLimiter initialized: min_interval={self.min_interval:.2f}s")

    def wait(self) -> float:
        """
        前回の呼び出しから min_interval 経過するまでスリープ

        Returns:
            実際にスリープした秒数
        """
        slept = 0.0

        if self.last_request_time is not None:
            elapsed = self._clock() - self.last_request_time
            if elapsed < self.min_interval:
                slept = self.min_interval - elapsed
                logger.debug(f"Rate limiting: sleeping for {slept:.2f}s")
                self._sleep(slept)

        self.last_request_time = self._clock()
        return slept

    def reset(self) -> None:
        """レート制限をリセット"""
        self.last_request_time = None
        logger.debug("RateLimiter reset")
