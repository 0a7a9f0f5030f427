"""メンバー変更通知チャネル"""
import asyncio
import threading
from typing import Any, Optional, Union

from ....shared.exceptions.errors import ChangeFeedError
from ....shared.logging.config import get_logger
from ..domain.models import ChangeEvent, parse_change_event

logger = get_logger(__name__)

# 購読終了を表す番兵
_CLOSED = object()

_QueueItem = Union[ChangeEvent, ChangeFeedError, object]


class Subscription:
    """
    変更通知の購読ハンドル

    `async for event in subscription` で ChangeEvent を順に受け取る。
    接続エラーは ChangeFeedError として送出されるが、購読はその後も継続できる。
    close() で購読を終了する（複数回呼んでもよい）。
    """

    def __init__(self, feed: "ChangeFeed", loop: asyncio.AbstractEventLoop) -> None:
        self._feed = feed
        self._loop = loop
        self._queue: asyncio.Queue[_QueueItem] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        """購読が終了しているか"""
        return self._closed

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration

        item = await self._queue.get()

        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, ChangeFeedError):
            raise item
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """購読を終了"""
        if self._closed:
            return

        self._closed = True
        self._feed._unsubscribe(self)
        self._post(_CLOSED, force=True)
        logger.debug("Change feed subscription closed")

    def _post(self, item: _QueueItem, force: bool = False) -> None:
        """任意のスレッドからイベントループのキューへ渡す"""
        if self._closed and not force:
            return

        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # イベントループが既に終了している
            logger.warning("Dropping change notification: subscriber event loop is closed")


class ChangeFeed:
    """
    メンバーテーブルの変更通知チャネル

    プロデューサーは publish() / fail() を任意のスレッドから呼べる。
    通知は購読者ごとにコミット順で配送される。
    サブクラスは _open() / _close() で実際の接続を開閉する。
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        """購読者数"""
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        """
        購読を開始（実行中のイベントループ内で呼ぶこと）

        Returns:
            Subscription: 購読ハンドル
        """
        loop = asyncio.get_running_loop()
        subscription = Subscription(self, loop)

        with self._lock:
            self._subscriptions.append(subscription)
            first = len(self._subscriptions) == 1

        if first:
            self._open()

        logger.info(f"Change feed subscribed ({self.subscriber_count} subscriber(s))")
        return subscription

    def publish(self, event: ChangeEvent) -> None:
        """変更通知を全購読者に配送"""
        logger.debug(f"Publishing change: {event.event_type.value} {event.member_id}")
        for subscription in self._snapshot():
            subscription._post(event)

    def publish_payload(self, payload: dict[str, Any]) -> Optional[ChangeEvent]:
        """
        ワイヤー形式のペイロードを解析して配送

        Returns:
            Optional[ChangeEvent]: 配送したイベント（形式不正で捨てた場合はNone）
        """
        try:
            event = parse_change_event(payload)
        except ValueError as e:
            logger.warning(f"Ignoring malformed change notification: {e}")
            return None

        self.publish(event)
        return event

    def fail(self, message: str) -> None:
        """接続エラーを全購読者に通知"""
        logger.error(f"Change feed connection error: {message}")
        for subscription in self._snapshot():
            subscription._post(ChangeFeedError(message))

    def close(self) -> None:
        """全購読を終了"""
        for subscription in self._snapshot():
            subscription.close()

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription not in self._subscriptions:
                return
            self._subscriptions.remove(subscription)
            last = not self._subscriptions

        if last:
            self._close()

    def _snapshot(self) -> list[Subscription]:
        with self._lock:
            return list(self._subscriptions)

    def _open(self) -> None:
        """最初の購読者が来たときに接続を開く"""

    def _close(self) -> None:
        """最後の購読者が去ったときに接続を閉じる"""
