"""クライアント側のメンバー状態同期"""

import asyncio
from typing import Any, Callable, Optional, Protocol

from ....shared.exceptions.errors import ChangeFeedError, MemberStoreError
from ....shared.logging.config import get_logger
from ..changes.change_feed import ChangeFeed, Subscription
from ..cleaning.member_cleaner import clean
from ..domain.enums import ChangeType, SyncState
from ..domain.models import ChangeEvent, Member, MemberDraft

logger = get_logger(__name__)

Listener = Callable[["MemberSync"], None]


class MemberStore(Protocol):
    """MemberSyncが使うストア操作（MemberApiClientが実装）"""

    def list_members(self) -> list[dict[str, Any]]:
        ...

    def create_member(self, draft: MemberDraft) -> dict[str, Any]:
        ...

    def update_member(self, member_id: str, partial: dict[str, Any]) -> dict[str, Any]:
        ...

    def delete_member(self, member_id: str) -> str:
        ...


class MemberSync:
    """
    メンバー一覧をリモートストアと同期する

    - start() で初回の load() と変更通知の購読を開始し、close() で停止する
    - create / update / delete はローカルの一覧を直接変更しない。
      一覧は変更通知の反映によってのみ収束する（HTTPレスポンスと通知の二重適用を避けるため）
    - 一覧を変更するのは load() の成功時と変更通知の反映のみで、どちらも同じイベントループ上で動く
    - 後から開始した load() があれば、古い load() の結果は捨てる
    """

    def __init__(
        self,
        store: MemberStore,
        change_feed: ChangeFeed,
        cleaner: Callable[[Member], Member] = clean,
        resync_interval: Optional[float] = None,
    ) -> None:
        """
        Args:
            store: メンバーストア（ブロッキングI/Oはスレッドで実行する）
            change_feed: 変更通知チャネル
            cleaner: レコードのクリーニング関数
            resync_interval: 定期的に load() する間隔（秒）。Noneなら無効
        """
        self.store = store
        self.change_feed = change_feed
        self.cleaner = cleaner
        self.resync_interval = resync_interval

        self._members: list[Member] = []
        self._error: Optional[str] = None
        self._in_flight = 0
        self._load_generation = 0

        self._subscription: Optional[Subscription] = None
        self._tasks: list[asyncio.Task[Any]] = []
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # 状態
    # ------------------------------------------------------------------

    @property
    def members(self) -> list[Member]:
        """メンバー一覧（created_at降順、新規挿入は先頭）"""
        return list(self._members)

    @property
    def loading(self) -> bool:
        """通信中の操作があるか"""
        return self._in_flight > 0

    @property
    def error(self) -> Optional[str]:
        """直近のエラーメッセージ"""
        return self._error

    @property
    def state(self) -> SyncState:
        """現在の状態"""
        if self.loading:
            return SyncState.LOADING
        if self._error is not None:
            return SyncState.ERROR
        return SyncState.IDLE

    @property
    def started(self) -> bool:
        """購読中か"""
        return self._subscription is not None

    def get(self, member_id: str) -> Optional[Member]:
        """IDでメンバーを取得"""
        index = self._index_of(member_id)
        return self._members[index] if index is not None else None

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """
        状態変化のたびに呼ばれるコールバックを登録

        Returns:
            登録を解除する関数
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # ライフサイクル
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """初回の読み込みと変更通知の購読を開始"""
        if self._subscription is not None:
            return

        self._subscription = self.change_feed.subscribe()
        self._tasks.append(asyncio.create_task(self._consume(self._subscription)))
        self._tasks.append(asyncio.create_task(self.load()))

        if self.resync_interval:
            self._tasks.append(asyncio.create_task(self._resync_loop(self.resync_interval)))

        logger.info("MemberSync started")

    async def close(self) -> None:
        """購読を終了し、実行中のタスクを停止"""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("MemberSync closed")

    async def __aenter__(self) -> "MemberSync":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # 操作
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """
        全メンバーを取得して一覧を置き換える

        失敗時は error を設定し、一覧は変更しない。

        Returns:
            bool: 一覧を置き換えた場合True
        """
        self._load_generation += 1
        generation = self._load_generation

        self._begin()
        try:
            records = await asyncio.to_thread(self.store.list_members)
            members = [self.cleaner(Member.from_dict(record)) for record in records]
        except (MemberStoreError, ValueError) as e:
            if generation == self._load_generation:
                self._error = str(e)
                logger.error(f"Failed to load members: {e}")
            return False
        finally:
            self._end()

        if generation != self._load_generation:
            logger.info("Discarding superseded member load result")
            return False

        self._members = _dedupe(members)
        logger.info(f"Members loaded: {len(self._members)}")
        self._notify()
        return True

    async def create(self, draft: MemberDraft) -> Member:
        """
        メンバーを作成（一覧への反映は変更通知を待つ）

        Raises:
            MemberStoreError: 作成に失敗した場合
        """
        record = await self._call(self.store.create_member, draft)
        member = self.cleaner(Member.from_dict(record))
        logger.info(f"Member created: {member.id} - {member.name}")
        return member

    async def update(self, member_id: str, partial: dict[str, Any]) -> Member:
        """
        メンバーを部分更新（一覧への反映は変更通知を待つ）

        Raises:
            MemberStoreError: 更新に失敗した場合
        """
        record = await self._call(self.store.update_member, member_id, partial)
        member = self.cleaner(Member.from_dict(record))
        logger.info(f"Member updated: {member.id}")
        return member

    async def delete(self, member_id: str) -> None:
        """
        メンバーを削除（一覧への反映は変更通知を待つ）

        Raises:
            MemberStoreError: 削除に失敗した場合
        """
        await self._call(self.store.delete_member, member_id)
        logger.info(f"Member deleted: {member_id}")

    def apply_change(self, event: ChangeEvent) -> bool:
        """
        変更通知を一覧に反映（同じ通知の重複配送に対して冪等）

        Returns:
            bool: 一覧が変化した場合True
        """
        changed = False

        if event.event_type is ChangeType.INSERT and event.new is not None:
            member = self.cleaner(event.new)
            if self._index_of(member.id) is None:
                self._members.insert(0, member)
                changed = True

        elif event.event_type is ChangeType.UPDATE and event.new is not None:
            member = self.cleaner(event.new)
            index = self._index_of(member.id)
            if index is not None and self._members[index] != member:
                self._members[index] = member
                changed = True

        elif event.event_type is ChangeType.DELETE and event.member_id is not None:
            index = self._index_of(event.member_id)
            if index is not None:
                del self._members[index]
                changed = True

        if changed:
            logger.debug(f"Applied {event.event_type.value} for member {event.member_id}")
            self._notify()
        else:
            logger.debug(f"Ignored {event.event_type.value} for member {event.member_id}")

        return changed

    # ------------------------------------------------------------------
    # 内部処理
    # ------------------------------------------------------------------

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        """ストア操作をスレッドで実行し、loading / error を管理"""
        self._begin()
        try:
            return await asyncio.to_thread(func, *args)
        except MemberStoreError as e:
            self._error = str(e)
            logger.error(f"Member store operation failed: {e}")
            raise
        finally:
            self._end()

    async def _consume(self, subscription: Subscription) -> None:
        """変更通知を購読終了まで反映し続ける"""
        while True:
            try:
                async for event in subscription:
                    self.apply_change(event)
                return
            except ChangeFeedError as e:
                self._error = f"Realtime connection error: {e}"
                logger.error(self._error)
                self._notify()

    async def _resync_loop(self, interval: float) -> None:
        """通知の取りこぼしに備えて定期的に再読み込み"""
        while True:
            await asyncio.sleep(interval)
            logger.debug("Periodic member resync")
            await self.load()

    def _begin(self) -> None:
        self._in_flight += 1
        self._error = None
        self._notify()

    def _end(self) -> None:
        self._in_flight -= 1
        self._notify()

    def _index_of(self, member_id: str) -> Optional[int]:
        for index, member in enumerate(self._members):
            if member.id == member_id:
                return index
        return None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("MemberSync listener failed")


def _dedupe(members: list[Member]) -> list[Member]:
    """順序を保ったままIDの重複を除く（先に現れたものを残す）"""
    seen: set[str] = set()
    unique = []
    for member in members:
        if member.id in seen:
            continue
        seen.add(member.id)
        unique.append(member)
    return unique
