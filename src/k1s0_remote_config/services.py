"""リフレッシュ戦略: Auto-Poll / Manual-Poll / Lazy-Load"""

from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from enum import Enum

from .logger import get_logger
from .models import Clock, Snapshot, now_millis
from .refresh import RefreshOrchestrator

logger = get_logger(__name__)


class ConfigService(ABC):
    """スナップショットの取得とリフレッシュを提供する戦略。"""

    def __init__(self, orchestrator: RefreshOrchestrator) -> None:
        self._orchestrator = orchestrator

    @abstractmethod
    async def get_config(self) -> Snapshot:
        """戦略に従ってスナップショットを返す。例外は送出しない。"""
        ...

    async def force_refresh(self) -> Snapshot:
        """無条件にリフレッシュする。"""
        current = await self._orchestrator.read_cached()
        return await self._orchestrator.refresh(current)

    async def close(self) -> None:
        """リソースを解放する。"""


class ServiceState(Enum):
    """Auto-Poll の状態。"""

    INITIALIZING = "initializing"
    READY = "ready"


class AutoPollConfigService(ConfigService):
    """一定間隔でバックグラウンドリフレッシュする戦略。"""

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        *,
        poll_interval_seconds: float = 60.0,
        max_init_wait_seconds: float = 5.0,
    ) -> None:
        super().__init__(orchestrator)
        self._poll_interval = poll_interval_seconds
        self._max_init_wait = max_init_wait_seconds
        self._state = ServiceState.INITIALIZING
        self._initialized = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._stopped = False

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """ポーリングタスクを開始する。実行中のイベントループが必要。"""
        if self._task is not None or self._stopped:
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """ポーリングタスクを停止する。以降タイマーによるリフレッシュは行わない。"""
        self._running = False
        self._stopped = True
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def close(self) -> None:
        await self.stop()

    async def poll_once(self) -> Snapshot:
        """タイマー 1 回分のリフレッシュを実行する。"""
        current = await self._orchestrator.read_cached()
        if self._stopped:
            return current
        try:
            return await self._orchestrator.refresh(current)
        finally:
            self._mark_ready()

    async def get_config(self) -> Snapshot:
        cached = await self._orchestrator.read_cached()
        if self._state is ServiceState.READY:
            return cached
        # 停止後は初回取得が起こらないので待たない
        if self._stopped or not cached.is_empty:
            self._mark_ready()
            return cached
        if self._max_init_wait > 0:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._initialized.wait(), self._max_init_wait)
        if self._state is ServiceState.INITIALIZING:
            logger.warning(
                "max init wait elapsed before first config refresh",
                max_init_wait_seconds=self._max_init_wait,
            )
            self._mark_ready()
        return await self._orchestrator.read_cached()

    async def force_refresh(self) -> Snapshot:
        try:
            return await super().force_refresh()
        finally:
            self._mark_ready()

    def _mark_ready(self) -> None:
        self._state = ServiceState.READY
        self._initialized.set()

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("config polling error")
            await asyncio.sleep(self._poll_interval)


class ManualPollConfigService(ConfigService):
    """force_refresh 呼び出し時にのみリフレッシュする戦略。"""

    async def get_config(self) -> Snapshot:
        return await self._orchestrator.read_cached()


class LazyLoadConfigService(ConfigService):
    """読み込み時に TTL を確認し、期限切れならリフレッシュする戦略。"""

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        *,
        cache_ttl_seconds: float = 60.0,
        clock: Clock = now_millis,
    ) -> None:
        super().__init__(orchestrator)
        self._ttl_millis = int(cache_ttl_seconds * 1000)
        self._clock = clock

    def is_fresh(self, snapshot: Snapshot) -> bool:
        """TTL 内か判定する。境界ちょうどは期限切れ扱い。"""
        if snapshot.is_empty:
            return False
        return self._clock() < snapshot.fetched_at_millis + self._ttl_millis

    async def get_config(self) -> Snapshot:
        cached = await self._orchestrator.read_cached()
        if self.is_fresh(cached):
            return cached
        return await self._orchestrator.refresh(cached)
