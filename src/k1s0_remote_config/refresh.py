"""RefreshOrchestrator: single-flight のリフレッシュとキャッシュへの書き込み"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

from .cache import ConfigCache
from .exceptions import RemoteConfigError, RemoteConfigErrorCodes
from .fetcher import ConfigFetcher
from .logger import get_logger
from .models import EMPTY_SNAPSHOT, Clock, FetchResult, FetchStatus, Snapshot, now_millis

logger = get_logger(__name__)


class RefreshOrchestrator:
    """同時に 1 つだけフェッチを実行し、その結果を全呼び出し元に返す。"""

    def __init__(
        self,
        fetcher: ConfigFetcher,
        cache: ConfigCache,
        cache_key: str,
        *,
        on_changed: Callable[[Snapshot], None] | None = None,
        on_error: Callable[[RemoteConfigError], None] | None = None,
        clock: Clock = now_millis,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._cache_key = cache_key
        self._on_changed = on_changed
        self._on_error = on_error
        self._clock = clock
        self._latest = EMPTY_SNAPSHOT
        self._in_flight: asyncio.Task[Snapshot] | None = None
        self.last_error: RemoteConfigError | None = None

    @property
    def refreshing(self) -> bool:
        return self._in_flight is not None

    async def read_cached(self) -> Snapshot:
        """キャッシュストアを読む。読めなければメモリ上の最新スナップショット。"""
        try:
            raw = await self._cache.get(self._cache_key)
        except Exception as e:
            logger.warning("config cache read failed", cache_key=self._cache_key, error=str(e))
            return self._latest
        if raw is None:
            return self._latest
        try:
            return Snapshot.from_json(raw)
        except (ValueError, TypeError) as e:
            logger.warning("config cache holds an invalid snapshot", cache_key=self._cache_key, error=str(e))
            return self._latest

    async def refresh(self, current: Snapshot) -> Snapshot:
        """スナップショットを更新する。

        実行中のリフレッシュがあればそれに合流し、同じ結果を受け取る。
        取得に失敗しても例外は送出せず current を返す。
        """
        task = self._in_flight
        if task is None:
            task = asyncio.create_task(self._refresh_once(current))
            self._in_flight = task
        return await asyncio.shield(task)

    async def _refresh_once(self, current: Snapshot) -> Snapshot:
        try:
            try:
                result = await self._fetcher.fetch(current)
            except Exception as e:
                result = FetchResult.failed(
                    RemoteConfigError(
                        code=RemoteConfigErrorCodes.FETCH_FAILED,
                        message=f"Fetcher raised: {e}",
                        cause=e,
                    )
                )
            return await self._apply(current, result)
        finally:
            self._in_flight = None

    async def _apply(self, current: Snapshot, result: FetchResult) -> Snapshot:
        if result.status is FetchStatus.NOT_MODIFIED:
            self.last_error = None
            logger.debug("config not modified", version_tag=current.version_tag)
            return current

        if result.status is FetchStatus.FAILED:
            self._report(
                result.error
                or RemoteConfigError(RemoteConfigErrorCodes.FETCH_FAILED, "Config fetch failed")
            )
            return current

        try:
            parsed = json.loads(result.document)
        except ValueError as e:
            self._report(
                RemoteConfigError(
                    code=RemoteConfigErrorCodes.FETCH_FAILED,
                    message=f"Fetched document is not valid JSON: {e}",
                    cause=e,
                )
            )
            return current
        if not isinstance(parsed, dict):
            self._report(
                RemoteConfigError(
                    code=RemoteConfigErrorCodes.FETCH_FAILED,
                    message="Fetched document is not a JSON object",
                )
            )
            return current

        snapshot = Snapshot(
            version_tag=result.version_tag,
            document=result.document,
            fetched_at_millis=self._clock(),
        )
        await self._write(snapshot)
        self._latest = snapshot
        self.last_error = None
        logger.debug("config fetched", version_tag=snapshot.version_tag)

        if snapshot.document != current.document and self._on_changed is not None:
            try:
                self._on_changed(snapshot)
            except Exception:
                logger.exception("config changed callback failed")
        return snapshot

    async def _write(self, snapshot: Snapshot) -> None:
        try:
            await self._cache.set(self._cache_key, snapshot.to_json())
        except Exception as e:
            logger.warning("config cache write failed", cache_key=self._cache_key, error=str(e))

    def _report(self, error: RemoteConfigError) -> None:
        self.last_error = error
        logger.warning("config refresh failed", code=error.code, error=str(error))
        if self._on_error is not None:
            try:
                self._on_error(error)
            except Exception:
                logger.exception("error callback failed")
