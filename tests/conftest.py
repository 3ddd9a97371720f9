"""remote config テスト共通フィクスチャ"""

from __future__ import annotations

import asyncio

import pytest
from k1s0_remote_config import (
    ConfigFetcher,
    FetchResult,
    InMemoryConfigCache,
    RefreshOrchestrator,
    Snapshot,
)

DEBUG_DOCUMENT = (
    '{"debug":{"value":true,"settingType":0,"rolloutRules":[],"rolloutPercentageItems":[]}}'
)
CACHE_KEY = "test-cache-key"


class FakeClock:
    """テスト用の手動時計（エポックミリ秒）。"""

    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class FakeFetcher(ConfigFetcher):
    """呼び出し回数を記録し、gate で応答を保留できるフェッチャー。"""

    def __init__(self, *results: FetchResult) -> None:
        self._results = list(results) or [FetchResult.fetched(DEBUG_DOCUMENT, "etag-1")]
        self.calls: list[Snapshot] = []
        self.gate: asyncio.Event | None = None

    async def fetch(self, previous: Snapshot) -> FetchResult:
        self.calls.append(previous)
        if self.gate is not None:
            await self.gate.wait()
        if len(self._results) > 1:
            return self._results.pop(0)
        return self._results[0]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache() -> InMemoryConfigCache:
    return InMemoryConfigCache()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def orchestrator(
    fetcher: FakeFetcher, cache: InMemoryConfigCache, clock: FakeClock
) -> RefreshOrchestrator:
    return RefreshOrchestrator(fetcher, cache, CACHE_KEY, clock=clock)
