"""ConfigFetcher 抽象基底クラスと httpx 実装"""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from .exceptions import RemoteConfigError, RemoteConfigErrorCodes
from .models import FetchResult, Snapshot
from .options import OptionsBase


class ConfigFetcher(ABC):
    """設定ドキュメントを 1 回取得するフェッチャー。"""

    @abstractmethod
    async def fetch(self, previous: Snapshot) -> FetchResult:
        """previous を基に条件付き取得を行う。previous は変更しない。"""
        ...


class HttpConfigFetcher(ConfigFetcher):
    """httpx を使った条件付き GET フェッチャー。"""

    def __init__(self, options: OptionsBase) -> None:
        self._options = options
        self._headers: dict[str, str] = {
            "X-ConfigCat-UserAgent": f"ConfigCat-Python/{options.client_version}",
        }

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self._options.request_timeout_ms / 1000,
            proxy=self._options.proxy,
        )

    def _failed(self, message: str, cause: Exception | None = None) -> FetchResult:
        return FetchResult.failed(
            RemoteConfigError(
                code=RemoteConfigErrorCodes.FETCH_FAILED,
                message=message,
                cause=cause,
            )
        )

    async def fetch(self, previous: Snapshot) -> FetchResult:
        headers: dict[str, str] = {}
        if previous.version_tag:
            headers["If-None-Match"] = previous.version_tag
        try:
            async with self._make_client() as client:
                resp = await client.get(self._options.get_url(), headers=headers)
        except httpx.TimeoutException as e:
            return self._failed(
                f"Request timed out after {self._options.request_timeout_ms}ms", e
            )
        except httpx.HTTPError as e:
            return self._failed(f"Failed to fetch config: {e}", e)
        if resp.status_code == 304:
            return FetchResult.not_modified()
        if resp.status_code == 200:
            return FetchResult.fetched(resp.text, resp.headers.get("ETag", ""))
        return self._failed(f"Unexpected HTTP {resp.status_code}: {resp.text}")
