"""RemoteConfigClient のユニットテスト"""

import asyncio
import json
from unittest.mock import MagicMock

import httpx
import pytest
import respx
from k1s0_remote_config import (
    AutoPollConfigService,
    AutoPollOptions,
    FetchResult,
    InMemoryConfigCache,
    LazyLoadConfigService,
    LazyLoadOptions,
    ManualPollConfigService,
    ManualPollOptions,
    RemoteConfigClient,
    RemoteConfigError,
    RemoteConfigErrorCodes,
    User,
)

from conftest import DEBUG_DOCUMENT, FakeFetcher


async def test_invalid_options_rejected() -> None:
    """options が不正なら構築時に INVALID_CONFIGURATION。"""
    with pytest.raises(RemoteConfigError) as exc_info:
        RemoteConfigClient(None)  # type: ignore[arg-type]
    assert exc_info.value.code == RemoteConfigErrorCodes.INVALID_CONFIGURATION


async def test_strategy_selected_from_options() -> None:
    """オプションの種類に対応した戦略が選ばれること。"""
    fetcher = FakeFetcher()
    assert isinstance(
        RemoteConfigClient(AutoPollOptions(api_key="K"), fetcher=fetcher).service, AutoPollConfigService
    )
    assert isinstance(
        RemoteConfigClient(LazyLoadOptions(api_key="K"), fetcher=fetcher).service, LazyLoadConfigService
    )
    assert isinstance(
        RemoteConfigClient(ManualPollOptions(api_key="K"), fetcher=fetcher).service,
        ManualPollConfigService,
    )


async def test_auto_poll_get_value() -> None:
    """Auto-Poll で初回取得を待って値を返すこと。"""
    fetcher = FakeFetcher()
    async with RemoteConfigClient(AutoPollOptions(api_key="APIKEY"), fetcher=fetcher) as client:
        assert await client.get_value("debug", False) is True
        assert await client.get_value("debug", False, User("identifier")) is True
        await client.force_refresh()
        assert await client.get_value("debug", False) is True


async def test_lazy_load_get_value() -> None:
    """Lazy-Load で値を返すこと。"""
    client = RemoteConfigClient(LazyLoadOptions(api_key="APIKEY"), fetcher=FakeFetcher())
    assert await client.get_value("debug", False) is True
    assert await client.get_value("debug", False, User("identifier")) is True
    await client.close()


async def test_manual_poll_get_value_requires_force_refresh() -> None:
    """Manual-Poll は force_refresh まで既定値を返すこと。"""
    fetcher = FakeFetcher()
    client = RemoteConfigClient(ManualPollOptions(api_key="APIKEY"), fetcher=fetcher)
    assert await client.get_value("debug", False) is False
    assert await client.get_value("debug", False, User("identifier")) is False
    assert fetcher.calls == []

    await client.force_refresh()
    assert len(fetcher.calls) == 1
    assert await client.get_value("debug", False) is True
    assert await client.get_value("debug", False, User("identifier")) is True


async def test_get_value_reports_conditions() -> None:
    """評価時の状態を on_error に通知し、既定値を返すこと。"""
    on_error = MagicMock()
    client = RemoteConfigClient(
        ManualPollOptions(api_key="APIKEY", on_error=on_error), fetcher=FakeFetcher()
    )
    await client.force_refresh()
    result = await client.get_value_details("missing", "fallback")
    assert result.value == "fallback"
    on_error.assert_called_once()
    assert on_error.call_args.args[0].code == RemoteConfigErrorCodes.SETTING_NOT_FOUND


async def test_fetch_failure_is_reported_not_raised() -> None:
    """取得失敗は例外にならず on_error へ通知されること。"""
    on_error = MagicMock()
    failed = FetchResult.failed(RemoteConfigError(RemoteConfigErrorCodes.FETCH_FAILED, "offline"))
    client = RemoteConfigClient(
        LazyLoadOptions(api_key="APIKEY", on_error=on_error), fetcher=FakeFetcher(failed)
    )
    assert await client.get_value("debug", "default") == "default"
    codes = [call.args[0].code for call in on_error.call_args_list]
    assert codes == [RemoteConfigErrorCodes.FETCH_FAILED, RemoteConfigErrorCodes.CONFIG_UNAVAILABLE]


async def test_get_all_keys() -> None:
    """スナップショットのキー一覧を返すこと。"""
    document = json.dumps({"debug": {"value": True}, "color": {"value": "red", "settingType": 1}})
    client = RemoteConfigClient(
        ManualPollOptions(api_key="APIKEY"), fetcher=FakeFetcher(FetchResult.fetched(document))
    )
    assert await client.get_all_keys() == []
    await client.force_refresh()
    assert sorted(await client.get_all_keys()) == ["color", "debug"]


async def test_config_changed_callback() -> None:
    """Auto-Poll の変更通知が呼ばれること。"""
    changed = MagicMock()
    options = AutoPollOptions(api_key="APIKEY", on_config_changed=changed)
    async with RemoteConfigClient(options, fetcher=FakeFetcher()) as client:
        await client.get_value("debug", False)
    changed.assert_called_once()
    assert changed.call_args.args[0].document == DEBUG_DOCUMENT


async def test_explicit_cache_is_used() -> None:
    """明示したキャッシュへ書き込まれること。"""
    cache = InMemoryConfigCache()
    options = ManualPollOptions(api_key="APIKEY")
    client = RemoteConfigClient(options, fetcher=FakeFetcher(), cache=cache)
    await client.force_refresh()
    assert await cache.get(options.cache_key()) is not None


async def test_close_stops_auto_poll() -> None:
    """close でポーリングが停止すること。"""
    client = RemoteConfigClient(AutoPollOptions(api_key="APIKEY"), fetcher=FakeFetcher())
    await client.get_value("debug", False)
    service = client.service
    assert isinstance(service, AutoPollConfigService)
    assert service.running is True
    await client.close()
    assert service.running is False


async def test_get_value_after_close_returns_default_immediately() -> None:
    """未初期化のまま close した Auto-Poll は待たずに既定値を返すこと。"""
    fetcher = FakeFetcher()
    client = RemoteConfigClient(
        AutoPollOptions(api_key="APIKEY", max_init_wait_time_seconds=5), fetcher=fetcher
    )
    await client.close()
    assert await asyncio.wait_for(client.get_value("debug", False), 0.5) is False
    assert fetcher.calls == []


@respx.mock
async def test_default_http_fetcher() -> None:
    """フェッチャー未指定時は HTTP で取得すること。"""
    route = respx.get("https://cdn-global.configcat.com/configuration-files/APIKEY/config_v5.json").mock(
        return_value=httpx.Response(200, text=DEBUG_DOCUMENT, headers={"ETag": "v1"})
    )
    client = RemoteConfigClient(LazyLoadOptions(api_key="APIKEY"))
    assert await client.get_value("debug", False) is True
    assert route.call_count == 1
