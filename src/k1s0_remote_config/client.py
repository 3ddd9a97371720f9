"""RemoteConfigClient: ポーリング戦略と評価エンジンをまとめたクライアント"""

from __future__ import annotations

from types import TracebackType
from typing import Any

from .cache import ConfigCache
from .evaluator import evaluate_details, parse_document
from .exceptions import RemoteConfigError, RemoteConfigErrorCodes
from .fetcher import ConfigFetcher, HttpConfigFetcher
from .logger import get_logger
from .models import Clock, EvaluationResult, User, now_millis
from .options import AutoPollOptions, LazyLoadOptions, ManualPollOptions, OptionsBase
from .refresh import RefreshOrchestrator
from .services import (
    AutoPollConfigService,
    ConfigService,
    LazyLoadConfigService,
    ManualPollConfigService,
)

logger = get_logger(__name__)


def create_config_service(
    options: OptionsBase, orchestrator: RefreshOrchestrator, clock: Clock = now_millis
) -> ConfigService:
    """オプションの種類に対応する戦略を生成する。"""
    if isinstance(options, AutoPollOptions):
        return AutoPollConfigService(
            orchestrator,
            poll_interval_seconds=options.poll_interval_seconds,
            max_init_wait_seconds=options.max_init_wait_time_seconds,
        )
    if isinstance(options, LazyLoadOptions):
        return LazyLoadConfigService(
            orchestrator,
            cache_ttl_seconds=options.cache_time_to_live_seconds,
            clock=clock,
        )
    if isinstance(options, ManualPollOptions):
        return ManualPollConfigService(orchestrator)
    raise RemoteConfigError(
        code=RemoteConfigErrorCodes.INVALID_CONFIGURATION,
        message=f"Unsupported options type: {type(options).__name__}",
    )


class RemoteConfigClient:
    """リモート設定のフラグ値を返すクライアント。"""

    def __init__(
        self,
        options: OptionsBase,
        *,
        fetcher: ConfigFetcher | None = None,
        cache: ConfigCache | None = None,
        clock: Clock = now_millis,
    ) -> None:
        if not isinstance(options, OptionsBase):
            raise RemoteConfigError(
                code=RemoteConfigErrorCodes.INVALID_CONFIGURATION,
                message="Invalid 'options' value",
            )
        self._options = options
        self._orchestrator = RefreshOrchestrator(
            fetcher or HttpConfigFetcher(options),
            cache or options.cache_factory(),
            options.cache_key(),
            on_changed=getattr(options, "on_config_changed", None),
            on_error=options.on_error,
            clock=clock,
        )
        self._service = create_config_service(options, self._orchestrator, clock)
        self._closed = False

    @property
    def service(self) -> ConfigService:
        return self._service

    def _ensure_started(self) -> None:
        if isinstance(self._service, AutoPollConfigService) and not self._closed:
            self._service.start()

    async def get_value_details(
        self, key: str, default_value: Any, user: User | None = None
    ) -> EvaluationResult:
        """フラグを評価し、値と決定理由を返す。"""
        self._ensure_started()
        snapshot = await self._service.get_config()
        result = evaluate_details(key, snapshot, user, default_value)
        if result.error is not None:
            logger.warning(
                "flag evaluation condition",
                key=key,
                code=result.error.code,
                error=str(result.error),
            )
            if self._options.on_error is not None:
                try:
                    self._options.on_error(result.error)
                except Exception:
                    logger.exception("error callback failed")
        return result

    async def get_value(self, key: str, default_value: Any, user: User | None = None) -> Any:
        """フラグ値を返す。評価できなければ default_value。"""
        result = await self.get_value_details(key, default_value, user)
        return result.value

    async def get_all_keys(self) -> list[str]:
        """現在のスナップショットに含まれる設定キーを返す。"""
        self._ensure_started()
        snapshot = await self._service.get_config()
        document = parse_document(snapshot)
        if document is None:
            logger.warning("config is not available, returning no keys")
            return []
        return list(document)

    async def force_refresh(self) -> None:
        """設定を即時にリフレッシュする。"""
        self._ensure_started()
        await self._service.force_refresh()

    async def close(self) -> None:
        """バックグラウンド処理を停止する。"""
        self._closed = True
        await self._service.close()

    async def __aenter__(self) -> RemoteConfigClient:
        self._ensure_started()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
