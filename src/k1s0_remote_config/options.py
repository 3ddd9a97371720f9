"""クライアントオプション定義（pydantic BaseModel）"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter, ValidationError

from .cache import ConfigCache
from .exceptions import RemoteConfigError, RemoteConfigErrorCodes
from .memory import InMemoryConfigCache
from .models import Snapshot

SDK_VERSION = "0.1.0"
DEFAULT_BASE_URL = "https://cdn-global.configcat.com"
CONFIG_FILE_NAME = "config_v5.json"


class OptionsBase(BaseModel):
    """全ポーリングモード共通のオプション。"""

    model_config = ConfigDict(frozen=True)

    mode_prefix: ClassVar[str] = ""

    api_key: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    base_url: str = DEFAULT_BASE_URL
    request_timeout_ms: int = Field(default=30000, gt=0)
    proxy: str | None = None
    cache_factory: Callable[[], ConfigCache] = InMemoryConfigCache
    on_error: Callable[[RemoteConfigError], None] | None = None

    @property
    def client_version(self) -> str:
        return f"{self.mode_prefix}-{SDK_VERSION}"

    def get_url(self) -> str:
        """設定ドキュメントの取得 URL を返す。"""
        return f"{self.base_url.rstrip('/')}/configuration-files/{self.api_key}/{CONFIG_FILE_NAME}"

    def cache_key(self) -> str:
        """キャッシュストアのキーを返す。"""
        return hashlib.sha1(f"python_{CONFIG_FILE_NAME}_{self.api_key}".encode()).hexdigest()


class AutoPollOptions(OptionsBase):
    """バックグラウンドポーリングのオプション。"""

    mode_prefix: ClassVar[str] = "a"

    polling_mode: Literal["auto"] = "auto"
    poll_interval_seconds: int = Field(default=60, ge=1)
    max_init_wait_time_seconds: float = Field(default=5, ge=0)
    on_config_changed: Callable[[Snapshot], None] | None = None


class ManualPollOptions(OptionsBase):
    """手動リフレッシュのオプション。"""

    mode_prefix: ClassVar[str] = "m"

    polling_mode: Literal["manual"] = "manual"


class LazyLoadOptions(OptionsBase):
    """TTL ベースの遅延読み込みのオプション。"""

    mode_prefix: ClassVar[str] = "l"

    polling_mode: Literal["lazy"] = "lazy"
    cache_time_to_live_seconds: int = Field(default=60, ge=1)


ClientOptions = Annotated[
    Union[AutoPollOptions, ManualPollOptions, LazyLoadOptions],
    Field(discriminator="polling_mode"),
]

_options_adapter: TypeAdapter[ClientOptions] = TypeAdapter(ClientOptions)


def parse_options(data: dict[str, Any]) -> OptionsBase:
    """polling_mode に応じたオプションモデルを生成する。

    polling_mode 省略時は "auto"。
    """
    payload = {"polling_mode": "auto", **data}
    try:
        return _options_adapter.validate_python(payload)
    except ValidationError as e:
        raise RemoteConfigError(
            code=RemoteConfigErrorCodes.INVALID_CONFIGURATION,
            message=f"Invalid client options: {e}",
            cause=e,
        ) from e
