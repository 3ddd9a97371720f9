"""remote config データモデル"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import RemoteConfigError

Clock = Callable[[], int]


def now_millis() -> int:
    """現在時刻をエポックミリ秒で返す。"""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Snapshot:
    """取得済み設定ドキュメントの不変スナップショット。"""

    version_tag: str = ""
    document: str = ""
    fetched_at_millis: int = 0

    @property
    def is_empty(self) -> bool:
        """一度も取得されていないスナップショットか。"""
        return not self.document

    def to_json(self) -> str:
        """キャッシュ保存用に JSON 文字列へ変換する。"""
        return json.dumps(
            {
                "version_tag": self.version_tag,
                "document": self.document,
                "fetched_at_millis": self.fetched_at_millis,
            }
        )

    @staticmethod
    def from_json(raw: str) -> Snapshot:
        """to_json の出力からスナップショットを復元する。不正な値は ValueError。"""
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("snapshot payload must be a JSON object")
        return Snapshot(
            version_tag=str(data.get("version_tag", "")),
            document=str(data.get("document", "")),
            fetched_at_millis=int(data.get("fetched_at_millis", 0)),
        )


EMPTY_SNAPSHOT = Snapshot()


@dataclass
class User:
    """フラグ評価対象のユーザー。"""

    identifier: str
    email: str | None = None
    country: str | None = None
    custom: dict[str, Any] = field(default_factory=dict)

    def get_attribute(self, name: str) -> str | None:
        """比較属性名に対応する値を文字列で返す。存在しなければ None。"""
        builtin = name.lower()
        if builtin == "identifier":
            value = self.identifier
        elif builtin == "email":
            value = self.email
        elif builtin == "country":
            value = self.country
        else:
            value = self.custom.get(name)
        # 比較演算子には常に文字列を渡す
        return None if value is None else str(value)


class FetchStatus(Enum):
    """フェッチ結果の種別。"""

    FETCHED = "fetched"
    NOT_MODIFIED = "not_modified"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchResult:
    """ConfigFetcher.fetch の結果。"""

    status: FetchStatus
    document: str = ""
    version_tag: str = ""
    error: RemoteConfigError | None = None

    @staticmethod
    def fetched(document: str, version_tag: str = "") -> FetchResult:
        return FetchResult(FetchStatus.FETCHED, document=document, version_tag=version_tag)

    @staticmethod
    def not_modified() -> FetchResult:
        return FetchResult(FetchStatus.NOT_MODIFIED)

    @staticmethod
    def failed(error: RemoteConfigError) -> FetchResult:
        return FetchResult(FetchStatus.FAILED, error=error)


class EvaluationReason(str, Enum):
    """評価値の決定理由。"""

    TARGETING_MATCH = "TARGETING_MATCH"
    PERCENTAGE_ROLLOUT = "PERCENTAGE_ROLLOUT"
    DEFAULT_SETTING = "DEFAULT_SETTING"
    SETTING_NOT_FOUND = "SETTING_NOT_FOUND"
    CONFIG_UNAVAILABLE = "CONFIG_UNAVAILABLE"
    INVALID_SETTING = "INVALID_SETTING"


@dataclass
class EvaluationResult:
    """フラグ評価結果。"""

    key: str
    value: Any
    reason: EvaluationReason
    error: RemoteConfigError | None = None
    matched_rule: Any = None
