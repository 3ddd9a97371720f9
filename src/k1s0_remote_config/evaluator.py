"""ロールアウト評価エンジン

スナップショットとユーザーからフラグ値を求める純粋関数群。I/O もログ出力も行わず、
異常は EvaluationResult.error として呼び出し側に返す。
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from .exceptions import RemoteConfigError, RemoteConfigErrorCodes
from .models import EvaluationReason, EvaluationResult, Snapshot, User
from .settings import Comparator, PercentageItem, RolloutRule, Setting

# ユーザー未指定時のハッシュシード
ANONYMOUS_IDENTIFIER = ""


def rollout_bucket(key: str, identifier: str) -> int:
    """キーと識別子から [0, 100) のバケット値を求める。"""
    # 公開済みの他言語 SDK は key と identifier を "_" 無しで連結する。
    # そのため既存デプロイとはバケット値が一致しない。互換が必要ならここだけを変える。
    hash_candidate = f"{key}_{identifier}".encode("utf-8")
    digest = hashlib.sha1(hash_candidate).hexdigest()[:7]
    return int(digest, 16) % 100


def _to_number(text: str) -> float | None:
    try:
        return float(text.strip().replace(",", "."))
    except ValueError:
        return None


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[str, str], bool]:
    """数値比較。どちらかが数値でなければ文字列比較に切り替える。"""

    def compare(attribute: str, comparison: str) -> bool:
        left = _to_number(attribute)
        right = _to_number(comparison)
        if left is None or right is None:
            return op(attribute, comparison)
        return op(left, right)

    return compare


def _one_of(attribute: str, comparison: str) -> bool:
    return attribute in [item.strip() for item in comparison.split(",")]


_COMPARATORS: dict[int, Callable[[str, str], bool]] = {
    Comparator.IS_ONE_OF: _one_of,
    Comparator.IS_NOT_ONE_OF: lambda a, c: not _one_of(a, c),
    Comparator.CONTAINS: lambda a, c: c in a,
    Comparator.DOES_NOT_CONTAIN: lambda a, c: c not in a,
    Comparator.EQUALS: _ordered(lambda a, c: a == c),
    Comparator.NOT_EQUALS: _ordered(lambda a, c: a != c),
    Comparator.LESS_THAN: _ordered(lambda a, c: a < c),
    Comparator.LESS_THAN_OR_EQUAL: _ordered(lambda a, c: a <= c),
    Comparator.GREATER_THAN: _ordered(lambda a, c: a > c),
    Comparator.GREATER_THAN_OR_EQUAL: _ordered(lambda a, c: a >= c),
}


def rule_matches(rule: RolloutRule, user: User) -> bool:
    """ターゲティングルールがユーザーに一致するか判定する。"""
    attribute = user.get_attribute(rule.comparison_attribute)
    if attribute is None:
        return False
    compare = _COMPARATORS.get(rule.comparator)
    if compare is None:
        return False
    return compare(attribute, rule.comparison_value)


def _match_percentage(
    key: str, identifier: str, items: list[PercentageItem]
) -> PercentageItem | None:
    bucket = rollout_bucket(key, identifier)
    cumulative = 0
    for item in items:
        cumulative += item.percentage
        if bucket < cumulative:
            return item
    return None


def parse_document(snapshot: Snapshot) -> dict[str, Any] | None:
    """スナップショットのドキュメントを辞書として返す。利用不可なら None。"""
    if snapshot.is_empty:
        return None
    try:
        data = json.loads(snapshot.document)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def evaluate_details(
    key: str,
    snapshot: Snapshot,
    user: User | None,
    default_value: Any,
) -> EvaluationResult:
    """フラグを評価し、値と決定理由を返す。"""
    document = parse_document(snapshot)
    if document is None:
        return EvaluationResult(
            key=key,
            value=default_value,
            reason=EvaluationReason.CONFIG_UNAVAILABLE,
            error=RemoteConfigError(
                RemoteConfigErrorCodes.CONFIG_UNAVAILABLE,
                f"Config is not available, returning default value for '{key}'",
            ),
        )

    raw = document.get(key)
    if raw is None:
        return EvaluationResult(
            key=key,
            value=default_value,
            reason=EvaluationReason.SETTING_NOT_FOUND,
            error=RemoteConfigError(
                RemoteConfigErrorCodes.SETTING_NOT_FOUND,
                f"Setting not found: {key}. Available keys: {', '.join(document)}",
            ),
        )

    try:
        setting = Setting.model_validate(raw)
    except ValidationError as e:
        return EvaluationResult(
            key=key,
            value=default_value,
            reason=EvaluationReason.INVALID_SETTING,
            error=RemoteConfigError(
                RemoteConfigErrorCodes.INVALID_SETTING,
                f"Setting '{key}' is malformed: {e}",
                cause=e,
            ),
        )

    condition: RemoteConfigError | None = None
    if user is None:
        if setting.rollout_rules:
            condition = RemoteConfigError(
                RemoteConfigErrorCodes.USER_CONTEXT_MISSING,
                f"Setting '{key}' has targeting rules but no user was supplied",
            )
    else:
        for rule in setting.rollout_rules:
            if rule_matches(rule, user):
                return EvaluationResult(
                    key=key,
                    value=rule.value,
                    reason=EvaluationReason.TARGETING_MATCH,
                    matched_rule=rule,
                )

    if setting.rollout_percentage_items:
        identifier = user.identifier if user is not None and user.identifier else ANONYMOUS_IDENTIFIER
        item = _match_percentage(key, identifier, setting.rollout_percentage_items)
        if item is not None:
            return EvaluationResult(
                key=key,
                value=item.value,
                reason=EvaluationReason.PERCENTAGE_ROLLOUT,
                error=condition,
                matched_rule=item,
            )

    return EvaluationResult(
        key=key,
        value=setting.value,
        reason=EvaluationReason.DEFAULT_SETTING,
        error=condition,
    )


def evaluate(key: str, snapshot: Snapshot, user: User | None, default_value: Any) -> Any:
    """フラグ値を返す。評価できなければ default_value。"""
    return evaluate_details(key, snapshot, user, default_value).value
