"""設定ドキュメントのスキーマ定義（pydantic BaseModel）"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


class SettingType(IntEnum):
    """設定値の型。"""

    BOOLEAN = 0
    STRING = 1
    INT = 2
    DOUBLE = 3


class Comparator(IntEnum):
    """ターゲティングルールの比較演算子。"""

    IS_ONE_OF = 0
    IS_NOT_ONE_OF = 1
    CONTAINS = 2
    DOES_NOT_CONTAIN = 3
    EQUALS = 8
    NOT_EQUALS = 9
    LESS_THAN = 10
    LESS_THAN_OR_EQUAL = 11
    GREATER_THAN = 12
    GREATER_THAN_OR_EQUAL = 13


_COMPARATOR_NAMES: dict[str, Comparator] = {
    "isoneof": Comparator.IS_ONE_OF,
    "oneof": Comparator.IS_ONE_OF,
    "isnotoneof": Comparator.IS_NOT_ONE_OF,
    "notoneof": Comparator.IS_NOT_ONE_OF,
    "contains": Comparator.CONTAINS,
    "doesnotcontain": Comparator.DOES_NOT_CONTAIN,
    "notcontains": Comparator.DOES_NOT_CONTAIN,
    "equals": Comparator.EQUALS,
    "eq": Comparator.EQUALS,
    "notequals": Comparator.NOT_EQUALS,
    "ne": Comparator.NOT_EQUALS,
    "lessthan": Comparator.LESS_THAN,
    "lt": Comparator.LESS_THAN,
    "lessthanorequal": Comparator.LESS_THAN_OR_EQUAL,
    "le": Comparator.LESS_THAN_OR_EQUAL,
    "greaterthan": Comparator.GREATER_THAN,
    "gt": Comparator.GREATER_THAN,
    "greaterthanorequal": Comparator.GREATER_THAN_OR_EQUAL,
    "ge": Comparator.GREATER_THAN_OR_EQUAL,
}


def _aliases(camel: str, snake: str) -> AliasChoices:
    return AliasChoices(camel, camel[0].upper() + camel[1:], snake)


class RolloutRule(BaseModel):
    """属性比較によるターゲティングルール。"""

    comparison_attribute: str = Field(
        validation_alias=_aliases("comparisonAttribute", "comparison_attribute")
    )
    # 未知のコードも受け入れ、評価時に不一致として扱う
    comparator: int = Field(validation_alias=_aliases("comparator", "comparator"))
    comparison_value: str = Field(
        default="", validation_alias=_aliases("comparisonValue", "comparison_value")
    )
    value: Any = Field(default=None, validation_alias=_aliases("value", "value"))

    @field_validator("comparator", mode="before")
    @classmethod
    def _parse_comparator(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip().lstrip("-").isdigit():
            key = v.replace("_", "").replace("-", "").replace(" ", "").lower()
            if key not in _COMPARATOR_NAMES:
                raise ValueError(f"unknown comparator: {v}")
            return int(_COMPARATOR_NAMES[key])
        return v

    @field_validator("comparison_value", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class PercentageItem(BaseModel):
    """パーセンテージロールアウトのバケット。"""

    percentage: int = Field(ge=0, le=100, validation_alias=_aliases("percentage", "percentage"))
    value: Any = Field(default=None, validation_alias=_aliases("value", "value"))


class Setting(BaseModel):
    """1 つのフラグ定義。"""

    value: Any = Field(default=None, validation_alias=_aliases("value", "value"))
    setting_type: SettingType = Field(
        default=SettingType.BOOLEAN, validation_alias=_aliases("settingType", "setting_type")
    )
    rollout_rules: list[RolloutRule] = Field(
        default_factory=list, validation_alias=_aliases("rolloutRules", "rollout_rules")
    )
    rollout_percentage_items: list[PercentageItem] = Field(
        default_factory=list,
        validation_alias=_aliases("rolloutPercentageItems", "rollout_percentage_items"),
    )
