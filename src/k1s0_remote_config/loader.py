"""オプションファイル読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import RemoteConfigError, RemoteConfigErrorCodes
from .options import OptionsBase, parse_options


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML ファイルを読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RemoteConfigError(
            code=RemoteConfigErrorCodes.READ_FILE,
            message=f"Failed to read options file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise RemoteConfigError(
            code=RemoteConfigErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise RemoteConfigError(
            code=RemoteConfigErrorCodes.PARSE_YAML,
            message=f"Options file must contain a mapping: {path}",
        )
    return data


def load_options(path: Path, section: str | None = "remote_config") -> OptionsBase:
    """YAML ファイルからクライアントオプションを読み込む。

    path: オプションファイルパス
    section: オプションを格納したトップレベルキー。None ならファイル全体を使う。
    キーが無い場合もファイル全体をオプションとして扱う。
    """
    data = _read_yaml(path)
    if section is not None and isinstance(data.get(section), dict):
        data = data[section]
    return parse_options(data)
