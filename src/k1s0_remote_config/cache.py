"""ConfigCache 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ConfigCache(ABC):
    """シリアライズ済みスナップショットを保持するキャッシュストア。

    複数プロセスで共有されうるため、実装は last-write-wins でよい。
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """キーに対応する値を取得する。存在しなければ None。"""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """キーと値を保存する。"""
        ...
