"""remote config ライブラリの例外型定義"""

from __future__ import annotations


class RemoteConfigError(Exception):
    """remote config ライブラリのエラー基底クラス。

    構築時のエラーのみ送出される。定常動作中の状態（取得失敗、設定キー不在など）は
    このクラスのインスタンスとして戻り値やコールバックで通知される。
    """

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class RemoteConfigErrorCodes:
    """エラーコード定数。"""

    FETCH_FAILED: str = "FETCH_FAILED"
    SETTING_NOT_FOUND: str = "SETTING_NOT_FOUND"
    USER_CONTEXT_MISSING: str = "USER_CONTEXT_MISSING"
    CONFIG_UNAVAILABLE: str = "CONFIG_UNAVAILABLE"
    INVALID_SETTING: str = "INVALID_SETTING"
    INVALID_CONFIGURATION: str = "INVALID_CONFIGURATION"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
