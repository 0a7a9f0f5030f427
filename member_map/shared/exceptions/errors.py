"""カスタム例外定義"""


class MemberMapError(Exception):
    """member-map基底例外"""

    pass


class HTTPError(MemberMapError):
    """HTTP関連のエラー"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GeocodingError(MemberMapError):
    """ジオコーディングエラー"""

    pass


class CacheFileError(MemberMapError):
    """ジオコーディングキャッシュファイルの書き込みエラー"""

    pass


class StorageError(MemberMapError):
    """ストレージ関連のエラー"""

    pass


class MemberStoreError(MemberMapError):
    """メンバーストア（リモートAPI）のエラー"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MemberNotFoundError(MemberStoreError):
    """指定IDのメンバーが存在しない"""

    pass


class ChangeFeedError(MemberMapError):
    """変更通知チャネルの接続エラー"""

    pass


class ConfigurationError(MemberMapError):
    """設定エラー"""

    pass


class ValidationError(MemberMapError):
    """バリデーションエラー"""

    pass
