"""ジオコーディングキャッシュのJSONファイルリポジトリ"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Union

from ..domain.models import UNRESOLVABLE, GeocodeResult, GeoLocation, is_valid_coordinates
from ....shared.exceptions.errors import CacheFileError
from ....shared.logging.config import get_logger

logger = get_logger(__name__)


class GeocodeCacheFileRepository:
    """
    ジオコーディングキャッシュの永続化

    ファイル形式: {"住所": [緯度, 経度] | null, ...}

    - 読み込み失敗（破損・形式不正）は空のキャッシュとして扱う
    - 書き込みは「読み込み → マージ → 一時ファイル → 置き換え」で行い、
      既存のエントリを失わない
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Args:
            path: キャッシュファイルのパス
        """
        self.path = Path(path)

    def load(self) -> dict[str, GeocodeResult]:
        """
        キャッシュファイルを読み込む

        Returns:
            dict[str, GeocodeResult]: 住所 → 位置情報 / UNRESOLVABLE
        """
        raw = self._read_raw()
        entries: dict[str, GeocodeResult] = {}

        for address, value in raw.items():
            decoded = _decode_entry(value)
            if decoded is None:
                logger.warning(f"Skipping malformed cache entry for {address!r}: {value!r}")
                continue
            entries[address] = decoded

        logger.info(f"Geocode cache loaded: {len(entries)} entries from {self.path}")
        return entries

    def save(self, entries: Mapping[str, GeocodeResult]) -> int:
        """
        キャッシュをファイルにマージ保存

        Args:
            entries: 保存するエントリ（既存のファイル内容に上書きマージされる）

        Returns:
            int: 保存後のエントリ数

        Raises:
            CacheFileError: 書き込みに失敗した場合
        """
        merged = self._read_raw()
        for address, result in entries.items():
            merged[address] = _encode_entry(result)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(merged, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise CacheFileError(f"Failed to write geocode cache {self.path}: {e}") from e

        logger.debug(f"Geocode cache saved: {len(merged)} entries to {self.path}")
        return len(merged)

    def _read_raw(self) -> dict[str, Any]:
        """ファイルの生データを読み込む（失敗時は空の辞書）"""
        if not self.path.exists():
            return {}

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Geocode cache file unreadable, starting empty: {self.path} - {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Geocode cache file is not a JSON object, starting empty: {self.path}")
            return {}

        return data


def _encode_entry(result: GeocodeResult) -> Any:
    if isinstance(result, GeoLocation):
        return [result.latitude, result.longitude]
    return None


def _decode_entry(value: Any) -> Any:
    """JSONの値をGeocodeResultに変換（不正な値はNone）"""
    if value is None:
        return UNRESOLVABLE

    if isinstance(value, (list, tuple)) and len(value) == 2:
        latitude, longitude = value
        if isinstance(latitude, bool) or isinstance(longitude, bool):
            return None
        if is_valid_coordinates(latitude, longitude):
            return GeoLocation(latitude=float(latitude), longitude=float(longitude))

    return None
