"""CSVバッチジオコーディングジョブ"""

import csv
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ....shared.logging.config import get_logger
from ...geocoding.services.geocoding_service import AddressRow, GeocodingService

logger = get_logger(__name__)

# 出力（および既存）CSVのヘッダー
OUTPUT_HEADER = ["name", "latitude", "longitude", "address", "description", "poste", "ville", "pays"]

# 新規CSVの列名の別名（小文字で比較）
COLUMN_ALIASES = {
    "name": ("name", "nom"),
    "description": ("description",),
    "address": ("address", "adresse"),
    "poste": ("poste",),
    "ville": ("ville",),
    "pays": ("pays",),
}


@dataclass
class CsvGeocodingResult:
    """CSVジオコーディングの実行結果"""

    output_path: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    base_rows: int = 0
    new_rows: int = 0
    geocoded: int = 0  # 新たに追加した行
    existing: int = 0  # 既存CSVに同じ住所があった行
    failed: int = 0  # 住所が見つからなかった行
    skipped: int = 0  # 住所が空の行
    failed_addresses: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        """出力CSVの行数"""
        return self.base_rows + self.geocoded

    @property
    def duration_seconds(self) -> Optional[float]:
        """処理時間（秒）"""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


class CsvGeocodingJob:
    """
    新規メンバーCSVをジオコーディングして既存CSVにマージするジョブ

    処理フロー:
    1. 既存CSV（座標付き）と新規CSV（座標なし）を読み込む
    2. 既存CSVに同じ住所（大文字・小文字を区別しない）がある行はスキップ
    3. 残りを GeocodingService.geocode_drafts_batch でジオコーディング（バッチ用の間隔で）
    4. 見つかった行を追加して出力CSVに書き出す
    """

    def __init__(self, geocoding_service: GeocodingService, show_progress: bool = True) -> None:
        """
        Args:
            geocoding_service: ジオコーディングサービス（ファイルキャッシュ付き推奨）
            show_progress: プログレスバーを表示するか
        """
        self.geocoding_service = geocoding_service
        self.show_progress = show_progress

    def execute(
        self,
        base_csv: Union[str, Path],
        new_csv: Union[str, Path],
        output_csv: Union[str, Path],
    ) -> CsvGeocodingResult:
        """
        ジョブを実行

        Args:
            base_csv: 既存CSVのパス（存在しなければ空として扱う）
            new_csv: 新規CSVのパス
            output_csv: 出力CSVのパス

        Returns:
            CsvGeocodingResult: 実行結果
        """
        result = CsvGeocodingResult(output_path=str(output_csv), started_at=datetime.now())

        base_rows = read_base_csv(base_csv)
        new_rows = read_new_csv(new_csv)
        result.base_rows = len(base_rows)
        result.new_rows = len(new_rows)

        logger.info(f"Base CSV: {len(base_rows)} members, new CSV: {len(new_rows)} members")

        known_addresses = {row["address"].lower() for row in base_rows if row.get("address")}

        pending: list[AddressRow] = []
        for row in new_rows:
            if row.address and row.address.lower() in known_addresses:
                logger.info(f"Address already present, skipping: {row.address}")
                result.existing += 1
                continue
            pending.append(row)

        batch = self.geocoding_service.geocode_drafts_batch(
            pending, show_progress=self.show_progress
        )
        result.geocoded = batch.success
        result.failed = batch.failure
        result.failed_addresses = batch.failed_addresses
        result.skipped = batch.skipped

        output_rows = list(base_rows)
        output_rows.extend({k: _cell(v) for k, v in draft.to_dict().items()} for draft in batch.drafts)

        write_output_csv(output_csv, output_rows)

        result.completed_at = datetime.now()
        logger.info(
            f"CSV geocoding completed: {result.geocoded} new, {result.existing} existing, "
            f"{result.failed} failed, {result.total} total -> {output_csv}"
        )
        self.geocoding_service.get_cache_stats()

        return result


def read_base_csv(path: Union[str, Path]) -> list[dict[str, str]]:
    """既存CSV（name,latitude,longitude,address,...）を読み込む"""
    path = Path(path)
    if not path.exists():
        logger.warning(f"Base CSV not found, starting empty: {path}")
        return []

    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        rows = []
        for raw in reader:
            row = {_key(k): (v or "").strip() for k, v in raw.items() if k is not None}
            rows.append({column: row.get(column, "") for column in OUTPUT_HEADER})
        return rows


def read_new_csv(path: Union[str, Path]) -> list[AddressRow]:
    """新規CSV（name/nom, description, address/adresse, poste, ville, pays）を読み込む"""
    path = Path(path)
    if not path.exists():
        logger.warning(f"New members CSV not found: {path}")
        return []

    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        rows = []
        for raw in reader:
            row = {_key(k): (v or "").strip() for k, v in raw.items() if k is not None}
            values = {
                field_name: next((row[a] for a in aliases if row.get(a)), "")
                for field_name, aliases in COLUMN_ALIASES.items()
            }
            rows.append(AddressRow(**values))
        return rows


def write_output_csv(path: Union[str, Path], rows: list[dict[str, str]]) -> None:
    """出力CSVを書き出す"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=OUTPUT_HEADER, quoting=csv.QUOTE_ALL)
        writer.writeheader()
        for row in rows:
            writer.writerow({column: row.get(column, "") for column in OUTPUT_HEADER})


def _key(name: str) -> str:
    return name.strip().lower()


def _cell(value: object) -> str:
    return "" if value is None else str(value)
