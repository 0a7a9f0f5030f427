"""CSVバッチジオコーディングジョブのテスト"""

import csv
import json
from pathlib import Path
from typing import Optional

from member_map.features.batch.jobs.csv_geocoding_job import (
    OUTPUT_HEADER,
    CsvGeocodingJob,
    read_new_csv,
)
from member_map.features.geocoding.domain.models import GeoLocation
from member_map.features.geocoding.providers.cache_geocoder import CacheGeocoder
from member_map.features.geocoding.repositories.cache_file_repository import (
    GeocodeCacheFileRepository,
)
from member_map.features.geocoding.services.geocoding_service import GeocodingService
from member_map.shared.http.rate_limiter import RateLimiter

KNOWN = {
    "Place Bellecour, Lyon": GeoLocation(latitude=45.7578, longitude=4.832),
    "Vieux Port, Marseille": GeoLocation(latitude=43.2951, longitude=5.3744),
}


class StubGeocoder:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def geocode(self, address: str) -> Optional[GeoLocation]:
        self.calls.append(address)
        return KNOWN.get(address)


def write_csv(path: Path, header: list[str], rows: list[list[str]]) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)


def read_csv(path: Path) -> list[dict[str, str]]:
    with path.open("r", encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))


def make_job(cache_file: Optional[Path] = None) -> tuple[CsvGeocodingJob, StubGeocoder]:
    provider = StubGeocoder()
    cache = CacheGeocoder(
        provider,
        rate_limiter=RateLimiter(min_interval=0),
        repository=GeocodeCacheFileRepository(cache_file) if cache_file else None,
    )
    return CsvGeocodingJob(GeocodingService(cache), show_progress=False), provider


def test_merges_new_members_into_base(tmp_path: Path) -> None:
    base = tmp_path / "members.csv"
    new = tmp_path / "new.csv"
    output = tmp_path / "out" / "members.csv"

    write_csv(
        base,
        OUTPUT_HEADER,
        [["Jean Dupont", "48.8566", "2.3522", "Rue de Rivoli, Paris", "", "Président", "Paris", "France"]],
    )
    write_csv(
        new,
        ["Nom", "Description", "Adresse", "Poste", "Ville", "Pays"],
        [
            ["Jean Dupont", "", "rue de rivoli, paris", "", "", ""],
            ["Marie Martin", "Com", "Place Bellecour, Lyon", "Communication", "Lyon", "France"],
            ["Nobody", "", "Atlantis", "", "", ""],
            ["Blank", "", "", "", "", ""],
        ],
    )

    job, provider = make_job()
    result = job.execute(base, new, output)

    assert (result.base_rows, result.new_rows) == (1, 4)
    assert (result.geocoded, result.existing, result.failed, result.skipped) == (1, 1, 1, 1)
    assert result.failed_addresses == ["Atlantis"]
    assert result.total == 2
    assert result.duration_seconds is not None
    assert provider.calls == ["Place Bellecour, Lyon", "Atlantis"]

    rows = read_csv(output)
    assert list(rows[0].keys()) == OUTPUT_HEADER
    assert [r["name"] for r in rows] == ["Jean Dupont", "Marie Martin"]
    assert rows[1]["latitude"] == "45.7578"
    assert rows[1]["poste"] == "Communication"


def test_output_is_fully_quoted(tmp_path: Path) -> None:
    new = tmp_path / "new.csv"
    output = tmp_path / "members.csv"
    write_csv(new, ["name", "address"], [["Pierre", "Vieux Port, Marseille"]])

    job, _ = make_job()
    job.execute(tmp_path / "missing.csv", new, output)

    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(f'"{column}"' for column in OUTPUT_HEADER)
    assert lines[1].startswith('"Pierre","43.2951","5.3744","Vieux Port, Marseille"')


def test_cache_file_prevents_repeat_lookups(tmp_path: Path) -> None:
    """2回目の実行ではキャッシュファイルから解決し、プロバイダーを呼ばない"""
    new = tmp_path / "new.csv"
    cache_file = tmp_path / "geocode-cache.json"
    write_csv(new, ["name", "address"], [["Marie", "Place Bellecour, Lyon"], ["X", "Atlantis"]])

    first_job, first_provider = make_job(cache_file)
    first_job.execute(tmp_path / "none.csv", new, tmp_path / "first.csv")

    second_job, second_provider = make_job(cache_file)
    result = second_job.execute(tmp_path / "none.csv", new, tmp_path / "second.csv")

    assert first_provider.calls == ["Place Bellecour, Lyon", "Atlantis"]
    assert second_provider.calls == []
    assert result.geocoded == 1
    assert json.loads(cache_file.read_text())["Atlantis"] is None


def test_read_new_csv_handles_bom_and_aliases(tmp_path: Path) -> None:
    path = tmp_path / "new.csv"
    path.write_text("\ufeffNOM,ADRESSE,Ville\n Marie , Lyon ,Lyon\n", encoding="utf-8")

    rows = read_new_csv(path)

    assert len(rows) == 1
    assert rows[0].name == "Marie"
    assert rows[0].address == "Lyon"
    assert rows[0].ville == "Lyon"
