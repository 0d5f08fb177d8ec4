# Shared pytest fixtures
from __future__ import annotations

import locale
import tempfile
from pathlib import Path

import pytest

from datastream.logging.init import reset_logging
from datastream.models.row_record import RowRecord

SAMPLE_CSV = """MonitoringLocationID,MonitoringLocationName,CharacteristicName,ResultValue,ResultUnit
LOC001,Lake Superior,"Temperature, water",15.5,deg C
LOC001,Lake Superior,"Temperature, water",16.5,deg C
LOC002,Lake Michigan,"Temperature, water",20.0,deg C
LOC001,Lake Superior,pH,7.5,None
LOC001,Lake Superior,"Temperature, water",17.5,deg C
"""


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DATASTREAM_CONFIG", raising=False)
        yield p


@pytest.fixture(autouse=True)
def restore_collation():
    # CLI は LC_COLLATE を環境から設定する
    saved = locale.setlocale(locale.LC_COLLATE)
    yield
    locale.setlocale(locale.LC_COLLATE, saved)


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """chunk_size: 2
isolated_threshold_bytes: 1048576
encoding: utf-8
characteristic_name: "Temperature, water"
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "datastream.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(content: str, name: str = "sample.csv") -> Path:
        path = temp_workdir / "data" / name
        path.write_bytes(content.encode("utf-8"))
        return path
    return _write


@pytest.fixture()
def sample_csv(write_csv) -> Path:
    return write_csv(SAMPLE_CSV)


def _make_record(
    location_id: str | None,
    characteristic: str | None = "Temperature, water",
    value: str | None = "15.5",
    **extras: str,
) -> RowRecord:
    return RowRecord(
        monitoring_location_id=location_id,
        characteristic_name=characteristic,
        result_value=value,
        extras=dict(extras),
    )


@pytest.fixture()
def make_record():
    return _make_record
