from __future__ import annotations

import pytest

from datastream.config.loader import Settings
from datastream.logging.error_log import ErrorLogBuffer
from datastream.models.dataset_state import DatasetState, IngestStatus
from datastream.services.ingest import (
    NoLocationsError,
    decode,
    decode_sync,
    load_dataset,
    select_location,
)
from datastream.tabular.messages import (
    BatchMessage,
    CompleteMessage,
    ErrorMessage,
    ProgressMessage,
)
from datastream.tabular.reader import DecodeError, EmptyInputError, RowIssue, SchemaError

"""Unit tests for the ingestion service (in-process decoding)."""

HEADER = "MonitoringLocationID,CharacteristicName,ResultValue\n"


@pytest.mark.asyncio
async def test_decode_simple_csv():
    data = (HEADER + 'LOC001,"Temperature, water",15.5\nLOC002,"Temperature, water",16.2\n').encode()

    records = await decode(data, use_isolated_context=False)

    assert [r.to_dict() for r in records] == [
        {"MonitoringLocationID": "LOC001", "CharacteristicName": "Temperature, water", "ResultValue": "15.5"},
        {"MonitoringLocationID": "LOC002", "CharacteristicName": "Temperature, water", "ResultValue": "16.2"},
    ]


@pytest.mark.asyncio
async def test_decode_trims_whitespace():
    data = (HEADER + '  LOC001  ,"  Temperature, water  ",  15.5  \n').encode()

    (record,) = await decode(data, use_isolated_context=False)

    assert record.monitoring_location_id == "LOC001"
    assert record.characteristic_name == "Temperature, water"
    assert record.result_value == "15.5"


@pytest.mark.asyncio
async def test_decode_extra_columns_pass_through():
    data = (
        "MonitoringLocationID,CharacteristicName,ResultValue,ExtraColumn\n"
        'LOC001,"Temperature, water",15.5,Extra\n'
    ).encode()

    (record,) = await decode(data, use_isolated_context=False)

    assert record.get("ExtraColumn") == "Extra"


@pytest.mark.asyncio
async def test_decode_escaped_quote():
    data = (HEADER + '"LOC""001","Temperature, water","15.5"\n').encode()
    (record,) = await decode(data, use_isolated_context=False)
    assert record.monitoring_location_id == 'LOC"001'


@pytest.mark.asyncio
async def test_decode_empty_source_raises_empty_input():
    with pytest.raises(EmptyInputError, match="No data found in CSV file"):
        await decode(b"", use_isolated_context=False)


@pytest.mark.asyncio
async def test_decode_header_only_raises_empty_input():
    with pytest.raises(EmptyInputError):
        await decode(HEADER.encode(), use_isolated_context=False)


@pytest.mark.asyncio
async def test_decode_missing_result_value_column_raises_schema_error():
    data = b"MonitoringLocationID,CharacteristicName\nLOC001,Temperature\n"

    with pytest.raises(SchemaError) as e:
        await decode(data, use_isolated_context=False)

    assert e.value.missing == ("ResultValue",)
    assert "Missing required columns: ResultValue" in str(e.value)


@pytest.mark.asyncio
async def test_decode_invalid_headers_name_all_missing_columns():
    with pytest.raises(SchemaError) as e:
        await decode(b"InvalidHeader1,InvalidHeader2\nvalue1,value2\n", use_isolated_context=False)
    assert e.value.missing == ("MonitoringLocationID", "CharacteristicName", "ResultValue")


@pytest.mark.asyncio
async def test_decode_missing_file_raises_decode_error(tmp_path):
    with pytest.raises(DecodeError):
        await decode(tmp_path / "nope.csv", use_isolated_context=False)


@pytest.mark.asyncio
async def test_decode_reports_progress_ending_at_100():
    body = "".join(f"LOC{i % 7:03d},pH,{i}\n" for i in range(300))
    data = (HEADER + body).encode()
    events: list[tuple[int, int, int]] = []

    await decode(
        data,
        use_isolated_context=False,
        chunk_size=25,
        on_progress=lambda done, total, pct: events.append((done, total, pct)),
    )

    assert events, "progress callback should be invoked"
    assert events[-1] == (len(data), len(data), 100)
    done_values = [e[0] for e in events]
    assert done_values == sorted(done_values)
    for done, total, pct in events:
        assert total == len(data)
        assert 0 <= pct <= 100
        assert pct == done * 100 // total


@pytest.mark.asyncio
async def test_decode_final_progress_sent_before_validation_failure():
    events: list[int] = []
    with pytest.raises(SchemaError):
        await decode(
            b"a,b\n1,2\n",
            use_isolated_context=False,
            on_progress=lambda done, total, pct: events.append(pct),
        )
    assert events[-1] == 100


@pytest.mark.asyncio
async def test_decode_uses_settings_threshold_for_context(monkeypatch):
    chosen: list[str] = []

    async def fake_isolated(source, *, chunk_size, encoding):
        chosen.append("isolated")
        yield BatchMessage(rows=[{"MonitoringLocationID": "L", "CharacteristicName": "c", "ResultValue": "1"}])
        yield CompleteMessage(rows_read=1, total_bytes=10)

    monkeypatch.setattr("datastream.services.ingest.isolated_messages", fake_isolated)
    data = (HEADER + "L,c,1\n").encode()

    await decode(data, settings=Settings(isolated_threshold_bytes=1))
    assert chosen == ["isolated"]

    await decode(data, settings=Settings(isolated_threshold_bytes=10_000))
    assert chosen == ["isolated"]  # 閾値未満は inline


@pytest.mark.asyncio
async def test_decode_relays_messages_and_row_issues(monkeypatch):
    async def fake_isolated(source, *, chunk_size, encoding):
        yield BatchMessage(
            rows=[{" MonitoringLocationID": " L1 ", "CharacteristicName": "c", "ResultValue": "1"}],
            issues=[RowIssue(row=3, error_type="FIELD_COUNT_MISMATCH", message="expected 3 fields, saw 4")],
        )
        yield ProgressMessage(bytes_processed=60, total_bytes=100)
        yield ProgressMessage(bytes_processed=40, total_bytes=100)  # 逆行は無視
        yield BatchMessage(rows=[{"MonitoringLocationID": "L2", "CharacteristicName": "c", "ResultValue": "2"}])
        yield CompleteMessage(rows_read=2, total_bytes=100)

    monkeypatch.setattr("datastream.services.ingest.isolated_messages", fake_isolated)
    events: list[tuple[int, int, int]] = []
    buf = ErrorLogBuffer()

    records = await decode(
        b"ignored",
        use_isolated_context=True,
        on_progress=lambda *e: events.append(e),
        error_log=buf,
    )

    # 受信側で正規化される
    assert [r.monitoring_location_id for r in records] == ["L1", "L2"]
    assert events == [(60, 100, 60), (100, 100, 100)]
    (issue,) = buf.records
    assert issue.row == 3
    assert issue.file == "<bytes>"
    assert issue.error_type == "FIELD_COUNT_MISMATCH"


@pytest.mark.asyncio
async def test_decode_error_message_becomes_decode_error(monkeypatch):
    async def fake_isolated(source, *, chunk_size, encoding):
        yield ProgressMessage(bytes_processed=10, total_bytes=100)
        yield ErrorMessage(kind="DecodeError", message="Failed to parse CSV: EOF inside string")

    monkeypatch.setattr("datastream.services.ingest.isolated_messages", fake_isolated)

    with pytest.raises(DecodeError, match="EOF inside string"):
        await decode(b"ignored", use_isolated_context=True)


def test_decode_sync_runs_event_loop():
    records = decode_sync((HEADER + "LOC001,pH,7\n").encode(), use_isolated_context=False)
    assert records[0].monitoring_location_id == "LOC001"


@pytest.mark.asyncio
async def test_load_dataset_commits_state():
    data = (
        "MonitoringLocationID,MonitoringLocationName,CharacteristicName,ResultValue\n"
        'LOC002,Zebra Lake,"Temperature, water",20\n'
        'LOC001,Apple Lake,"Temperature, water",10\n'
    ).encode()
    state = DatasetState()

    loaded = await load_dataset(data, state, use_isolated_context=False)

    assert state.status is IngestStatus.SUCCESS
    assert state.source_name == "<bytes>"
    assert [loc.name for loc in state.locations] == ["Apple Lake", "Zebra Lake"]
    assert state.index is loaded.index
    assert len(loaded.records) == 2


@pytest.mark.asyncio
async def test_load_dataset_failure_keeps_previous_state():
    state = DatasetState()
    await load_dataset((HEADER + "LOC001,pH,7\n").encode(), state, use_isolated_context=False)
    previous_index = state.index
    select_location(state, "LOC001", characteristic="pH")
    previous_result = state.last_result

    with pytest.raises(SchemaError):
        await load_dataset(b"a,b\n1,2\n", state, use_isolated_context=False)

    assert state.status is IngestStatus.FAILED
    assert "Missing required columns" in (state.error or "")
    assert state.index is previous_index
    assert state.last_result is previous_result
    assert [loc.id for loc in state.locations] == ["LOC001"]


@pytest.mark.asyncio
async def test_load_dataset_without_location_ids_raises():
    state = DatasetState()
    with pytest.raises(NoLocationsError):
        await load_dataset((HEADER + ",pH,7\n,pH,8\n").encode(), state, use_isolated_context=False)
    assert state.status is IngestStatus.FAILED
    assert state.source_name is None


@pytest.mark.asyncio
async def test_load_dataset_discarded_after_reset(monkeypatch):
    state = DatasetState()

    async def fake_inline(source, *, chunk_size, encoding):
        yield BatchMessage(rows=[{"MonitoringLocationID": "L1", "CharacteristicName": "c", "ResultValue": "1"}])
        state.clear()  # decode 中の reset
        yield CompleteMessage(rows_read=1, total_bytes=10)

    monkeypatch.setattr("datastream.services.ingest.inline_messages", fake_inline)

    await load_dataset(b"ignored", state, use_isolated_context=False)

    assert state.source_name is None
    assert state.index == {}
    assert state.status is IngestStatus.PENDING


@pytest.mark.asyncio
async def test_select_location_stores_last_result():
    state = DatasetState()
    await load_dataset(
        (HEADER + 'LOC001,"Temperature, water",15\nLOC001,"Temperature, water",17\n').encode(),
        state,
        use_isolated_context=False,
    )

    result = select_location(state, "LOC001")

    assert result.average == 16
    assert state.last_result is result
    assert select_location(state, "missing").count == 0


@pytest.mark.asyncio
async def test_load_dataset_unknown_encoding_marks_failure():
    state = DatasetState()

    with pytest.raises(DecodeError):
        await load_dataset(
            (HEADER + "LOC001,pH,7\n").encode(),
            state,
            use_isolated_context=False,
            settings=Settings(encoding="utf-99"),
        )

    assert state.status is IngestStatus.FAILED
    assert "utf-99" in (state.error or "")
