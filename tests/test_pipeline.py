import re
from unittest.mock import patch

import pytest

from stock_dashboard.data_handler import InMemoryRecordStore
from stock_dashboard.exceptions import (
    EmptyOrMalformedInput,
    PersistenceFailure,
    RecordValidationError,
)
from stock_dashboard.pipeline import ProgressObserver
from stock_dashboard.pipelines.inventory import InventoryPipeline
from stock_dashboard.schemas import StoreConfig


class RecordingObserver(ProgressObserver):
    def __init__(self):
        self.calls = []

    def on_progress(self, current, total):
        self.calls.append((current, total))


class FailingStore(InMemoryRecordStore):
    """Accepts the delete, then fails on the n-th write."""

    def __init__(self, fail_on: int = 1, error: Exception = None):
        super().__init__()
        self.fail_on = fail_on
        self.error = error or PersistenceFailure("store unavailable")
        self.writes = 0

    def write(self, key, record):
        self.writes += 1
        if self.writes == self.fail_on:
            raise self.error
        super().write(key, record)


def test_sample_ingestion_end_to_end(sample_csv):
    store = InMemoryRecordStore()
    result = InventoryPipeline(store=store).run(sample_csv)

    assert list(result.records) == ["KB-001", "KB-002", "KB-003", "KB-004"]
    thresholds = [r["MinStockThreshold"] for r in result.rows]
    assert thresholds == [3, 5, 2, 2]

    filter_oil = result.records["KB-001"]
    assert filter_oil["No."] == 1
    assert filter_oil["Stock Keluar"] == 4.0
    assert filter_oil["Harga Satuan"] == 15000.0
    assert filter_oil["Lokasi"] == "Rak A"
    assert result.records["KB-004"]["Umur Stock (Dalam Hari)"] == 0.0

    assert store.documents == result.records


def test_headers_follow_canonical_order(sample_csv):
    result = InventoryPipeline().run(sample_csv)

    assert result.headers == [
        "No.",
        "Kode Barang",
        "Nama Barang",
        "Kategori",
        "Model",
        "Satuan",
        "Stock Sebelumnya",
        "Stock Sekarang",
        "Harga Satuan",
        "Umur Stock (Dalam Hari)",
        "MinStockThreshold",
        "Lokasi",
        "Stock Keluar",
    ]


def test_every_record_gets_a_non_negative_integer_threshold(sample_csv):
    result = InventoryPipeline().run(sample_csv)
    for record in result.rows:
        assert isinstance(record["MinStockThreshold"], int)
        assert record["MinStockThreshold"] >= 0
        assert record["Stock Keluar"] >= 0


def test_threshold_column_in_source_is_overwritten():
    text = "Kode Barang,Stock Sekarang,MinStockThreshold\nA,0,999"
    result = InventoryPipeline().run(text)
    assert result.records["A"]["MinStockThreshold"] == 2


def test_empty_file_aborts_before_any_write():
    store = InMemoryRecordStore()
    store.write("OLD", {"Kode Barang": "OLD"})

    with pytest.raises(EmptyOrMalformedInput):
        InventoryPipeline(store=store).run("No.,Kode Barang\n")

    assert store.documents == {"OLD": {"Kode Barang": "OLD"}}


def test_replace_all_discards_previous_records(sample_csv):
    store = InMemoryRecordStore()
    store.write("STALE", {"Kode Barang": "STALE"})

    InventoryPipeline(store=store).run(sample_csv)

    assert "STALE" not in store.documents


def test_later_duplicate_key_overwrites_earlier_row():
    text = "Kode Barang,Nama Barang\nA,First\nB,Other\nA,Second"
    result = InventoryPipeline().run(text)

    assert result.records["A"]["Nama Barang"] == "Second"
    assert len(result.records) == 2
    assert result.duplicate_keys == ["A"]
    assert any("duplicate" in w for w in result.warnings)


def test_skipped_rows_are_reported_in_the_result():
    text = "Kode Barang,Nama Barang\nA,First\nB,Too,Many\nC,Third"
    result = InventoryPipeline().run(text)

    assert list(result.records) == ["A", "C"]
    assert result.skipped_lines == [3]
    assert result.skipped_count == 1
    assert any("skipped" in w for w in result.warnings)


def test_row_number_identity_fallback():
    config = StoreConfig(identity_fallback="row_number")
    text = "Kode Barang,Nama Barang\n,No Code\nB,Has Code"
    result = InventoryPipeline(config=config).run(text)

    assert list(result.records) == ["row-1", "B"]


def test_generated_key_does_not_shadow_a_real_item_code():
    config = StoreConfig(identity_fallback="row_number")
    text = "Kode Barang,Nama Barang\n,Anon\nrow-1,Real"
    result = InventoryPipeline(config=config).run(text)

    assert len(result.records) == 2
    assert result.duplicate_keys == []
    assert result.records["row-1"]["Nama Barang"] == "Real"
    (anon_key,) = [k for k, r in result.records.items() if r["Nama Barang"] == "Anon"]
    assert anon_key != "row-1"


def test_invalid_record_stops_ingestion_before_the_store_is_touched():
    store = InMemoryRecordStore()
    store.documents["OLD"] = {"Kode Barang": "OLD"}

    def negative_threshold(record):
        return {**record, "MinStockThreshold": -1}

    with patch(
        "stock_dashboard.pipelines.inventory.apply_threshold", negative_threshold
    ):
        with pytest.raises(RecordValidationError, match="Row 1"):
            InventoryPipeline(store=store).run("Kode Barang,Stock Sekarang\nA,3")

    assert store.documents == {"OLD": {"Kode Barang": "OLD"}}


def test_uuid_identity_fallback():
    text = "Nama Barang,Stock Sekarang\nNo Code,1"
    result = InventoryPipeline().run(text)

    (key,) = result.records
    assert re.fullmatch(r"[0-9a-f]{32}", key)


def test_store_config_is_shared_with_pipeline():
    config = StoreConfig(store_namespace="tenants/acme/parts", identity_fallback="row_number")
    store = InMemoryRecordStore(config)
    pipeline = InventoryPipeline(store=store)
    assert pipeline.config is config


def test_progress_observer_sees_every_row(sample_csv):
    observer = RecordingObserver()
    InventoryPipeline(observer=observer).run(sample_csv)

    assert observer.calls == [(0, 4), (1, 4), (2, 4), (3, 4), (4, 4)]


def test_persistence_failure_is_surfaced_and_not_undone(sample_csv):
    store = FailingStore(fail_on=3)
    store.documents["OLD"] = {"Kode Barang": "OLD"}

    with pytest.raises(PersistenceFailure):
        InventoryPipeline(store=store).run(sample_csv)

    # Old set deleted, only the writes before the failure landed.
    assert list(store.documents) == ["KB-001", "KB-002"]


def test_os_errors_from_the_store_become_persistence_failures(sample_csv):
    store = FailingStore(fail_on=1, error=OSError("disk full"))
    with pytest.raises(PersistenceFailure, match="disk full"):
        InventoryPipeline(store=store).run(sample_csv)


def test_ingestion_is_repeatable(sample_csv):
    first = InventoryPipeline().run(sample_csv)
    second = InventoryPipeline().run(sample_csv)
    assert first.records == second.records
    assert first.headers == second.headers
