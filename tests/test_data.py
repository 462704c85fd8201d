"""Tests for loading the CSV snapshot from disk."""

import pytest

from ev_dashboard.data import DatasetLoadError, load_dataset, load_records, reload_dataset


class TestLoadDataset:
    """Ready and error states."""

    def test_ready(self, csv_file):
        state = load_dataset(csv_file)
        assert state.ready
        assert state.status == "ready"
        assert len(state.records) == 6
        assert state.error is None

    def test_missing_file(self, tmp_path):
        state = load_dataset(tmp_path / "missing.csv")
        assert not state.ready
        assert state.status == "error"
        assert "file not found" in state.error
        assert len(state.records) == 0

    def test_directory_is_an_error(self, tmp_path):
        state = load_dataset(tmp_path)
        assert state.status == "error"

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes("Make\nCITRO\xcbN\n".encode("latin-1"))
        state = load_dataset(path)
        assert state.status == "error"
        assert "UTF-8" in state.error

    def test_byte_order_mark(self, tmp_path, sample_csv):
        path = tmp_path / "bom.csv"
        path.write_text(sample_csv, encoding="utf-8-sig")
        assert load_dataset(path).records.to_records()[0]["VIN"] == "5YJ3E1EA7K123456"


class TestLoadRecords:
    """Cached loading keyed on the file version."""

    def test_raises_for_missing_file(self, tmp_path):
        with pytest.raises(DatasetLoadError) as info:
            load_records(tmp_path / "missing.csv")
        assert info.value.reason == "file not found"

    def test_cached_per_file_version(self, csv_file):
        assert load_records(csv_file) is load_records(csv_file)

    def test_changed_file_is_reloaded(self, csv_file, sample_csv):
        before = load_records(csv_file)
        csv_file.write_text(sample_csv + "EXTRAVIN01,,,,,,,,,,,,,,,,\n", encoding="utf-8")
        after = load_records(csv_file)
        assert len(after) == len(before) + 1

    def test_reload_after_error(self, tmp_path, sample_csv):
        path = tmp_path / "later.csv"
        assert load_dataset(path).status == "error"
        path.write_text(sample_csv, encoding="utf-8")
        state = reload_dataset(path)
        assert state.ready
        assert len(state.records) == 6
