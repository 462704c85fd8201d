"""Unit tests for chart aggregations."""

import pytest

from ev_dashboard.aggregations import (
    AggregateBucket,
    as_series,
    distinct_count,
    full_distribution,
    mean_of,
    model_year_distribution,
    most_common,
    numeric_histogram,
    postal_code_distribution,
    round_half_up,
    top_n_distribution,
    total_count,
)
from ev_dashboard.records import RecordSet, parse_records


class TestTopNDistribution:
    """Top-N categorical counts."""

    def test_tesla_nissan_scenario(self):
        records = parse_records("Make\nTesla\nTesla\nNissan\n")
        assert as_series(top_n_distribution(records, "Make")) == [
            {"label": "Tesla", "value": 2},
            {"label": "Nissan", "value": 1},
        ]

    def test_properties(self, records):
        buckets = top_n_distribution(records, "Make", 5)
        counts = [b.value for b in buckets]
        assert len(buckets) <= 5
        assert counts == sorted(counts, reverse=True)
        assert sum(counts) <= len(records)

    def test_truncates(self, records):
        buckets = top_n_distribution(records, "Make", 2)
        assert [b.label for b in buckets] == ["TESLA", "NISSAN"]

    def test_ties_keep_first_seen_order(self):
        records = parse_records("Make\nB\nA\nA\nB\nC\n")
        assert [b.label for b in top_n_distribution(records, "Make", 5)] == ["B", "A", "C"]

    def test_missing_values_excluded(self):
        records = parse_records("Make,Model\nTESLA,X\n,Y\nTESLA,Z\n")
        assert top_n_distribution(records, "Make", 5) == (AggregateBucket("TESLA", 2),)

    def test_empty_records(self):
        assert top_n_distribution(RecordSet.empty(), "Make", 5) == ()

    def test_memoized(self, records):
        assert top_n_distribution(records, "Make", 5) is top_n_distribution(records, "Make", 5)


class TestFullDistribution:
    """Untruncated categorical counts."""

    def test_vehicle_types(self, records):
        assert as_series(full_distribution(records, "ElectricVehicleType")) == [
            {"label": "Battery Electric Vehicle (BEV)", "value": 4},
            {"label": "Plug-in Hybrid Electric Vehicle (PHEV)", "value": 2},
        ]

    def test_falsy_values_excluded(self):
        records = parse_records("ElectricVehicleType\nBEV\n\n0\nPHEV\n,\n")
        labels = [b.label for b in full_distribution(records, "ElectricVehicleType")]
        assert labels == ["BEV", "PHEV"]


class TestPostalCodeDistribution:
    """Postal code counts with a model facet."""

    def test_top_bucket(self, records):
        top = postal_code_distribution(records)[0]
        assert top.label == "98101"
        assert top.value == 2
        assert top.models == ("TESLA MODEL 3", "TESLA MODEL Y")

    def test_unique_models(self):
        text = "PostalCode,Make,Model\n98101,TESLA,MODEL 3\n98101,TESLA,MODEL 3\n98101,KIA,NIRO\n"
        bucket = postal_code_distribution(parse_records(text))[0]
        assert bucket.value == 3
        assert bucket.models == ("TESLA MODEL 3", "KIA NIRO")

    def test_truncates_to_n(self):
        rows = "\n".join(f"{98000 + i},TESLA,MODEL 3" for i in range(15))
        records = parse_records("PostalCode,Make,Model\n" + rows + "\n")
        assert len(postal_code_distribution(records)) == 10
        assert len(postal_code_distribution(records, 3)) == 3

    def test_missing_codes_excluded(self):
        records = parse_records("PostalCode,Make,Model\n,TESLA,MODEL 3\n98101,KIA,NIRO\n")
        assert [b.label for b in postal_code_distribution(records)] == ["98101"]

    def test_to_dict(self, records):
        payload = postal_code_distribution(records)[0].to_dict()
        assert payload == {"label": "98101", "value": 2, "models": ["TESLA MODEL 3", "TESLA MODEL Y"]}


class TestNumericHistogram:
    """Fixed-width numeric bins."""

    def test_sample_bins(self, records):
        assert as_series(numeric_histogram(records, "ElectricRange")) == [
            {"label": "50-100", "value": 2},
            {"label": "150-200", "value": 1},
            {"label": "200-250", "value": 1},
            {"label": "250-300", "value": 1},
        ]

    def test_numeric_not_string_order(self):
        records = parse_records("ElectricRange\n120\n10\n60\n0\n")
        labels = [b.label for b in numeric_histogram(records, "ElectricRange")]
        assert labels == ["0-50", "50-100", "100-150"]

    def test_every_value_in_one_bin(self):
        records = parse_records("ElectricRange\n0\n49\n50\n99\n100\n330\n")
        buckets = numeric_histogram(records, "ElectricRange")
        assert sum(b.value for b in buckets) == 6
        assert as_series(buckets)[0] == {"label": "0-50", "value": 2}

    def test_non_numeric_and_missing_excluded(self):
        records = parse_records("ElectricRange\n10\nunknown\n\n20\n")
        assert as_series(numeric_histogram(records, "ElectricRange")) == [{"label": "0-50", "value": 2}]

    def test_custom_width(self):
        records = parse_records("ElectricRange\n5\n15\n")
        assert [b.label for b in numeric_histogram(records, "ElectricRange", 10)] == ["0-10", "10-20"]

    def test_invalid_width(self, records):
        with pytest.raises(ValueError):
            numeric_histogram(records, "ElectricRange", 0)

    def test_empty(self):
        assert numeric_histogram(RecordSet.empty(), "ElectricRange") == ()


class TestModelYearDistribution:
    """Model year counts within a valid range."""

    def test_sorted_by_year(self, records):
        assert [b.label for b in model_year_distribution(records)] == ["2013", "2017", "2019", "2020", "2023"]
        assert dict((b.label, b.value) for b in model_year_distribution(records))["2020"] == 2

    def test_out_of_range_years_excluded(self):
        records = parse_records("ModelYear\n1999\n2000\n2024\n2025\nabc\n")
        assert [b.label for b in model_year_distribution(records)] == ["2000", "2024"]


class TestScalarSummaries:
    """Means, distinct counts and totals."""

    def test_mean_range(self, records):
        # 220 + 291 + 75 + 53 + 153 over 6 records (the blank one adds nothing).
        assert mean_of(records, "ElectricRange") == pytest.approx(132.0)

    def test_mean_empty_is_none(self):
        assert mean_of(RecordSet.empty(), "ElectricRange") is None

    def test_mean_skips_text(self):
        records = parse_records("MSRP\n100\nunknown\n200\n")
        assert mean_of(records, "MSRP") == pytest.approx(100.0)

    def test_distinct_cities(self, records):
        assert distinct_count(records, "City") == 4

    def test_distinct_empty(self):
        assert distinct_count(RecordSet.empty(), "City") == 0

    def test_most_common(self, records):
        assert most_common(records, "City") == "Seattle"
        assert most_common(RecordSet.empty(), "City") is None

    def test_total_count(self, records):
        assert total_count(records) == 6
        assert total_count(RecordSet.empty()) == 0


class TestRoundHalfUp:
    """Rounding used for displayed averages."""

    @pytest.mark.parametrize("value,expected", [(2.5, 3.0), (3.5, 4.0), (2.4, 2.0), (None, None)])
    def test_round(self, value, expected):
        assert round_half_up(value) == expected
