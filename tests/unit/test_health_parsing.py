"""
Unit Tests for Health Record Parsing

Tests for blood pressure parsing, latest-record reduction, chronic factor
normalization and the small numeric helpers.
"""
from datetime import timezone

import pytest

from clinic_dashboard.core.parsing import (
    BloodPressure,
    calculate_average,
    create_patient_name_map,
    extract_lipid_profile,
    format_date,
    get_latest_by_user,
    normalize_chronic_factors,
    parse_blood_pressure,
    parse_float,
    parse_record_date,
)
from clinic_dashboard.core.parsing.health_parsing import format_number, round_half_up


class TestParseFloat:
    """Tests for lenient numeric parsing."""

    @pytest.mark.parametrize("raw, expected", [
        ("120", 120.0),
        ("120 mmHg", 120.0),
        (" 36.6", 36.6),
        (".5", 0.5),
        (31.5, 31.5),
        (170, 170.0),
        ("1e2", 100.0),
    ])
    def test_parses_numbers(self, raw, expected):
        assert parse_float(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "N/A", True, float("nan"), float("inf"), [], {}, 10 ** 400])
    def test_unparsable_is_none(self, raw):
        assert parse_float(raw) is None

    def test_format_number_drops_trailing_zero(self):
        assert format_number(150.0) == "150"
        assert format_number(31.5) == "31.5"


class TestParseBloodPressure:
    """Tests for blood pressure extraction from vital records."""

    def test_combined_string(self):
        bp = parse_blood_pressure({"blood_pressure": "120/80"})
        assert bp == BloodPressure(systolic=120.0, diastolic=80.0)

    def test_single_value_string_has_no_reading(self):
        bp = parse_blood_pressure({"blood_pressure": "120"})
        assert bp.systolic is None
        assert bp.diastolic is None

    def test_too_many_parts_has_no_reading(self):
        bp = parse_blood_pressure({"blood_pressure": "120/80/60"})
        assert bp == BloodPressure()

    def test_discrete_fields(self):
        bp = parse_blood_pressure({"systolic": "130", "diastolic": "85"})
        assert bp.systolic == 130
        assert bp.diastolic == 85

    def test_discrete_fields_take_priority(self):
        bp = parse_blood_pressure({"systolic": "130", "diastolic": "85", "blood_pressure": "110/70"})
        assert (bp.systolic, bp.diastolic) == (130, 85)

    def test_half_discrete_falls_back_to_string(self):
        bp = parse_blood_pressure({"systolic": "130", "blood_pressure": "110/70"})
        assert (bp.systolic, bp.diastolic) == (110, 70)

    def test_bad_side_is_none(self):
        bp = parse_blood_pressure({"blood_pressure": "abc/80"})
        assert bp.systolic is None
        assert bp.diastolic == 80

    def test_missing_fields(self):
        assert parse_blood_pressure({}) == BloodPressure()
        assert parse_blood_pressure({"blood_pressure": None}) == BloodPressure()

    def test_to_dict(self):
        assert parse_blood_pressure({"blood_pressure": "120/80"}).to_dict() == {"systolic": 120.0, "diastolic": 80.0}


class TestGetLatestByUser:
    """Tests for the per-patient latest record reduction."""

    def test_keeps_most_recent(self):
        records = [
            {"user_uuid": "a", "created_at": "2024-01-01", "id": 1},
            {"user_uuid": "a", "created_at": "2024-03-01", "id": 2},
            {"user_uuid": "b", "created_at": "2024-02-01", "id": 3},
            {"user_uuid": "a", "created_at": "2024-02-01", "id": 4},
        ]
        latest = get_latest_by_user(records)
        assert latest["a"]["id"] == 2
        assert latest["b"]["id"] == 3

    def test_tie_keeps_first_seen(self):
        records = [
            {"user_uuid": "a", "created_at": "2024-01-01T08:00:00Z", "id": 1},
            {"user_uuid": "a", "created_at": "2024-01-01T08:00:00Z", "id": 2},
        ]
        assert get_latest_by_user(records)["a"]["id"] == 1

    def test_invalid_date_never_replaces(self):
        records = [
            {"user_uuid": "a", "created_at": "2024-01-01", "id": 1},
            {"user_uuid": "a", "created_at": "not a date", "id": 2},
            {"user_uuid": "a", "id": 3},
        ]
        assert get_latest_by_user(records)["a"]["id"] == 1

    def test_valid_date_replaces_invalid(self):
        records = [
            {"user_uuid": "a", "created_at": None, "id": 1},
            {"user_uuid": "a", "created_at": "2020-01-01", "id": 2},
        ]
        assert get_latest_by_user(records)["a"]["id"] == 2

    def test_only_invalid_dates_keep_first(self):
        records = [
            {"user_uuid": "a", "created_at": "garbage", "id": 1},
            {"user_uuid": "a", "created_at": "", "id": 2},
        ]
        assert get_latest_by_user(records)["a"]["id"] == 1

    def test_custom_fields(self):
        records = [
            {"uuid": "a", "date_of_check": "2024-01-01", "id": 1},
            {"uuid": "a", "date_of_check": "2024-05-01", "id": 2},
        ]
        assert get_latest_by_user(records, "uuid", "date_of_check")["a"]["id"] == 2

    def test_missing_uuid_grouped_under_none(self):
        latest = get_latest_by_user([{"created_at": "2024-01-01", "id": 1}])
        assert latest[None]["id"] == 1

    def test_unhashable_uuid_keyed_by_string(self):
        records = [
            {"user_uuid": ["a"], "created_at": "2024-01-01", "id": 1},
            {"user_uuid": {"id": "b"}, "created_at": "2024-01-01", "id": 2},
            {"user_uuid": ["a"], "created_at": "2024-02-01", "id": 3},
        ]
        latest = get_latest_by_user(records)
        assert latest["['a']"]["id"] == 3
        assert latest["{'id': 'b'}"]["id"] == 2

    def test_mixed_timezone_awareness(self):
        records = [
            {"user_uuid": "a", "created_at": "2024-01-01T10:00:00Z", "id": 1},
            {"user_uuid": "a", "created_at": "2024-01-01T11:00:00", "id": 2},
        ]
        assert get_latest_by_user(records)["a"]["id"] == 2

    def test_empty(self):
        assert get_latest_by_user([]) == {}
        assert get_latest_by_user(None) == {}


class TestNormalizeChronicFactors:
    """Tests for chronic risk factor cleanup."""

    def test_sentinel_removed_and_case_normalized(self):
        assert normalize_chronic_factors("Smoking, none, Hypertension") == ["Smoking", "Hypertension"]

    def test_single_factor(self):
        assert normalize_chronic_factors("DIABETES") == ["Diabetes"]

    @pytest.mark.parametrize("raw", [None, "", "None", "N/A", "null", "undefined"])
    def test_no_factor(self, raw):
        assert normalize_chronic_factors(raw) == []

    def test_empty_tokens_dropped(self):
        assert normalize_chronic_factors("smoking,, Undefined ,drinking") == ["Smoking", "Drinking"]


class TestLipidAndAverages:
    """Tests for lipid extraction, averages and display rounding."""

    def test_extract_lipid_profile(self):
        lipids = extract_lipid_profile({"tchol": "210", "hdl": 45, "ldl": "", "trig": None})
        assert lipids.total_chol == 210
        assert lipids.hdl == 45
        assert lipids.ldl is None
        assert lipids.triglycerides is None

    def test_extract_lipid_profile_unparsable(self):
        assert extract_lipid_profile({"ldl": "pending"}).ldl is None
        assert extract_lipid_profile(None).to_dict() == {
            "totalChol": None, "hdl": None, "ldl": None, "triglycerides": None
        }

    def test_calculate_average(self):
        assert calculate_average([]) == 0
        assert calculate_average([100, 200]) == 150

    def test_round_half_up(self):
        assert round_half_up(207.5) == 208
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


class TestPatientNamesAndDates:
    """Tests for name lookup and date helpers."""

    def test_create_patient_name_map(self):
        name_map = create_patient_name_map([
            {"uuid": "a", "name": "Maria Santos", "first_name": "Ignored"},
            {"uuid": "b", "first_name": "Jo", "last_name": "Reyes"},
            {"uuid": "c", "first_name": "Ana"},
            {"uuid": "d"},
        ])
        assert name_map == {"a": "Maria Santos", "b": "Jo Reyes", "c": "Ana", "d": "Unknown"}

    def test_parse_record_date_converts_to_utc(self):
        parsed = parse_record_date("2024-03-05T10:00:00+02:00")
        assert parsed.tzinfo == timezone.utc
        assert parsed.hour == 8

    def test_parse_record_date_invalid(self):
        assert parse_record_date("yesterday") is None
        assert parse_record_date(None) is None
        assert parse_record_date(12345) is None

    @pytest.mark.parametrize("raw", ["0001-01-01T00:00:00+01:00", "9999-12-31T23:00:00-02:00"])
    def test_parse_record_date_out_of_range_in_utc(self, raw):
        assert parse_record_date(raw) is None
        assert format_date(raw) == "N/A"

    def test_latest_with_out_of_range_date(self):
        records = [
            {"user_uuid": "a", "created_at": "2024-01-01", "id": 1},
            {"user_uuid": "a", "created_at": "0001-01-01T00:00:00+01:00", "id": 2},
        ]
        assert get_latest_by_user(records)["a"]["id"] == 1

    def test_format_date(self):
        assert format_date("2024-03-05") == "Mar 5, 2024"
        assert format_date(None) == "N/A"
        assert format_date("garbage") == "N/A"
