from __future__ import annotations

from datetime import datetime, timezone

import pytest

from datadash.services.validation import validate_entry, validate_update

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [0.01, 1, "42", "999999.99", 1_000_000])
def test_values_in_range_are_valid(value):
    result = validate_entry({"value": value, "category": "Sales", "source": "Web"}, now=NOW)
    assert result.is_valid
    assert result.errors == []
    assert result.candidate.value == pytest.approx(float(value))


@pytest.mark.parametrize("value", [0, "0", -1, "-5.5"])
def test_non_positive_value_is_invalid(value):
    result = validate_entry({"value": value, "category": "Sales", "source": "Web"}, now=NOW)
    assert not result.is_valid
    assert result.codes == ["InvalidValue"]


@pytest.mark.parametrize("value", ["abc", "nan", "inf", "12abc"])
def test_unparseable_value_is_invalid(value):
    result = validate_entry({"value": value, "category": "Sales", "source": "Web"}, now=NOW)
    assert result.codes == ["InvalidValue"]


def test_value_over_limit():
    result = validate_entry({"value": 1_000_000.01, "category": "Sales", "source": "Web"}, now=NOW)
    assert result.codes == ["ValueTooLarge"]
    assert "1,000,000" in result.errors[0]


def test_labels_are_trimmed_and_bounded():
    ok = validate_entry({"value": 5, "category": "  Sales ", "source": "x" * 100}, now=NOW)
    assert ok.is_valid
    assert ok.candidate.category == "Sales"

    too_long = validate_entry({"value": 5, "category": "c" * 101, "source": "Web"}, now=NOW)
    assert too_long.codes == ["FieldTooLong"]

    blank = validate_entry({"value": 5, "category": "   ", "source": ""}, now=NOW)
    assert blank.codes == ["MissingField", "MissingField"]
    assert blank.details() == {"category": "Category is required", "source": "Source is required"}


def test_collect_all_reports_every_violation_in_order():
    result = validate_entry({"value": "-1", "category": "", "source": "s" * 101, "timestamp": "nope"}, now=NOW)
    assert result.codes == ["InvalidValue", "MissingField", "FieldTooLong", "InvalidTimestamp"]
    assert result.candidate is None


def test_interactive_mode_stops_at_first_failure():
    result = validate_entry(
        {"value": "-1", "category": "", "source": ""}, now=NOW, collect_all=False
    )
    assert result.codes == ["InvalidValue"]


def test_timestamp_defaults_to_now_and_parses_when_given():
    missing = validate_entry({"value": 1, "category": "a", "source": "b"}, now=NOW)
    assert missing.candidate.timestamp == NOW

    given = validate_entry(
        {"value": 1, "category": "a", "source": "b", "timestamp": "2024-01-02T03:04:05+02:00"}, now=NOW
    )
    assert given.candidate.timestamp == datetime(2024, 1, 2, 1, 4, 5, tzinfo=timezone.utc)


def test_validation_is_pure():
    row = {"value": "7", "category": " a ", "source": "b"}
    validate_entry(row, now=NOW)
    assert row == {"value": "7", "category": " a ", "source": "b"}


def test_validate_update_checks_only_present_fields():
    result, changes = validate_update({"value": "12.5", "category": None, "source": " Mobile "})
    assert result.is_valid
    assert changes == {"value": 12.5, "source": "Mobile"}

    bad, _ = validate_update({"value": "2000000"})
    assert bad.codes == ["ValueTooLarge"]
