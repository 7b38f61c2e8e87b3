"""Field resolver: candidate order, nested paths, date-like scan."""

import fields


def test_first_present_candidate_wins():
    record = {"incidentId": "B", "reportNumber": "C"}
    assert fields.resolve(record, fields.ID_FIELDS) == "B"


def test_null_and_empty_values_are_skipped():
    record = {"id": None, "incidentId": "", "reportNumber": "R-1"}
    assert fields.resolve(record, fields.ID_FIELDS) == "R-1"


def test_zero_counts_as_present():
    assert fields.resolve({"categoryId": 0}, fields.PARENT_TYPE_ID_FIELDS) == 0


def test_nested_path_lookup():
    record = {"properties": {"incidentType": "Burglary"}}
    assert fields.resolve(record, fields.TYPE_FIELDS) == "Burglary"


def test_path_through_non_object_is_a_miss():
    record = {"properties": "not-an-object", "details": {"incidentType": "Arson"}}
    assert fields.resolve(record, fields.TYPE_FIELDS) == "Arson"


def test_default_when_nothing_matches():
    assert fields.resolve({}, fields.TYPE_FIELDS, default="Unknown") == "Unknown"
    assert fields.resolve({}, fields.ID_FIELDS) is None


def test_non_mapping_record():
    assert fields.resolve(None, fields.ID_FIELDS, default="x") == "x"
    assert list(fields.iter_present(["id"], fields.ID_FIELDS)) == []


def test_iter_present_keeps_candidate_order():
    record = {"updated": "b", "datetime": "a", "properties": {"datetime": "c"}}
    assert list(fields.iter_present(record, fields.TIMESTAMP_FIELDS)) == ["a", "b"]
    assert list(fields.iter_present(record, fields.NESTED_TIMESTAMP_FIELDS)) == ["c"]


def test_scan_date_like_matches_keys_case_insensitively():
    record = {
        "occurredDateLocal": "2023-09-26 10:00:00",
        "count": "5",
        "Timestamp": "x",
        "reportDate": 12,
        "emptyTime": "  ",
        "details": {"closedTime": "y"},
    }
    assert list(fields.scan_date_like(record)) == ["2023-09-26 10:00:00", "x", "y"]


def test_accessor_is_reused():
    assert fields.accessor("location.coordinates") is fields.accessor("location.coordinates")
