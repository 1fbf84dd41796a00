from __future__ import annotations

from metadata_window_audit.aggregation.drift import (
    build_drift_findings,
    build_field_change_entries,
    build_field_change_sentences,
    build_namespace_findings,
    build_row_field_findings,
    join_natural,
    windows_match,
)
from metadata_window_audit.aggregation.ordering import SubscriptionLabels
from metadata_window_audit.aggregation.rows import AggregationRow


def _row(
    window7,
    window30,
    window180,
    *,
    sub_id: str = "S1",
    app_id: str = "A1",
    app_name: str = "App One",
    namespace: str = "visitor",
) -> AggregationRow:
    def _fields(value):
        return None if value is None else tuple(value)

    return AggregationRow(
        sub_id=sub_id,
        app_id=app_id,
        app_name=app_name,
        namespace=namespace,
        window7=_fields(window7),
        window30=_fields(window30),
        window180=_fields(window180),
    )


def test_join_natural() -> None:
    assert join_natural([]) == ""
    assert join_natural(["7 days"]) == "7 days"
    assert join_natural(["7 days", "30 days"]) == "7 days and 30 days"
    assert join_natural(["7 days", "30 days", "180 days"]) == "7 days, 30 days, and 180 days"


def test_field_added_after_first_window_yields_single_finding() -> None:
    row = _row(["a"], ["a", "b"], ["a", "b"])

    findings = build_row_field_findings(row, "S1")

    assert findings == [
        "b is present in 30 days and 180 days but not 7 days in App One (S1) for Visitor."
    ]


def test_field_only_in_recent_window_lists_both_missing_windows() -> None:
    row = _row(["a", "new"], ["a"], ["a", "old"], namespace="account")

    findings = build_row_field_findings(row, "Prod")

    assert findings == [
        "new is present in 7 days but not 30 days and 180 days in App One (Prod) for Account.",
        "old is present in 180 days but not 7 days and 30 days in App One (Prod) for Account.",
    ]


def test_matching_windows_produce_no_row_findings() -> None:
    row = _row(["b", "a"], ["a", "b"], ["a", "b"])

    assert windows_match(row)
    assert build_row_field_findings(row, "S1") == []


def test_pending_windows_do_not_count_as_missing() -> None:
    only_seven = _row(["a"], None, None)
    seven_and_thirty = _row(["a"], ["a", "b"], None)

    assert build_row_field_findings(only_seven, "S1") == []
    assert build_row_field_findings(seven_and_thirty, "S1") == [
        "b is present in 30 days but not 7 days in App One (S1) for Visitor."
    ]


def test_namespace_without_drift_states_no_change() -> None:
    rows = [
        _row(["a"], ["a"], ["a"]),
        _row(["x"], ["x"], ["x"], app_id="A2", app_name="App Two"),
    ]

    assert build_namespace_findings(rows, "visitor") == [
        "No change to fields for Visitor across 7 days, 30 days, and 180 days."
    ]
    assert build_namespace_findings(rows, "visitor", include_unchanged_statement=False) == []


def test_any_drifting_row_replaces_the_blanket_statement() -> None:
    rows = [
        _row(["a"], ["a"], ["a"]),
        _row(["x"], ["x", "y"], ["x", "y"], sub_id="S2", app_id="A2", app_name="App Two"),
    ]
    labels = SubscriptionLabels({"S2": "Staging"})

    findings = build_namespace_findings(rows, "custom", labels)

    assert findings == [
        "y is present in 30 days and 180 days but not 7 days in App Two (Staging) for Custom."
    ]


def test_namespace_without_data_has_no_findings() -> None:
    assert build_namespace_findings([], "salesforce") == []
    assert build_namespace_findings([_row(None, None, None)], "salesforce") == []


def test_blanket_statement_names_only_computed_windows() -> None:
    only_seven = [_row(["a"], None, None), _row(["x"], None, None, app_id="A2")]
    seven_and_thirty = [_row(["a"], ["a"], None), _row(["x"], None, None, app_id="A2")]

    assert build_namespace_findings(only_seven, "visitor") == []
    assert build_namespace_findings(seven_and_thirty, "visitor") == [
        "No change to fields for Visitor across 7 days and 30 days."
    ]


def test_build_drift_findings_covers_every_namespace() -> None:
    findings = build_drift_findings({"visitor": [_row(["a"], ["a"], ["a"])]})

    assert list(findings) == ["visitor", "account", "custom", "salesforce"]
    assert findings["visitor"] == [
        "No change to fields for Visitor across 7 days, 30 days, and 180 days."
    ]
    assert findings["account"] == []


def test_field_change_entries_and_sentences() -> None:
    rows_by_namespace = {
        "visitor": [
            _row(["a", "fresh"], ["a"], ["a", "stale"]),
            _row(["a"], ["a"], None, app_id="A2", app_name="Partial"),
            _row(["a"], ["a"], ["a"], app_id="A3", app_name="Steady"),
        ]
    }

    entries = build_field_change_entries(rows_by_namespace)

    assert len(entries) == 1
    assert entries[0].new_fields == ("fresh",)
    assert entries[0].missing_fields == ("stale",)
    assert build_field_change_sentences(entries) == [
        'New Field: "fresh" detected for App One (Sub ID S1) in the visitor namespace.',
        'No Longer Present: "stale" previously found for App One (Sub ID S1) is absent '
        "from the past 7 and 30 days in the visitor namespace.",
    ]
