from __future__ import annotations

from metadata_window_audit.aggregation.namespaces import METADATA_NAMESPACES
from metadata_window_audit.aggregation.windows import (
    build_window_summaries,
    get_window_bucket,
    summarize_namespace_fields,
)


def _bucket(processed: bool = True, **namespaces: dict) -> dict:
    return {"isProcessed": processed, "namespaces": namespaces}


def test_summarize_namespace_fields_unions_sorts_and_dedupes() -> None:
    summary = summarize_namespace_fields(
        [
            _bucket(visitor={"phone": {"total": 1}, "email": {"total": 3}}),
            _bucket(visitor={"email": {}, "Zip": {}}, account={"plan": {}}),
        ]
    )

    assert list(summary) == list(METADATA_NAMESPACES)
    assert summary["visitor"] == ["Zip", "email", "phone"]
    assert summary["account"] == ["plan"]
    assert summary["custom"] is None
    assert summary["salesforce"] is None


def test_summarize_namespace_fields_yields_none_for_empty_or_malformed_namespaces() -> None:
    summary = summarize_namespace_fields(
        [
            _bucket(visitor={}, account=["not", "a", "mapping"]),
            None,
            {"namespaces": "broken"},
        ]
    )

    assert summary["visitor"] is None
    assert summary["account"] is None


def test_get_window_bucket_accepts_numeric_and_string_keys() -> None:
    numeric = {"windows": {7: _bucket(visitor={"a": {}})}}
    stringified = {"windows": {"7": _bucket(visitor={"b": {}})}}

    assert get_window_bucket(numeric, 7) is numeric["windows"][7]
    assert get_window_bucket(stringified, 7) is stringified["windows"]["7"]
    assert get_window_bucket({"windows": {}}, 23) is None
    assert get_window_bucket("not-a-bucket", 7) is None


def test_window_summaries_are_cumulative_unions() -> None:
    summaries = build_window_summaries(
        {
            "windows": {
                "7": _bucket(visitor={"email": {}}),
                "23": _bucket(visitor={"phone": {}}, account={"tier": {}}),
                "150": _bucket(visitor={"legacyId": {}}),
            }
        }
    )

    assert summaries.window7["visitor"] == ["email"]
    assert summaries.window7["account"] is None
    assert summaries.window30["visitor"] == ["email", "phone"]
    assert summaries.window30["account"] == ["tier"]
    assert summaries.window180["visitor"] == ["email", "legacyId", "phone"]

    for namespace in METADATA_NAMESPACES:
        window7 = set(summaries.window7[namespace] or [])
        window30 = set(summaries.window30[namespace] or [])
        window180 = set(summaries.window180[namespace] or [])
        assert window7 <= window30 <= window180


def test_window_summaries_gate_on_unprocessed_prerequisites() -> None:
    summaries = build_window_summaries(
        {
            "windows": {
                7: _bucket(visitor={"email": {}}),
                23: _bucket(processed=False, visitor={"phone": {}}),
                150: _bucket(visitor={"legacyId": {}}),
            }
        }
    )

    assert summaries.window7 == {
        "visitor": ["email"],
        "account": None,
        "custom": None,
        "salesforce": None,
    }
    assert summaries.window30 is None
    assert summaries.window180 is None


def test_window_summaries_treat_non_boolean_processed_flags_by_truthiness() -> None:
    summaries = build_window_summaries(
        {
            "windows": {
                "7": {"isProcessed": 1, "namespaces": {"visitor": {"email": {}}}},
                "23": {"isProcessed": "", "namespaces": {}},
            }
        }
    )

    assert summaries.window7["visitor"] == ["email"]
    assert summaries.window30 is None


def test_window_summaries_without_any_windows_are_all_absent() -> None:
    for app_bucket in ({}, {"windows": None}, None, {"windows": {"7": "bad"}}):
        summaries = build_window_summaries(app_bucket)
        assert summaries.window7 is None
        assert summaries.window30 is None
        assert summaries.window180 is None


def test_end_to_end_scenario_with_pending_150_day_scan() -> None:
    summaries = build_window_summaries(
        {
            "appName": "A1",
            "windows": {
                "7": _bucket(visitor={"email": {}}),
                "23": _bucket(visitor={"phone": {}}),
                "150": _bucket(processed=False),
            },
        }
    )

    assert summaries.namespace_fields("window7", "visitor") == ["email"]
    assert summaries.namespace_fields("window30", "visitor") == ["email", "phone"]
    assert summaries.window180 is None
    assert summaries.namespace_fields("window180", "visitor") is None
