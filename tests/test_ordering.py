from __future__ import annotations

from metadata_window_audit.aggregation.ordering import (
    SubscriptionLabels,
    sort_subscription_ids,
    sorted_fields,
)


def test_subscription_labels_resolve_and_format() -> None:
    labels = SubscriptionLabels({"123": "Production", "456": "  ", 789: "Numeric"})

    assert labels.resolve("123") == "Production"
    assert labels.resolve("456") == "456"
    assert labels.resolve("789") == "Numeric"
    assert labels.resolve("") == "Unknown SubID"
    assert labels.format_display("123") == "Production (123)"
    assert labels.format_display("456") == "456"
    assert labels.format_display(None) == "Unknown SubID"
    assert len(labels) == 2


def test_subscription_ids_sort_by_display_label_then_raw_id() -> None:
    labels = SubscriptionLabels({"z-sub": "Alpha", "a-sub": "Zulu"})

    ordered = sort_subscription_ids(["a-sub", "m-sub", "z-sub", "", "m-sub"], labels)

    assert ordered == ["z-sub", "a-sub", "m-sub"]


def test_subscription_sort_breaks_label_ties_by_raw_id() -> None:
    labels = SubscriptionLabels({"b": "Same", "a": "Same"})
    assert sort_subscription_ids(["b", "a"], labels) == ["a", "b"]


def test_sorted_fields_is_case_sensitive() -> None:
    assert sorted_fields(["beta", "Alpha", "alpha", "beta"]) == ["Alpha", "alpha", "beta"]
