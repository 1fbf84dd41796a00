from __future__ import annotations

from metadata_window_audit.aggregation.namespaces import METADATA_NAMESPACES
from metadata_window_audit.aggregation.ordering import SubscriptionLabels
from metadata_window_audit.aggregation.rows import (
    AggregationRow,
    format_field_list,
    map_aggregations_to_rows,
    rows_to_frame,
    rows_with_data,
)


def _app(name: str | None, window7: dict | None = None, window23: dict | None = None) -> dict:
    windows: dict = {}
    if window7 is not None:
        windows["7"] = {"isProcessed": True, "namespaces": window7}
    if window23 is not None:
        windows["23"] = {"isProcessed": True, "namespaces": window23}
    bucket: dict = {"windows": windows}
    if name is not None:
        bucket["appName"] = name
    return bucket


def _tree() -> dict:
    return {
        "sub-b": {
            "apps": {
                "app-2": _app("Beta", {"visitor": {"email": {}}}),
                "app-1": _app("Alpha", {"account": {"plan": {}}}, {"account": {"tier": {}}}),
            }
        },
        "sub-a": {
            "apps": {
                "app-9": _app(None, {"visitor": {"id": {}}}),
            }
        },
    }


def test_map_aggregations_emits_one_row_per_app_and_namespace() -> None:
    rows_by_namespace = map_aggregations_to_rows(_tree())

    assert list(rows_by_namespace) == list(METADATA_NAMESPACES)
    for namespace in METADATA_NAMESPACES:
        assert len(rows_by_namespace[namespace]) == 3

    visitor_rows = rows_by_namespace["visitor"]
    assert [(row.sub_id, row.app_name, row.app_id) for row in visitor_rows] == [
        ("sub-a", "app-9", "app-9"),
        ("sub-b", "Alpha", "app-1"),
        ("sub-b", "Beta", "app-2"),
    ]
    assert visitor_rows[0].window7 == ("id",)
    assert visitor_rows[1].window7 is None
    assert visitor_rows[2].window7 == ("email",)
    assert visitor_rows[2].window30 is None

    account_alpha = rows_by_namespace["account"][1]
    assert account_alpha.window7 == ("plan",)
    assert account_alpha.window30 == ("plan", "tier")
    assert account_alpha.window180 is None


def test_map_aggregations_is_deterministic_across_insertion_orders() -> None:
    tree = _tree()
    reversed_tree = {
        sub_id: {"apps": dict(reversed(list(bucket["apps"].items())))}
        for sub_id, bucket in reversed(list(tree.items()))
    }

    first = map_aggregations_to_rows(tree)
    second = map_aggregations_to_rows(tree)
    third = map_aggregations_to_rows(reversed_tree)

    assert first == second == third
    assert rows_to_frame(first).to_csv(index=False) == rows_to_frame(third).to_csv(index=False)


def test_map_aggregations_skips_malformed_entries() -> None:
    tree = {
        "sub-1": "not-a-bucket",
        "sub-2": {"apps": None},
        "sub-3": {"apps": {"app-1": None, "app-2": {"windows": "broken"}}},
    }

    rows_by_namespace = map_aggregations_to_rows(tree)

    assert [len(rows) for rows in rows_by_namespace.values()] == [1, 1, 1, 1]
    row = rows_by_namespace["visitor"][0]
    assert row == AggregationRow(
        sub_id="sub-3",
        app_id="app-2",
        app_name="app-2",
        namespace="visitor",
        window7=None,
        window30=None,
        window180=None,
    )
    assert not row.has_data
    assert rows_with_data(rows_by_namespace["visitor"]) == []


def test_map_aggregations_tolerates_non_mapping_tree() -> None:
    for tree in (None, [], "text", 42):
        rows_by_namespace = map_aggregations_to_rows(tree)
        assert rows_by_namespace == {namespace: [] for namespace in METADATA_NAMESPACES}


def test_format_field_list_distinguishes_absent_and_empty() -> None:
    assert format_field_list(None) == "—"
    assert format_field_list(()) == "None"
    assert format_field_list(("a", "b")) == "a, b"
    assert format_field_list(None, placeholder="n/a") == "n/a"


def test_rows_to_frame_renders_windows_and_labels() -> None:
    rows_by_namespace = map_aggregations_to_rows(_tree())
    frame = rows_to_frame(rows_by_namespace, SubscriptionLabels({"sub-b": "Production"}))

    assert len(frame) == 12
    account = frame[(frame["namespace"] == "account") & (frame["app_id"] == "app-1")].iloc[0]
    assert account["sub_display"] == "Production (sub-b)"
    assert account["window7"] == "plan"
    assert account["window30"] == "plan, tier"
    assert account["window180"] == "—"
    assert account["window30_count"] == 2
    assert frame["window180_count"].isna().all()
