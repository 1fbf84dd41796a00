from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from metadata_window_audit.aggregation.namespaces import (
    METADATA_NAMESPACES,
    REPORTING_WINDOW_KEYS,
    UNKNOWN_APP,
    UNKNOWN_SUBSCRIPTION,
    ReportingWindowKey,
)
from metadata_window_audit.aggregation.ordering import SubscriptionLabels, row_sort_key
from metadata_window_audit.aggregation.windows import build_window_summaries

FieldList = tuple[str, ...]

ROW_COLUMNS = [
    "sub_id",
    "sub_display",
    "app_id",
    "app_name",
    "namespace",
    "window7",
    "window30",
    "window180",
    "window7_count",
    "window30_count",
    "window180_count",
]


@dataclass(frozen=True)
class AggregationRow:
    sub_id: str
    app_id: str
    app_name: str
    namespace: str
    window7: FieldList | None
    window30: FieldList | None
    window180: FieldList | None

    def window(self, window_key: ReportingWindowKey) -> FieldList | None:
        return getattr(self, window_key)

    def defined_windows(self) -> list[tuple[ReportingWindowKey, FieldList]]:
        defined: list[tuple[ReportingWindowKey, FieldList]] = []
        for window_key in REPORTING_WINDOW_KEYS:
            fields = self.window(window_key)
            if fields is not None:
                defined.append((window_key, fields))
        return defined

    @property
    def has_data(self) -> bool:
        return any(self.window(window_key) is not None for window_key in REPORTING_WINDOW_KEYS)

    def sort_key(self) -> tuple[str, str, str]:
        return row_sort_key(self.sub_id, self.app_name, self.app_id)


RowsByNamespace = dict[str, list[AggregationRow]]


def _as_field_list(fields: Sequence[str] | None) -> FieldList | None:
    if fields is None:
        return None
    return tuple(fields)


def empty_rows_by_namespace() -> RowsByNamespace:
    return {namespace: [] for namespace in METADATA_NAMESPACES}


def map_aggregations_to_rows(tree: Any) -> RowsByNamespace:
    """Flatten a subscription -> application tree into sorted per-namespace rows."""
    rows_by_namespace = empty_rows_by_namespace()
    if not isinstance(tree, Mapping):
        return rows_by_namespace

    for sub_id, sub_bucket in tree.items():
        if not isinstance(sub_bucket, Mapping):
            continue
        apps = sub_bucket.get("apps")
        if not isinstance(apps, Mapping):
            continue

        sub_label = str(sub_id or "") or UNKNOWN_SUBSCRIPTION
        for app_id, app_bucket in apps.items():
            if not isinstance(app_bucket, Mapping):
                continue
            summaries = build_window_summaries(app_bucket)
            raw_app_id = str(app_id or "")
            app_name = str(app_bucket.get("appName") or raw_app_id or UNKNOWN_APP)

            for namespace in METADATA_NAMESPACES:
                rows_by_namespace[namespace].append(
                    AggregationRow(
                        sub_id=sub_label,
                        app_id=raw_app_id,
                        app_name=app_name,
                        namespace=namespace,
                        window7=_as_field_list(summaries.namespace_fields("window7", namespace)),
                        window30=_as_field_list(summaries.namespace_fields("window30", namespace)),
                        window180=_as_field_list(
                            summaries.namespace_fields("window180", namespace)
                        ),
                    )
                )

    for namespace in METADATA_NAMESPACES:
        rows_by_namespace[namespace].sort(key=AggregationRow.sort_key)
    return rows_by_namespace


def rows_with_data(rows: Iterable[AggregationRow]) -> list[AggregationRow]:
    return [row for row in rows if row.has_data]


def format_field_list(
    fields: Sequence[str] | None,
    placeholder: str = "—",
    empty_text: str = "None",
) -> str:
    if fields is None:
        return placeholder
    if len(fields) == 0:
        return empty_text
    return ", ".join(fields)


def rows_to_frame(
    rows_by_namespace: Mapping[str, Sequence[AggregationRow]],
    labels: SubscriptionLabels | None = None,
    *,
    placeholder: str = "—",
    empty_text: str = "None",
) -> pd.DataFrame:
    resolved_labels = labels or SubscriptionLabels()
    records: list[dict[str, Any]] = []
    for namespace in METADATA_NAMESPACES:
        for row in rows_by_namespace.get(namespace, []):
            record: dict[str, Any] = {
                "sub_id": row.sub_id,
                "sub_display": resolved_labels.format_display(row.sub_id),
                "app_id": row.app_id,
                "app_name": row.app_name,
                "namespace": row.namespace,
            }
            for window_key in REPORTING_WINDOW_KEYS:
                fields = row.window(window_key)
                record[window_key] = format_field_list(
                    fields, placeholder=placeholder, empty_text=empty_text
                )
                record[f"{window_key}_count"] = None if fields is None else len(fields)
            records.append(record)

    frame = pd.DataFrame.from_records(records, columns=ROW_COLUMNS)
    for window_key in REPORTING_WINDOW_KEYS:
        frame[f"{window_key}_count"] = frame[f"{window_key}_count"].astype("Int64")
    return frame
