from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from metadata_window_audit.aggregation.namespaces import (
    METADATA_NAMESPACES,
    ReportingWindowKey,
)
from metadata_window_audit.aggregation.ordering import sorted_fields

NamespaceFieldSummary = dict[str, list[str] | None]


@dataclass(frozen=True)
class WindowSummaries:
    window7: NamespaceFieldSummary | None
    window30: NamespaceFieldSummary | None
    window180: NamespaceFieldSummary | None

    def namespace_fields(
        self,
        window_key: ReportingWindowKey,
        namespace: str,
    ) -> list[str] | None:
        summary: NamespaceFieldSummary | None = getattr(self, window_key)
        if summary is None:
            return None
        return summary.get(namespace)


def get_window_bucket(app_bucket: Any, lookback_days: int) -> Mapping[str, Any] | None:
    """Return the raw bucket for a lookback, whether keyed by int or by its string form."""
    if not isinstance(app_bucket, Mapping):
        return None
    windows = app_bucket.get("windows")
    if not isinstance(windows, Mapping):
        return None
    bucket = windows.get(lookback_days)
    if not bucket:
        bucket = windows.get(str(lookback_days))
    return bucket if isinstance(bucket, Mapping) else None


def is_processed(bucket: Mapping[str, Any] | None) -> bool:
    return bool(bucket is not None and bucket.get("isProcessed"))


def summarize_namespace_fields(
    buckets: Iterable[Mapping[str, Any] | None],
) -> NamespaceFieldSummary:
    bucket_list = list(buckets)
    summary: NamespaceFieldSummary = {}
    for namespace in METADATA_NAMESPACES:
        field_names: set[str] = set()
        for bucket in bucket_list:
            if not isinstance(bucket, Mapping):
                continue
            namespaces = bucket.get("namespaces")
            if not isinstance(namespaces, Mapping):
                continue
            namespace_bucket = namespaces.get(namespace)
            if isinstance(namespace_bucket, Mapping):
                field_names.update(str(field_name) for field_name in namespace_bucket)
        # None, not [], so "no data" stays distinguishable from an empty list downstream.
        summary[namespace] = sorted_fields(field_names) if field_names else None
    return summary


def build_window_summaries(app_bucket: Any) -> WindowSummaries:
    bucket7 = get_window_bucket(app_bucket, 7)
    bucket23 = get_window_bucket(app_bucket, 23)
    bucket150 = get_window_bucket(app_bucket, 150)
    has_window7 = is_processed(bucket7)
    has_window23 = is_processed(bucket23)
    has_window150 = is_processed(bucket150)

    window7 = summarize_namespace_fields([bucket7]) if has_window7 else None
    window30 = (
        summarize_namespace_fields([bucket7, bucket23]) if has_window7 and has_window23 else None
    )
    window180 = (
        summarize_namespace_fields([bucket7, bucket23, bucket150])
        if has_window7 and has_window23 and has_window150
        else None
    )
    return WindowSummaries(window7=window7, window30=window30, window180=window180)
