from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from metadata_window_audit.aggregation.namespaces import (
    METADATA_NAMESPACES,
    RAW_WINDOW_KEYS,
    REPORTING_WINDOW_KEYS,
    UNKNOWN_APP,
    UNKNOWN_SUBSCRIPTION,
)
from metadata_window_audit.aggregation.ordering import (
    SubscriptionLabels,
    application_sort_key,
    sorted_fields,
    subscription_sort_key,
)
from metadata_window_audit.aggregation.windows import (
    WindowSummaries,
    build_window_summaries,
    get_window_bucket,
    is_processed,
)


@dataclass(frozen=True)
class NamespaceCoverage:
    window7: list[str]
    window30: list[str]
    window180: list[str]

    @property
    def unique_total(self) -> int:
        return len(set(self.window7) | set(self.window30) | set(self.window180))


@dataclass(frozen=True)
class ApplicationSummary:
    sub_id: str
    sub_display: str
    app_id: str
    app_name: str
    namespace_totals: dict[str, NamespaceCoverage]

    @property
    def unique_field_count(self) -> int:
        return sum(coverage.unique_total for coverage in self.namespace_totals.values())

    @property
    def window_counts(self) -> dict[str, int]:
        return {
            window_key: sum(
                len(getattr(coverage, window_key)) for coverage in self.namespace_totals.values()
            )
            for window_key in REPORTING_WINDOW_KEYS
        }


@dataclass(frozen=True)
class ApplicationGroup:
    sub_id: str
    sub_display: str
    apps: list[ApplicationSummary] = field(default_factory=list)


@dataclass(frozen=True)
class SubscriptionSummary:
    sub_id: str
    sub_display: str
    apps: list[tuple[str, str]]
    namespace_totals: dict[str, NamespaceCoverage]

    @property
    def app_count(self) -> int:
        return len(self.apps)

    @property
    def unique_field_count(self) -> int:
        return sum(coverage.unique_total for coverage in self.namespace_totals.values())


def _iter_apps(tree: Any):
    if not isinstance(tree, Mapping):
        return
    for sub_id, sub_bucket in tree.items():
        if not isinstance(sub_bucket, Mapping):
            continue
        apps = sub_bucket.get("apps")
        if not isinstance(apps, Mapping):
            continue
        for app_id, app_bucket in apps.items():
            if isinstance(app_bucket, Mapping):
                yield str(sub_id or "") or UNKNOWN_SUBSCRIPTION, str(app_id or ""), app_bucket


def _has_any_processed_bucket(app_bucket: Mapping[str, Any]) -> bool:
    return any(is_processed(get_window_bucket(app_bucket, key)) for key in RAW_WINDOW_KEYS)


def _coverage_from_summaries(summaries: WindowSummaries, namespace: str) -> NamespaceCoverage:
    return NamespaceCoverage(
        window7=list(summaries.namespace_fields("window7", namespace) or []),
        window30=list(summaries.namespace_fields("window30", namespace) or []),
        window180=list(summaries.namespace_fields("window180", namespace) or []),
    )


def build_application_summary(
    sub_id: str,
    app_id: str,
    app_bucket: Mapping[str, Any],
    labels: SubscriptionLabels | None = None,
) -> ApplicationSummary | None:
    if not _has_any_processed_bucket(app_bucket):
        return None
    summaries = build_window_summaries(app_bucket)
    return ApplicationSummary(
        sub_id=sub_id,
        sub_display=(labels or SubscriptionLabels()).format_display(sub_id),
        app_id=app_id,
        app_name=str(app_bucket.get("appName") or app_id or UNKNOWN_APP),
        namespace_totals={
            namespace: _coverage_from_summaries(summaries, namespace)
            for namespace in METADATA_NAMESPACES
        },
    )


def build_application_groups(
    tree: Any,
    labels: SubscriptionLabels | None = None,
) -> list[ApplicationGroup]:
    resolved_labels = labels or SubscriptionLabels()
    apps_by_subscription: dict[str, list[ApplicationSummary]] = {}
    for sub_id, app_id, app_bucket in _iter_apps(tree):
        summary = build_application_summary(sub_id, app_id, app_bucket, resolved_labels)
        if summary is not None:
            apps_by_subscription.setdefault(sub_id, []).append(summary)

    groups: list[ApplicationGroup] = []
    for sub_id in sorted(
        apps_by_subscription,
        key=lambda value: subscription_sort_key(value, resolved_labels),
    ):
        apps = sorted(
            apps_by_subscription[sub_id],
            key=lambda app: application_sort_key(app.app_name, app.app_id),
        )
        groups.append(
            ApplicationGroup(
                sub_id=sub_id,
                sub_display=resolved_labels.format_display(sub_id),
                apps=apps,
            )
        )
    return groups


def build_subscription_summaries(
    tree: Any,
    labels: SubscriptionLabels | None = None,
) -> list[SubscriptionSummary]:
    resolved_labels = labels or SubscriptionLabels()
    coverage: dict[str, dict[str, dict[str, set[str]]]] = {}
    app_lists: dict[str, list[tuple[str, str]]] = {}

    if isinstance(tree, Mapping):
        for sub_id, sub_bucket in tree.items():
            if isinstance(sub_bucket, Mapping):
                normalized = str(sub_id or "") or UNKNOWN_SUBSCRIPTION
                coverage.setdefault(
                    normalized,
                    {
                        namespace: {window_key: set() for window_key in REPORTING_WINDOW_KEYS}
                        for namespace in METADATA_NAMESPACES
                    },
                )
                app_lists.setdefault(normalized, [])

    for sub_id, app_id, app_bucket in _iter_apps(tree):
        if not _has_any_processed_bucket(app_bucket):
            continue
        summaries = build_window_summaries(app_bucket)
        for namespace in METADATA_NAMESPACES:
            for window_key in REPORTING_WINDOW_KEYS:
                fields = summaries.namespace_fields(window_key, namespace) or []
                coverage[sub_id][namespace][window_key].update(fields)
        app_lists[sub_id].append((str(app_bucket.get("appName") or app_id or UNKNOWN_APP), app_id))

    summaries_out = [
        SubscriptionSummary(
            sub_id=sub_id,
            sub_display=resolved_labels.format_display(sub_id),
            apps=sorted(app_lists[sub_id], key=lambda app: application_sort_key(*app)),
            namespace_totals={
                namespace: NamespaceCoverage(
                    window7=sorted_fields(windows["window7"]),
                    window30=sorted_fields(windows["window30"]),
                    window180=sorted_fields(windows["window180"]),
                )
                for namespace, windows in namespaces.items()
            },
        )
        for sub_id, namespaces in coverage.items()
    ]
    summaries_out.sort(key=lambda summary: (summary.sub_display, summary.sub_id))
    return summaries_out


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number == number else 0.0


def count_records_by_subscription(tree: Any) -> dict[str, float]:
    if not isinstance(tree, Mapping):
        return {}
    return {
        str(sub_id): _to_number(details.get("recordsScanned"))
        for sub_id, details in tree.items()
        if sub_id and isinstance(details, Mapping)
    }


def count_distinct_apps_by_subscription(tree: Any) -> dict[str, int]:
    if not isinstance(tree, Mapping):
        return {}
    counts: dict[str, int] = {}
    for sub_id, details in tree.items():
        if not sub_id or not isinstance(details, Mapping):
            continue
        apps = details.get("apps")
        if isinstance(apps, Mapping):
            counts[str(sub_id)] = len({str(app_id) for app_id in apps if app_id})
        elif isinstance(apps, list):
            counts[str(sub_id)] = len(
                {
                    str(app.get("appId"))
                    for app in apps
                    if isinstance(app, Mapping) and app.get("appId")
                }
            )
    return counts


def collect_namespace_value_totals(tree: Any) -> dict[str, float]:
    totals = {namespace: 0.0 for namespace in METADATA_NAMESPACES}
    if not isinstance(tree, Mapping):
        return totals
    for details in tree.values():
        if not isinstance(details, Mapping):
            continue
        non_null = details.get("nonNullRecordsByNamespace")
        if not isinstance(non_null, Mapping):
            continue
        for namespace in METADATA_NAMESPACES:
            totals[namespace] += _to_number(non_null.get(namespace))
    return totals


def _iter_raw_namespace_fields(app_bucket: Mapping[str, Any]):
    for raw_key in RAW_WINDOW_KEYS:
        bucket = get_window_bucket(app_bucket, raw_key)
        if bucket is None:
            continue
        namespaces = bucket.get("namespaces")
        if not isinstance(namespaces, Mapping):
            continue
        for namespace, fields in namespaces.items():
            if isinstance(fields, Mapping):
                for field_name, field_bucket in fields.items():
                    yield raw_key, str(namespace), str(field_name), field_bucket


def count_fields_across_apps(tree: Any) -> dict[str, int]:
    """Number of applications exposing each ``namespace.field`` in any raw scan."""
    counts: Counter[str] = Counter()
    for _sub_id, _app_id, app_bucket in _iter_apps(tree):
        app_field_keys = {
            f"{namespace}.{field_name}"
            for _raw_key, namespace, field_name, _bucket in _iter_raw_namespace_fields(app_bucket)
        }
        counts.update(app_field_keys)
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def combine_field_totals_by_window(tree: Any) -> dict[int, dict[str, float]]:
    totals: dict[int, dict[str, float]] = {raw_key: {} for raw_key in RAW_WINDOW_KEYS}
    for _sub_id, _app_id, app_bucket in _iter_apps(tree):
        for raw_key, namespace, field_name, field_bucket in _iter_raw_namespace_fields(app_bucket):
            total = (
                _to_number(field_bucket.get("total")) if isinstance(field_bucket, Mapping) else 0.0
            )
            if not total:
                continue
            field_key = f"{namespace}.{field_name}"
            totals[raw_key][field_key] = totals[raw_key].get(field_key, 0.0) + total
    return totals


def top_field_record_totals(
    totals_by_window: Mapping[int, Mapping[str, float]],
    top_n: int = 10,
) -> list[tuple[str, float]]:
    merged: dict[str, float] = {}
    for window_totals in totals_by_window.values():
        for field_key, total in window_totals.items():
            if total:
                merged[field_key] = merged.get(field_key, 0.0) + total
    ranked = sorted(merged.items(), key=lambda item: (-item[1], item[0]))
    return ranked[: max(int(top_n), 0)]
