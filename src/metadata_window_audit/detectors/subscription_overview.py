from __future__ import annotations

from typing import Any

import pandas as pd

from metadata_window_audit.aggregation.namespaces import (
    METADATA_NAMESPACES,
    OPTIONAL_NAMESPACES,
    REPORTING_WINDOW_KEYS,
)
from metadata_window_audit.aggregation.rows import RowsByNamespace, rows_with_data
from metadata_window_audit.aggregation.summaries import (
    build_application_groups,
    build_subscription_summaries,
    collect_namespace_value_totals,
    count_distinct_apps_by_subscription,
    count_records_by_subscription,
)
from metadata_window_audit.detectors.base import AuditContext, Detector, DetectorResult


class SubscriptionOverviewDetector(Detector):
    name = "subscription_overview"

    def run(self, rows_by_namespace: RowsByNamespace, context: AuditContext) -> DetectorResult:
        records_scanned = count_records_by_subscription(context.tree)
        distinct_apps = count_distinct_apps_by_subscription(context.tree)

        subscription_records: list[dict[str, Any]] = []
        for summary in build_subscription_summaries(context.tree, context.labels):
            record: dict[str, Any] = {
                "sub_id": summary.sub_id,
                "sub_display": summary.sub_display,
                "app_count": summary.app_count,
                "distinct_apps": distinct_apps.get(summary.sub_id, 0),
                "records_scanned": records_scanned.get(summary.sub_id, 0.0),
                "unique_field_count": summary.unique_field_count,
            }
            for namespace in METADATA_NAMESPACES:
                record[f"{namespace}_unique_fields"] = summary.namespace_totals[
                    namespace
                ].unique_total
            subscription_records.append(record)
        subscriptions = pd.DataFrame.from_records(
            subscription_records,
            columns=[
                "sub_id",
                "sub_display",
                "app_count",
                "distinct_apps",
                "records_scanned",
                "unique_field_count",
                *(f"{namespace}_unique_fields" for namespace in METADATA_NAMESPACES),
            ],
        )

        application_records: list[dict[str, Any]] = []
        for group in build_application_groups(context.tree, context.labels):
            for app in group.apps:
                record = {
                    "sub_id": app.sub_id,
                    "sub_display": app.sub_display,
                    "app_id": app.app_id,
                    "app_name": app.app_name,
                    "unique_field_count": app.unique_field_count,
                }
                for window_key, count in app.window_counts.items():
                    record[f"{window_key}_count"] = count
                application_records.append(record)
        applications = pd.DataFrame.from_records(
            application_records,
            columns=[
                "sub_id",
                "sub_display",
                "app_id",
                "app_name",
                "unique_field_count",
                *(f"{window_key}_count" for window_key in REPORTING_WINDOW_KEYS),
            ],
        )

        value_totals = collect_namespace_value_totals(context.tree)
        namespace_value_totals = pd.DataFrame.from_records(
            list(value_totals.items()),
            columns=["namespace", "non_null_records"],
        )

        # Optional namespaces only get a report section when some row carries data.
        visible_namespaces = [
            namespace
            for namespace in METADATA_NAMESPACES
            if namespace not in OPTIONAL_NAMESPACES
            or rows_with_data(rows_by_namespace.get(namespace, []))
        ]

        summary = {
            "n_subscriptions": int(len(subscriptions)),
            "n_applications": int(len(applications)),
            "total_records_scanned": float(sum(records_scanned.values())),
            "visible_namespaces": visible_namespaces,
            "display_options": list(context.display_options),
        }
        return DetectorResult(
            detector=self.name,
            summary=summary,
            tables={
                "subscriptions": subscriptions,
                "applications": applications,
                "namespace_value_totals": namespace_value_totals,
            },
        )
