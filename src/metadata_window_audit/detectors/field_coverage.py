from __future__ import annotations

import pandas as pd

from metadata_window_audit.aggregation.rows import RowsByNamespace
from metadata_window_audit.aggregation.summaries import (
    combine_field_totals_by_window,
    count_fields_across_apps,
    top_field_record_totals,
)
from metadata_window_audit.detectors.base import AuditContext, Detector, DetectorResult


def _split_field_key(field_key: str) -> tuple[str, str]:
    namespace, _, field_name = field_key.partition(".")
    return namespace, field_name


class FieldCoverageDetector(Detector):
    name = "field_coverage"

    def __init__(self, top_n: int = 10) -> None:
        self.top_n = max(int(top_n), 1)

    def run(self, rows_by_namespace: RowsByNamespace, context: AuditContext) -> DetectorResult:
        app_counts = count_fields_across_apps(context.tree)
        apps_per_field = pd.DataFrame.from_records(
            [
                (field_key, *_split_field_key(field_key), n_apps)
                for field_key, n_apps in app_counts.items()
            ],
            columns=["field_key", "namespace", "field", "n_apps"],
        )

        totals_by_window = combine_field_totals_by_window(context.tree)
        record_totals = pd.DataFrame.from_records(
            [
                (raw_key, field_key, *_split_field_key(field_key), total)
                for raw_key, window_totals in totals_by_window.items()
                for field_key, total in sorted(window_totals.items())
            ],
            columns=["raw_window_days", "field_key", "namespace", "field", "total"],
        )
        top_totals = pd.DataFrame.from_records(
            top_field_record_totals(totals_by_window, top_n=self.top_n),
            columns=["field_key", "record_count"],
        )

        summary = {
            "n_fields": int(len(apps_per_field)),
            "top_fields_by_apps": [
                {"field_key": field_key, "n_apps": int(n_apps)}
                for field_key, n_apps in list(app_counts.items())[: self.top_n]
            ],
            "records_by_raw_window": {
                str(raw_key): float(sum(window_totals.values()))
                for raw_key, window_totals in totals_by_window.items()
            },
        }
        return DetectorResult(
            detector=self.name,
            summary=summary,
            tables={
                "apps_per_field": apps_per_field.head(self.top_n),
                "apps_per_field_all": apps_per_field,
                "record_totals_by_window": record_totals,
                "top_record_totals": top_totals,
            },
        )
