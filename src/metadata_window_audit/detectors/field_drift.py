from __future__ import annotations

from typing import Any

import pandas as pd

from metadata_window_audit.aggregation.compare import (
    COMPARISON_STATUSES,
    compare_fields_across_tables,
    row_presence_tables,
    summarize_statuses,
)
from metadata_window_audit.aggregation.drift import build_drift_findings, windows_match
from metadata_window_audit.aggregation.namespaces import METADATA_NAMESPACES, REPORTING_WINDOWS
from metadata_window_audit.aggregation.rows import RowsByNamespace, rows_with_data
from metadata_window_audit.detectors.base import AuditContext, Detector, DetectorResult

WINDOW_LABEL_COLUMNS = [window.label for window in REPORTING_WINDOWS]


class FieldDriftDetector(Detector):
    name = "field_drift"

    def __init__(self, include_unchanged_statement: bool = True) -> None:
        self.include_unchanged_statement = include_unchanged_statement

    def run(self, rows_by_namespace: RowsByNamespace, context: AuditContext) -> DetectorResult:
        findings_by_namespace = build_drift_findings(
            rows_by_namespace,
            context.labels,
            include_unchanged_statement=self.include_unchanged_statement,
        )
        finding_records = [
            {"namespace": namespace, "sequence": index, "finding": sentence}
            for namespace, sentences in findings_by_namespace.items()
            for index, sentence in enumerate(sentences, start=1)
        ]
        findings = pd.DataFrame.from_records(
            finding_records, columns=["namespace", "sequence", "finding"]
        )

        comparison_records: list[dict[str, Any]] = []
        status_totals = {status: 0 for status in COMPARISON_STATUSES}
        drifting_rows = 0
        namespaces_with_drift: list[str] = []
        for namespace in METADATA_NAMESPACES:
            namespace_rows = rows_with_data(rows_by_namespace.get(namespace, []))
            namespace_drift = [row for row in namespace_rows if not windows_match(row)]
            drifting_rows += len(namespace_drift)
            if namespace_drift:
                namespaces_with_drift.append(namespace)

            for row in namespace_rows:
                entries = compare_fields_across_tables(row_presence_tables(row))
                for status, count in summarize_statuses(entries).items():
                    status_totals[status] += count
                for entry in entries:
                    record: dict[str, Any] = {
                        "sub_id": row.sub_id,
                        "sub_display": context.labels.format_display(row.sub_id),
                        "app_id": row.app_id,
                        "app_name": row.app_name,
                        "namespace": namespace,
                        "field": entry.field,
                    }
                    for label in WINDOW_LABEL_COLUMNS:
                        record[label] = entry.values_by_table.get(label)
                    record["status"] = entry.status
                    comparison_records.append(record)

        row_comparisons = pd.DataFrame.from_records(
            comparison_records,
            columns=[
                "sub_id",
                "sub_display",
                "app_id",
                "app_name",
                "namespace",
                "field",
                *WINDOW_LABEL_COLUMNS,
                "status",
            ],
        )

        summary = {
            "n_findings": int(len(findings)),
            "n_drifting_rows": int(drifting_rows),
            "namespaces_with_drift": namespaces_with_drift,
            "status_counts": status_totals,
        }
        return DetectorResult(
            detector=self.name,
            summary=summary,
            tables={
                "findings": findings,
                "row_comparisons": row_comparisons,
            },
        )
