from __future__ import annotations

import pandas as pd

from metadata_window_audit.aggregation.drift import (
    build_field_change_entries,
    build_field_change_sentences,
)
from metadata_window_audit.aggregation.rows import RowsByNamespace
from metadata_window_audit.detectors.base import AuditContext, Detector, DetectorResult


class FieldChangesDetector(Detector):
    name = "field_changes"

    def run(self, rows_by_namespace: RowsByNamespace, context: AuditContext) -> DetectorResult:
        entries = build_field_change_entries(rows_by_namespace)
        change_entries = pd.DataFrame.from_records(
            [
                {
                    "sub_id": entry.sub_id,
                    "sub_display": context.labels.format_display(entry.sub_id),
                    "app_id": entry.app_id,
                    "app_name": entry.app_name,
                    "namespace": entry.namespace,
                    "new_fields": ", ".join(entry.new_fields),
                    "missing_fields": ", ".join(entry.missing_fields),
                    "n_new": len(entry.new_fields),
                    "n_missing": len(entry.missing_fields),
                }
                for entry in entries
            ],
            columns=[
                "sub_id",
                "sub_display",
                "app_id",
                "app_name",
                "namespace",
                "new_fields",
                "missing_fields",
                "n_new",
                "n_missing",
            ],
        )
        sentences = build_field_change_sentences(entries)
        change_sentences = pd.DataFrame({"sentence": pd.Series(sentences, dtype="object")})

        summary = {
            "n_changed_rows": int(len(entries)),
            "n_new_fields": int(sum(len(entry.new_fields) for entry in entries)),
            "n_missing_fields": int(sum(len(entry.missing_fields) for entry in entries)),
        }
        return DetectorResult(
            detector=self.name,
            summary=summary,
            tables={
                "change_entries": change_entries,
                "change_sentences": change_sentences,
            },
        )
