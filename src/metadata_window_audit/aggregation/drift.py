from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from metadata_window_audit.aggregation.namespaces import (
    METADATA_NAMESPACES,
    REPORTING_WINDOW_KEYS,
    REPORTING_WINDOW_LABELS,
    REPORTING_WINDOWS,
    ReportingWindowKey,
    namespace_label,
)
from metadata_window_audit.aggregation.ordering import SubscriptionLabels, sorted_fields
from metadata_window_audit.aggregation.rows import AggregationRow, FieldList


def join_natural(items: Sequence[str]) -> str:
    values = [str(item) for item in items]
    if not values:
        return ""
    if len(values) == 1:
        return values[0]
    if len(values) == 2:
        return f"{values[0]} and {values[1]}"
    return f"{', '.join(values[:-1])}, and {values[-1]}"


def windows_match(row: AggregationRow) -> bool:
    window_sets = [set(fields) for _window_key, fields in row.defined_windows()]
    return all(window_set == window_sets[0] for window_set in window_sets[1:])


def build_row_field_findings(
    row: AggregationRow,
    sub_label: str,
    namespace: str | None = None,
) -> list[str]:
    """Describe each field whose presence differs between the defined windows of a row.

    Windows that are absent because their raw scans are still pending do not
    count as "missing" a field. ``namespace`` overrides the row's own
    namespace in the sentence.
    """
    defined = row.defined_windows()
    if len(defined) < 2 or windows_match(row):
        return []

    window_sets = [(REPORTING_WINDOW_LABELS[key], set(fields)) for key, fields in defined]
    all_fields = sorted_fields(field for _label, fields in window_sets for field in fields)
    ns_label = namespace_label(namespace or row.namespace)

    findings: list[str] = []
    for field in all_fields:
        present = [label for label, fields in window_sets if field in fields]
        missing = [label for label, fields in window_sets if field not in fields]
        if not missing:
            continue
        findings.append(
            f"{field} is present in {join_natural(present)} but not {join_natural(missing)} "
            f"in {row.app_name} ({sub_label}) for {ns_label}."
        )
    return findings


def unchanged_statement(
    namespace: str,
    window_keys: Iterable[ReportingWindowKey] | None = None,
) -> str:
    keys = set(window_keys) if window_keys is not None else set(REPORTING_WINDOW_KEYS)
    window_labels = join_natural(
        [window.label for window in REPORTING_WINDOWS if window.key in keys]
    )
    return f"No change to fields for {namespace_label(namespace)} across {window_labels}."


def build_namespace_findings(
    rows: Sequence[AggregationRow],
    namespace: str,
    labels: SubscriptionLabels | None = None,
    *,
    include_unchanged_statement: bool = True,
) -> list[str]:
    resolved_labels = labels or SubscriptionLabels()
    rows_with_windows = [row for row in rows if row.has_data]
    if not rows_with_windows:
        return []

    if all(windows_match(row) for row in rows_with_windows):
        compared_keys = {
            window_key
            for row in rows_with_windows
            if len(row.defined_windows()) >= 2
            for window_key, _fields in row.defined_windows()
        }
        # Only rows with two or more computed windows count as unchanged.
        if not include_unchanged_statement or not compared_keys:
            return []
        return [unchanged_statement(namespace, compared_keys)]

    findings: list[str] = []
    for row in rows_with_windows:
        findings.extend(
            build_row_field_findings(row, resolved_labels.resolve(row.sub_id), namespace)
        )
    return findings


def build_drift_findings(
    rows_by_namespace: Mapping[str, Sequence[AggregationRow]],
    labels: SubscriptionLabels | None = None,
    *,
    include_unchanged_statement: bool = True,
) -> dict[str, list[str]]:
    return {
        namespace: build_namespace_findings(
            rows_by_namespace.get(namespace, []),
            namespace,
            labels,
            include_unchanged_statement=include_unchanged_statement,
        )
        for namespace in METADATA_NAMESPACES
    }


@dataclass(frozen=True)
class FieldChangeEntry:
    sub_id: str
    app_name: str
    app_id: str
    namespace: str
    new_fields: FieldList
    missing_fields: FieldList


def build_field_change_entries(
    rows_by_namespace: Mapping[str, Sequence[AggregationRow]],
) -> list[FieldChangeEntry]:
    """Fields seen only in the last 7 days, or only before the last 30 days.

    Only rows with all three windows defined are compared.
    """
    entries: list[FieldChangeEntry] = []
    for namespace in METADATA_NAMESPACES:
        for row in rows_by_namespace.get(namespace, []):
            if row.window7 is None or row.window30 is None or row.window180 is None:
                continue
            window7 = set(row.window7)
            window30 = set(row.window30)
            window180 = set(row.window180)
            new_fields = tuple(sorted_fields(window7 - window30 - window180))
            missing_fields = tuple(sorted_fields(window180 - window7 - window30))
            if not new_fields and not missing_fields:
                continue
            entries.append(
                FieldChangeEntry(
                    sub_id=row.sub_id,
                    app_name=row.app_name,
                    app_id=row.app_id,
                    namespace=namespace,
                    new_fields=new_fields,
                    missing_fields=missing_fields,
                )
            )

    entries.sort(key=lambda entry: (entry.sub_id, entry.app_name, entry.app_id, entry.namespace))
    return entries


def build_field_change_sentences(entries: Sequence[FieldChangeEntry]) -> list[str]:
    sentences: list[str] = []
    for entry in entries:
        sentences.extend(
            f'New Field: "{field}" detected for {entry.app_name} (Sub ID {entry.sub_id}) '
            f"in the {entry.namespace} namespace."
            for field in entry.new_fields
        )
        sentences.extend(
            f'No Longer Present: "{field}" previously found for {entry.app_name} '
            f"(Sub ID {entry.sub_id}) is absent from the past 7 and 30 days "
            f"in the {entry.namespace} namespace."
            for field in entry.missing_fields
        )
    return sentences
