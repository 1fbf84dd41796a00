from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import pandas as pd

from metadata_window_audit.aggregation.namespaces import REPORTING_WINDOW_LABELS
from metadata_window_audit.aggregation.ordering import sorted_fields
from metadata_window_audit.aggregation.rows import AggregationRow

ComparisonStatus = Literal["match", "delta", "missing"]
COMPARISON_STATUSES: tuple[ComparisonStatus, ...] = ("match", "delta", "missing")
PRESENT_VALUE = "present"


@dataclass(frozen=True)
class ComparisonEntry:
    field: str
    values_by_table: dict[str, Any]
    status: ComparisonStatus


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _classify(values: Sequence[Any]) -> ComparisonStatus:
    distinct = {_stringify(value) for value in values if value is not None}
    # Conflicting values outrank missingness.
    if len(distinct) > 1:
        return "delta"
    if any(value is None for value in values):
        return "missing"
    return "match"


def compare_fields_across_tables(
    rows_by_table: Mapping[str, Mapping[str, Any] | None],
) -> list[ComparisonEntry]:
    tables: dict[str, Mapping[str, Any]] = {
        str(table_name): (table if isinstance(table, Mapping) else {})
        for table_name, table in rows_by_table.items()
    }
    all_fields = sorted_fields(field for table in tables.values() for field in table)

    entries: list[ComparisonEntry] = []
    for field in all_fields:
        values_by_table = {
            table_name: table.get(field) for table_name, table in tables.items()
        }
        entries.append(
            ComparisonEntry(
                field=field,
                values_by_table=values_by_table,
                status=_classify(list(values_by_table.values())),
            )
        )
    return entries


def row_presence_tables(row: AggregationRow) -> dict[str, dict[str, str]]:
    """Express the defined windows of a row as presence tables keyed by window label."""
    return {
        REPORTING_WINDOW_LABELS[window_key]: {field: PRESENT_VALUE for field in fields}
        for window_key, fields in row.defined_windows()
    }


def summarize_statuses(entries: Sequence[ComparisonEntry]) -> dict[str, int]:
    counts = Counter(entry.status for entry in entries)
    return {status: int(counts.get(status, 0)) for status in COMPARISON_STATUSES}


def comparison_to_frame(
    entries: Sequence[ComparisonEntry],
    table_names: Sequence[str] | None = None,
) -> pd.DataFrame:
    if table_names is None:
        seen: dict[str, None] = {}
        for entry in entries:
            for table_name in entry.values_by_table:
                seen.setdefault(table_name, None)
        table_names = list(seen)

    records = []
    for entry in entries:
        record: dict[str, Any] = {"field": entry.field}
        for table_name in table_names:
            record[table_name] = entry.values_by_table.get(table_name)
        record["status"] = entry.status
        records.append(record)
    return pd.DataFrame.from_records(records, columns=["field", *table_names, "status"])
