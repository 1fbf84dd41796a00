from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from metadata_window_audit.aggregation.ordering import SubscriptionLabels, sorted_fields

LOGGER = logging.getLogger(__name__)

MESSAGE_TYPE = "metadataAggregations"


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc.msg} (line {exc.lineno})") from exc


def extract_aggregation_tree(document: Any) -> dict[str, Any]:
    """Unwrap a transport message or payload down to the subscription tree."""
    if not isinstance(document, Mapping):
        LOGGER.warning("Aggregation document is not an object; treating it as empty")
        return {}

    payload: Any = document
    if document.get("type") == MESSAGE_TYPE:
        payload = document.get("payload") or {}
        if not isinstance(payload, Mapping):
            LOGGER.warning("Aggregation message payload is not an object; treating it as empty")
            return {}

    if "metadataAggregations" in payload:
        tree = payload.get("metadataAggregations")
        return dict(tree) if isinstance(tree, Mapping) else {}
    if "appCountsBySubId" in payload:
        return {}
    return dict(payload)


def load_aggregation_tree(path: Path) -> dict[str, Any]:
    return extract_aggregation_tree(_read_json(path))


def load_label_map(path: Path | str | None) -> SubscriptionLabels:
    if not path:
        return SubscriptionLabels()
    label_path = Path(path)
    if label_path.suffix in {".yaml", ".yml"}:
        with label_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    elif label_path.suffix == ".json":
        data = _read_json(label_path)
    else:
        raise ValueError(f"Unsupported label map file type: {label_path.suffix}")

    if not isinstance(data, Mapping):
        raise ValueError(f"Label map must be a mapping of subscription id to label: {label_path}")
    return SubscriptionLabels(data)


def load_comparison_table(path: Path) -> dict[str, Any]:
    """Load one named value-map as ``{field: value}`` for the cross-table comparator."""
    if path.suffix == ".json":
        data = _read_json(path)
        if not isinstance(data, Mapping):
            raise ValueError(f"Comparison table must be a JSON object: {path}")
        return {str(field): value for field, value in data.items()}

    if path.suffix == ".parquet":
        frame = pd.read_parquet(path)
    elif path.suffix == ".csv":
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    else:
        raise ValueError(f"Unsupported table file type: {path.suffix}")

    for column in ("field", "value"):
        if column not in frame.columns:
            raise ValueError(f"Comparison table missing column: {column}")

    table: dict[str, Any] = {}
    for field, value in zip(frame["field"], frame["value"]):
        if pd.isna(field) or str(field) == "":
            continue
        table[str(field)] = None if pd.isna(value) or value == "" else value
    return table


def parse_cached_field_list(raw: Any) -> list[str] | None:
    """Decode a previously serialized field list; unreadable values count as absent."""
    if raw is None or raw == "":
        return None
    try:
        parsed = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except ValueError as exc:
        LOGGER.warning("Unable to parse cached field list: %s", exc)
        return None

    if not isinstance(parsed, (list, tuple)):
        LOGGER.warning("Cached field list is not a list: %r", type(parsed).__name__)
        return None
    return sorted_fields(item for item in parsed if item is not None and item != "")
