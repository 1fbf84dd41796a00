"""Deterministic ordering helpers shared by the row, summary and finding builders.

Every key compares case-sensitively by code point and ends with the raw
identifier, so the resulting order is total and does not depend on the
iteration order of the input mappings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from metadata_window_audit.aggregation.namespaces import UNKNOWN_SUBSCRIPTION


class SubscriptionLabels:
    """Caller-supplied display labels keyed by raw subscription id."""

    def __init__(self, labels: Mapping[Any, Any] | None = None) -> None:
        self._labels: dict[str, str] = {}
        if isinstance(labels, Mapping):
            for sub_id, label in labels.items():
                key = str(sub_id or "")
                text = str(label or "").strip()
                if key and text:
                    self._labels[key] = text

    def __len__(self) -> int:
        return len(self._labels)

    def as_dict(self) -> dict[str, str]:
        return dict(sorted(self._labels.items()))

    def resolve(self, sub_id: Any) -> str:
        key = str(sub_id or "")
        return self._labels.get(key) or key or UNKNOWN_SUBSCRIPTION

    def format_display(self, sub_id: Any) -> str:
        raw_sub_id = str(sub_id or "") or UNKNOWN_SUBSCRIPTION
        label = self.resolve(raw_sub_id)
        if label != raw_sub_id:
            return f"{label} ({raw_sub_id})"
        return label


def subscription_sort_key(sub_id: Any, labels: SubscriptionLabels | None = None) -> tuple[str, str]:
    raw_sub_id = str(sub_id or "")
    display = (labels or SubscriptionLabels()).format_display(raw_sub_id)
    return (display, raw_sub_id)


def sort_subscription_ids(
    sub_ids: Iterable[Any],
    labels: SubscriptionLabels | None = None,
) -> list[str]:
    return sorted(
        {str(sub_id) for sub_id in sub_ids if sub_id},
        key=lambda sub_id: subscription_sort_key(sub_id, labels),
    )


def application_sort_key(app_name: Any, app_id: Any) -> tuple[str, str]:
    return (str(app_name or ""), str(app_id or ""))


def row_sort_key(sub_id: Any, app_name: Any, app_id: Any) -> tuple[str, str, str]:
    return (str(sub_id or ""), str(app_name or ""), str(app_id or ""))


def field_sort_key(field_name: Any) -> str:
    return str(field_name)


def sorted_fields(field_names: Iterable[Any]) -> list[str]:
    return sorted({str(name) for name in field_names}, key=field_sort_key)
