from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Namespace = Literal["visitor", "account", "custom", "salesforce"]
ReportingWindowKey = Literal["window7", "window30", "window180"]

METADATA_NAMESPACES: tuple[Namespace, ...] = ("visitor", "account", "custom", "salesforce")
OPTIONAL_NAMESPACES: tuple[Namespace, ...] = ("custom", "salesforce")

# Raw scan lookbacks shared with the upstream scanner; never discovered at runtime.
RAW_WINDOW_KEYS: tuple[int, ...] = (7, 23, 150)

UNKNOWN_SUBSCRIPTION = "Unknown SubID"
UNKNOWN_APP = "Unknown app"


@dataclass(frozen=True)
class ReportingWindow:
    key: ReportingWindowKey
    days: int
    raw_keys: tuple[int, ...]

    @property
    def label(self) -> str:
        return f"{self.days} days"


REPORTING_WINDOWS: tuple[ReportingWindow, ...] = (
    ReportingWindow(key="window7", days=7, raw_keys=(7,)),
    ReportingWindow(key="window30", days=30, raw_keys=(7, 23)),
    ReportingWindow(key="window180", days=180, raw_keys=(7, 23, 150)),
)
REPORTING_WINDOW_KEYS: tuple[ReportingWindowKey, ...] = tuple(
    window.key for window in REPORTING_WINDOWS
)
REPORTING_WINDOW_LABELS: dict[ReportingWindowKey, str] = {
    window.key: window.label for window in REPORTING_WINDOWS
}


def namespace_label(namespace: str) -> str:
    return str(namespace or "").strip().capitalize()
