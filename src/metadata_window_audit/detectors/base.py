from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from metadata_window_audit.aggregation.ordering import SubscriptionLabels
from metadata_window_audit.aggregation.rows import RowsByNamespace


@dataclass(frozen=True)
class AuditContext:
    tree: dict[str, Any]
    labels: SubscriptionLabels = field(default_factory=SubscriptionLabels)
    display_options: tuple[str, ...] = ()


@dataclass(frozen=True)
class DetectorResult:
    detector: str
    summary: dict[str, Any]
    tables: dict[str, pd.DataFrame]


class Detector:
    name: str

    def run(self, rows_by_namespace: RowsByNamespace, context: AuditContext) -> DetectorResult:
        raise NotImplementedError
