from __future__ import annotations

from metadata_window_audit.config import AppConfig
from metadata_window_audit.detectors.base import Detector
from metadata_window_audit.detectors.field_changes import FieldChangesDetector
from metadata_window_audit.detectors.field_coverage import FieldCoverageDetector
from metadata_window_audit.detectors.field_drift import FieldDriftDetector
from metadata_window_audit.detectors.subscription_overview import SubscriptionOverviewDetector


def default_detectors(config: AppConfig) -> list[Detector]:
    detectors: list[Detector] = [
        SubscriptionOverviewDetector(),
        FieldCoverageDetector(top_n=config.report.top_n_fields),
        FieldChangesDetector(),
    ]
    if config.drift.enabled:
        detectors.append(
            FieldDriftDetector(
                include_unchanged_statement=config.drift.include_unchanged_statement,
            )
        )
    return detectors
