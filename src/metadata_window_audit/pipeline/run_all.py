from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from metadata_window_audit import __version__
from metadata_window_audit.aggregation.drift import build_drift_findings
from metadata_window_audit.aggregation.namespaces import METADATA_NAMESPACES
from metadata_window_audit.aggregation.ordering import SubscriptionLabels
from metadata_window_audit.aggregation.rows import (
    RowsByNamespace,
    map_aggregations_to_rows,
    rows_to_frame,
)
from metadata_window_audit.config import AppConfig
from metadata_window_audit.detectors.base import AuditContext, DetectorResult
from metadata_window_audit.detectors.registry import default_detectors
from metadata_window_audit.io.read import load_aggregation_tree, load_label_map
from metadata_window_audit.io.write import (
    table_extension,
    write_findings,
    write_summary,
    write_table,
)
from metadata_window_audit.paths import build_output_paths

LOGGER = logging.getLogger(__name__)


def resolve_labels(config: AppConfig, label_map: Path | None = None) -> SubscriptionLabels:
    """Merge configured labels with a label map file; file entries win."""
    labels = dict(config.labels.subscription_labels)
    map_path = label_map or config.labels.label_map_path
    if map_path:
        labels.update(load_label_map(map_path).as_dict())
    return SubscriptionLabels(labels)


def build_context(
    tree: dict[str, Any],
    config: AppConfig,
    labels: SubscriptionLabels | None = None,
) -> AuditContext:
    return AuditContext(
        tree=tree,
        labels=labels or resolve_labels(config),
        display_options=tuple(config.report.display_options),
    )


def run_detectors(
    rows_by_namespace: RowsByNamespace,
    context: AuditContext,
    config: AppConfig,
    out_dir: Path,
) -> dict[str, DetectorResult]:
    paths = build_output_paths(out_dir)
    extension = table_extension(config.outputs.tables_format)

    results: dict[str, DetectorResult] = {}
    for detector in default_detectors(config):
        result = detector.run(rows_by_namespace, context)
        results[result.detector] = result

        write_summary(result.summary, paths.summary / f"{result.detector}.json")
        for table_name, table in result.tables.items():
            write_table(
                table,
                paths.tables / f"{result.detector}__{table_name}.{extension}",
                fmt=config.outputs.tables_format,
            )
        LOGGER.info("Detector %s wrote %d tables", result.detector, len(result.tables))
    return results


def run_all(
    aggregations_path: Path,
    out_dir: Path,
    config: AppConfig,
    *,
    label_map: Path | None = None,
) -> dict[str, DetectorResult]:
    paths = build_output_paths(out_dir)
    extension = table_extension(config.outputs.tables_format)

    tree = load_aggregation_tree(aggregations_path)
    labels = resolve_labels(config, label_map)
    context = build_context(tree, config, labels)
    rows_by_namespace = map_aggregations_to_rows(tree)
    LOGGER.info(
        "Loaded %d subscriptions, %d application rows per namespace",
        len(tree),
        len(rows_by_namespace[METADATA_NAMESPACES[0]]),
    )

    rows_frame = rows_to_frame(
        rows_by_namespace,
        labels,
        placeholder=config.report.empty_field_placeholder,
        empty_text=config.report.empty_list_text,
    )
    for namespace in METADATA_NAMESPACES:
        write_table(
            rows_frame[rows_frame["namespace"] == namespace].reset_index(drop=True),
            paths.tables / f"rows__{namespace}.{extension}",
            fmt=config.outputs.tables_format,
        )

    results = run_detectors(rows_by_namespace, context, config, out_dir)

    if config.drift.enabled:
        findings = build_drift_findings(
            rows_by_namespace,
            labels,
            include_unchanged_statement=config.drift.include_unchanged_statement,
        )
        write_findings(findings, paths.findings / "drift_findings.txt")

    write_summary(
        {
            "version": __version__,
            "source": str(aggregations_path),
            "n_subscriptions": len(tree),
            "rows_by_namespace": {
                namespace: len(rows) for namespace, rows in rows_by_namespace.items()
            },
            "detectors": sorted(results),
            "display_options": list(context.display_options),
        },
        paths.summary / "run_summary.json",
    )
    return results
