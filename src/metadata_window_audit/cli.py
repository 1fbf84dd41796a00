from __future__ import annotations

from pathlib import Path

import typer

from metadata_window_audit.aggregation.compare import (
    compare_fields_across_tables,
    comparison_to_frame,
    summarize_statuses,
)
from metadata_window_audit.aggregation.drift import build_drift_findings
from metadata_window_audit.aggregation.namespaces import METADATA_NAMESPACES
from metadata_window_audit.aggregation.rows import map_aggregations_to_rows, rows_to_frame
from metadata_window_audit.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from metadata_window_audit.io.read import load_aggregation_tree, load_comparison_table
from metadata_window_audit.io.write import write_table
from metadata_window_audit.logging import configure_logging
from metadata_window_audit.pipeline.run_all import resolve_labels, run_all

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path | None) -> AppConfig:
    if config_path is None:
        if DEFAULT_CONFIG_PATH.exists():
            return load_config(DEFAULT_CONFIG_PATH)
        return AppConfig()
    return load_config(config_path)


def _parse_table_option(value: str) -> tuple[str, Path]:
    name, separator, raw_path = value.partition("=")
    if not separator or not name.strip() or not raw_path.strip():
        raise typer.BadParameter(f"Expected NAME=PATH for --table, got: {value!r}")
    path = Path(raw_path.strip()).expanduser().resolve()
    if not path.exists():
        raise typer.BadParameter(f"Comparison table not found: {path}")
    return name.strip(), path


def _table_format_for(path: Path) -> str:
    if path.suffix == ".parquet":
        return "parquet"
    if path.suffix == ".csv":
        return "csv"
    raise typer.BadParameter(f"Output must end in .csv or .parquet, got: {path.name}")


def _load_tree(path: Path) -> dict:
    try:
        return load_aggregation_tree(path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def rows(
    aggregations: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    labels: Path | None = typer.Option(
        None,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Optional YAML/JSON map of subscription id to display label.",
    ),
    namespace: str | None = typer.Option(None, help="Limit output to a single namespace."),
    output: Path | None = typer.Option(None, resolve_path=True, help="Write rows to CSV/parquet."),
) -> None:
    """Print the 7/30/180-day field lists for every application and namespace."""
    configure_logging()
    cfg = _load_app_config(config)
    if namespace is not None and namespace not in METADATA_NAMESPACES:
        raise typer.BadParameter(
            f"Unknown namespace {namespace!r}. Choose one of: {', '.join(METADATA_NAMESPACES)}"
        )

    tree = _load_tree(aggregations)
    frame = rows_to_frame(
        map_aggregations_to_rows(tree),
        resolve_labels(cfg, labels),
        placeholder=cfg.report.empty_field_placeholder,
        empty_text=cfg.report.empty_list_text,
    )
    if namespace is not None:
        frame = frame[frame["namespace"] == namespace].reset_index(drop=True)

    if output is not None:
        write_table(frame, output, fmt=_table_format_for(output))
        typer.echo(f"Rows written to: {output}")
        return
    if frame.empty:
        typer.echo("No metadata rows found.")
        return
    typer.echo(frame.drop(columns=["sub_id"]).to_string(index=False))


@app.command()
def findings(
    aggregations: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    labels: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
) -> None:
    """Print field drift findings across the 7/30/180-day windows."""
    configure_logging()
    cfg = _load_app_config(config)
    tree = _load_tree(aggregations)
    findings_by_namespace = build_drift_findings(
        map_aggregations_to_rows(tree),
        resolve_labels(cfg, labels),
        include_unchanged_statement=cfg.drift.include_unchanged_statement,
    )

    printed = False
    for namespace, sentences in findings_by_namespace.items():
        if not sentences:
            continue
        printed = True
        typer.echo(f"[{namespace}]")
        for sentence in sentences:
            typer.echo(f"- {sentence}")
    if not printed:
        typer.echo("No field changes detected yet.")


@app.command()
def compare(
    table: list[str] = typer.Option(
        ...,
        "--table",
        help="Named value map as NAME=PATH (.json, .csv or .parquet). Repeat for each table.",
    ),
    output: Path | None = typer.Option(None, resolve_path=True),
) -> None:
    """Compare field values across named tables and flag match/delta/missing."""
    configure_logging()
    parsed = [_parse_table_option(value) for value in table]
    names = [name for name, _path in parsed]
    if len(set(names)) != len(names):
        raise typer.BadParameter("Table names passed to --table must be unique.")

    try:
        rows_by_table = {name: load_comparison_table(path) for name, path in parsed}
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    entries = compare_fields_across_tables(rows_by_table)
    frame = comparison_to_frame(entries, table_names=names)
    if output is not None:
        write_table(frame, output, fmt=_table_format_for(output))
        typer.echo(f"Comparison written to: {output}")
    elif not frame.empty:
        typer.echo(frame.to_string(index=False))

    counts = summarize_statuses(entries)
    typer.echo(" ".join(f"{status}={count}" for status, count in counts.items()))


@app.command("run-all")
def run_all_command(
    aggregations: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    labels: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
) -> None:
    """Build rows, run every analysis and write tables and summaries to out/."""
    configure_logging()
    cfg = _load_app_config(config)
    try:
        results = run_all(
            aggregations_path=aggregations, out_dir=out, config=cfg, label_map=labels
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Run complete. Detectors: {', '.join(sorted(results))}")
    typer.echo(f"Outputs written to: {out}")


if __name__ == "__main__":
    app()
