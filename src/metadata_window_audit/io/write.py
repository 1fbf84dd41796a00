from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd


def table_extension(fmt: str) -> str:
    return "parquet" if fmt == "parquet" else "csv"


def write_table(df: pd.DataFrame, path: Path, fmt: str = "parquet") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "parquet":
        df.to_parquet(path, index=False)
        return path
    if fmt == "csv":
        df.to_csv(path, index=False)
        return path
    raise ValueError(f"Unsupported table format: {fmt}")


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False, default=str),
        encoding="utf-8",
    )
    return path


def write_findings(findings: dict[str, list[str]], path: Path) -> Path:
    """Write drift findings as plain text, one namespace heading per block."""
    path.parent.mkdir(parents=True, exist_ok=True)
    blocks: list[str] = []
    for namespace, sentences in findings.items():
        if not sentences:
            continue
        lines = [f"[{namespace}]", *(f"- {sentence}" for sentence in sentences)]
        blocks.append("\n".join(lines))
    path.write_text("\n\n".join(blocks) + ("\n" if blocks else ""), encoding="utf-8")
    return path
