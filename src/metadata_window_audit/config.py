from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

LABEL_MAP_ENV_VAR = "METADATA_AUDIT_LABEL_MAP"


class LabelsConfig(BaseModel):
    subscription_labels: dict[str, str] = Field(default_factory=dict)
    label_map_path: str | None = None


class ReportConfig(BaseModel):
    display_options: list[str] = Field(default_factory=list)
    top_n_fields: int = Field(default=10, ge=1)
    empty_field_placeholder: str = "—"
    empty_list_text: str = "None"


class DriftConfig(BaseModel):
    enabled: bool = True
    include_unchanged_statement: bool = True


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    labels: LabelsConfig = Field(default_factory=LabelsConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    drift: DriftConfig = Field(default_factory=DriftConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.labels.label_map_path = _resolve_optional_path(
        config.labels.label_map_path or os.getenv(LABEL_MAP_ENV_VAR),
        base_dir,
    )
    return config
