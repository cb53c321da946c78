"""
Engine settings.

Defaults live on ``Settings``; an optional YAML file and ``SPEC_EXTRACT_*``
environment variables (a ``.env`` file is honoured) override them, in that
order.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from ruamel.yaml import YAML

ENV_PREFIX = "SPEC_EXTRACT_"
CONFIG_ENV = ENV_PREFIX + "CONFIG"


class Settings(BaseModel):
    table_workers: int = Field(default=8, ge=1)
    max_rows_per_table: int = Field(default=2000, ge=1)
    max_cell_chars: int = Field(default=2048, ge=16)
    cache_max_entries: int = Field(default=1000, ge=1)
    log_level: str = "INFO"
    log_json: bool = False
    vendor_rules_path: Optional[Path] = None


def _env_overrides() -> Dict[str, Any]:
    overrides = {}
    for name in Settings.model_fields:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is not None and raw != "":
            overrides[name] = raw
    return overrides


def load_settings(path: Optional[str] = None) -> Settings:
    load_dotenv()

    data: Dict[str, Any] = {}
    path = path or os.getenv(CONFIG_ENV)
    if path:
        yaml = YAML(typ="safe")
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.load(f) or {}
        if not isinstance(cfg, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        data.update(cfg.get("engine", cfg))

    data.update(_env_overrides())
    return Settings(**data)
