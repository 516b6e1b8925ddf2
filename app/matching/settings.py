"""YAML-backed settings for duplicate checks and registry audits."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .similarity import DEFAULT_RESULT_LIMIT


DEFAULT_AUDIT_CADENCE = "0 3 * * *"


@dataclass
class MatchingSettings:
    result_limit: int = DEFAULT_RESULT_LIMIT
    audit_cadences: dict[str, str] = field(default_factory=dict)

    def audit_cadence(self, registry: str) -> str:
        return self.audit_cadences.get(registry, DEFAULT_AUDIT_CADENCE)


def _default_path() -> Path:
    if os.getenv("MATCHING_CONFIG_PATH"):
        return Path(os.environ["MATCHING_CONFIG_PATH"])
    return Path(__file__).resolve().parents[1] / "infra" / "matching.yaml"


def load_settings(config_path: str | Path | None = None) -> MatchingSettings:
    path = Path(config_path) if config_path else _default_path()
    if not path.exists():
        return MatchingSettings()
    with path.open("r", encoding="utf-8") as fp:
        raw: dict[str, Any] = yaml.safe_load(fp) or {}

    duplicate_check = raw.get("duplicate_check") or {}
    limit = int(duplicate_check.get("result_limit", DEFAULT_RESULT_LIMIT))
    if limit < 1:
        raise ValueError("duplicate_check.result_limit must be at least 1")

    audits = raw.get("audits") or {}
    return MatchingSettings(
        result_limit=limit,
        audit_cadences={str(key): str(value) for key, value in audits.items()},
    )


settings = load_settings()
