"""
Configuration Loader (``clinic_config.loader``).

Responsibility
--------------
Reads a YAML file and parses it into a ``LedgerConfig``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top level not a mapping, unknown keys, or bad values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml

from clinic_config.schema import LedgerConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    An empty file yields an empty dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_ledger_config(data: dict[str, Any]) -> LedgerConfig:
    """
    Build a LedgerConfig from a parsed mapping.  Absent keys take defaults.

    The settings may sit at the top level or under a ``ledger:`` key.
    """
    if set(data) == {"ledger"}:
        data = data["ledger"] or {}
        if not isinstance(data, dict):
            raise ValueError("'ledger' section must be a mapping")
    unknown = set(data) - LedgerConfig.field_names()
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
    return LedgerConfig(**data)


def compute_checksum(config: LedgerConfig) -> str:
    """Deterministic SHA-256 of the configuration values."""
    canonical = json.dumps(asdict(config), sort_keys=True)
    return hashlib.sha256(canonical.encode()).hexdigest()
