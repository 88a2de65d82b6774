"""
clinic_config -- configuration for the billing ledger.

Responsibility:
    ``load_config()`` is the way to obtain a ``LedgerConfig``.  With no
    path it returns the defaults; with a path it reads that YAML file.
    ``sets/ledger.yaml`` is a documented example of every setting.

Failure modes:
    - ``FileNotFoundError`` -- the given path does not exist.
    - ``ValueError`` -- unknown keys or out-of-range values.
"""

from __future__ import annotations

from pathlib import Path

from clinic_config.loader import compute_checksum, load_yaml_file, parse_ledger_config
from clinic_config.schema import LedgerConfig
from clinic_kernel.logging_config import get_logger

logger = get_logger("config")

EXAMPLE_CONFIG_PATH = Path(__file__).parent / "sets" / "ledger.yaml"


def load_config(path: str | Path | None = None) -> LedgerConfig:
    """
    Load the ledger configuration.

    Args:
        path: YAML file to read.  None returns the built-in defaults.
    """
    if path is None:
        config = LedgerConfig()
        source = "defaults"
    else:
        path = Path(path)
        config = parse_ledger_config(load_yaml_file(path))
        source = str(path)

    logger.info(
        "ledger_config_loaded",
        extra={
            "source": source,
            "currency": config.currency,
            "checksum": compute_checksum(config),
        },
    )
    return config


__all__ = [
    "EXAMPLE_CONFIG_PATH",
    "LedgerConfig",
    "compute_checksum",
    "load_config",
]
