"""
review_config -- single public entrypoint for review configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files directly.  Returns a frozen ``ReviewConfiguration``.

Architecture position:
    Configuration sits above ``review_kernel`` and ``review_ingestion``.
    The kernel MUST NEVER import from ``review_config``; bridges in this
    package translate configuration into kernel-compatible inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- schema or structural failures.
    - ``InvalidStageSequenceError`` -- the stage list is malformed.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``REVIEW_CONFIG_TRACE`` log entry with the config_id, version and
    checksum, tying every transition back to the configuration in force.
"""

from __future__ import annotations

from pathlib import Path

from review_config.loader import load_yaml_file, parse_configuration
from review_config.schema import ReviewConfiguration
from review_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration set
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> ReviewConfiguration:
    """Load, validate and return the configuration set at ``path``.

    Args:
        path: YAML file to load. Defaults to review_config/sets/default.yaml.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_configuration(load_yaml_file(config_path))

    _logger.info(
        "REVIEW_CONFIG_TRACE",
        extra={
            "trace_type": "REVIEW_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "stage_count": len(config.stages) - 1,
            "user_count": len(config.users),
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_PATH", "ReviewConfiguration", "get_active_config"]
