"""
Configuration Loader (``review_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``review_config.schema`` types.  Runtime callers go through
``review_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required keys (``config_id``,
  ``stages``, ``users``).
* The stage list must end with ``null``; anything else raises
  ``InvalidStageSequenceError``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from review_config.schema import (
    AssistantDef,
    DefaultsDef,
    HeaderScanDef,
    PriorityThresholdsDef,
    ReviewConfiguration,
    UserDef,
)
from review_ingestion.domain.types import CanonicalField
from review_kernel.domain.stages import StageSequence

_CANONICAL_NAMES = frozenset(f.value for f in CanonicalField)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_stages(raw: Any) -> tuple[str | None, ...]:
    if not isinstance(raw, list):
        raise ValueError(f"'stages' must be a list ending with null, got {raw!r}")
    StageSequence.from_entries(raw)
    return tuple(raw)


def parse_users(raw: Any) -> tuple[UserDef, ...]:
    if not isinstance(raw, list) or not raw:
        raise ValueError("'users' must be a non-empty list of {name, role}")
    users = []
    seen: set[str] = set()
    for item in raw:
        user = UserDef(name=str(item["name"]), role=str(item["role"]))
        if user.name in seen:
            raise ValueError(f"Duplicate user name {user.name!r}")
        seen.add(user.name)
        users.append(user)
    return tuple(users)


def parse_aliases(raw: Any) -> tuple[tuple[str, tuple[str, ...]], ...]:
    if not raw:
        return ()
    if not isinstance(raw, dict):
        raise ValueError("'aliases' must map canonical field names to lists of headers")
    result = []
    for name, spellings in raw.items():
        if name not in _CANONICAL_NAMES:
            raise ValueError(f"Unknown canonical field in aliases: {name!r}")
        if isinstance(spellings, str):
            spellings = [spellings]
        result.append((name, tuple(str(s) for s in spellings)))
    return tuple(sorted(result))


def parse_header_scan(data: dict[str, Any]) -> HeaderScanDef:
    scan = HeaderScanDef(
        max_rows=int(data.get("max_rows", 10)),
        min_match_ratio=float(data.get("min_match_ratio", 0.5)),
        preferred_sheet_keyword=str(data.get("preferred_sheet_keyword", "summary")),
        sample_rows=int(data.get("sample_rows", 5)),
    )
    if scan.max_rows < 1:
        raise ValueError(f"header_scan.max_rows must be at least 1, got {scan.max_rows}")
    if not 0 <= scan.min_match_ratio < 1:
        raise ValueError(f"header_scan.min_match_ratio must be in [0, 1), got {scan.min_match_ratio}")
    return scan


def parse_priority_thresholds(data: dict[str, Any]) -> PriorityThresholdsDef:
    thresholds = PriorityThresholdsDef(
        critical=int(data.get("critical", 10)),
        medium=int(data.get("medium", 5)),
    )
    if thresholds.medium > thresholds.critical:
        raise ValueError(
            f"priority_thresholds.medium ({thresholds.medium}) exceeds critical ({thresholds.critical})"
        )
    return thresholds


def parse_configuration(data: dict[str, Any]) -> ReviewConfiguration:
    """
    Parse a ``ReviewConfiguration`` from a dict.

    Raises:
        KeyError: if ``config_id``, ``stages`` or ``users`` is missing.
        ValueError: on malformed values.
        InvalidStageSequenceError: on a bad stage list.
    """
    stages = parse_stages(data["stages"])
    defaults = data.get("defaults") or {}
    assistant = data.get("assistant") or {}
    config = ReviewConfiguration(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        stages=stages,
        users=parse_users(data["users"]),
        aliases=parse_aliases(data.get("aliases")),
        defaults=DefaultsDef(**{k: str(v) for k, v in defaults.items()}),
        header_scan=parse_header_scan(data.get("header_scan") or {}),
        priority_thresholds=parse_priority_thresholds(data.get("priority_thresholds") or {}),
        assistant=AssistantDef(**{k: str(v) for k, v in assistant.items()}),
        database_url=str(data.get("database_url") or ReviewConfiguration.database_url),
        checksum=compute_checksum(data),
    )
    return config


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
