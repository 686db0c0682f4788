"""
ReviewConfiguration schema.

The human-authored deployment configuration for GL review: who the
reviewers are, the order they act in, how spreadsheet headers are
recognised and how the dashboard grades departments. YAML is parsed into
these frozen types by the loader; bridges.py turns them into kernel and
ingestion inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from review_kernel.db.engine import DEFAULT_DATABASE_URL

# ---------------------------------------------------------------------------
# Reviewers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserDef:
    """One entry of the user/role catalogue."""

    name: str
    role: str


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderScanDef:
    max_rows: int = 10
    min_match_ratio: float = 0.5
    preferred_sheet_keyword: str = "summary"
    sample_rows: int = 5


@dataclass(frozen=True)
class DefaultsDef:
    """Values for optional account fields a row leaves blank."""

    bs_pl: str = "BS"
    status_category: str = "Assets"
    main_head: str = "N/A"
    sub_head: str = "N/A"
    spoc: str = "Unassigned"
    reviewer: str = "Unassigned"


# ---------------------------------------------------------------------------
# Reporting and assistant
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PriorityThresholdsDef:
    """Department mistake totals at which priority becomes Critical / Medium."""

    critical: int = 10
    medium: int = 5


@dataclass(frozen=True)
class AssistantDef:
    model: str = "gemini-2.5-flash"
    api_key_env: str = "GEMINI_API_KEY"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReviewConfiguration:
    """A complete, validated configuration set."""

    config_id: str
    version: int
    stages: tuple[str | None, ...]
    users: tuple[UserDef, ...]
    aliases: tuple[tuple[str, tuple[str, ...]], ...] = ()
    defaults: DefaultsDef = field(default_factory=DefaultsDef)
    header_scan: HeaderScanDef = field(default_factory=HeaderScanDef)
    priority_thresholds: PriorityThresholdsDef = field(default_factory=PriorityThresholdsDef)
    assistant: AssistantDef = field(default_factory=AssistantDef)
    database_url: str = DEFAULT_DATABASE_URL
    checksum: str = ""
