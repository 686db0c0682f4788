"""
Config -> Kernel Bridges.

Functions that convert a ReviewConfiguration into kernel and ingestion
inputs. These live in review_config (the producer) because the kernel
must NEVER import review_config.

Usage:
    from review_config.bridges import build_stage_sequence, build_user_directory

    config = get_active_config()
    sequence = build_stage_sequence(config)
    users = build_user_directory(config)
"""

from __future__ import annotations

from review_config.schema import ReviewConfiguration
from review_ingestion.domain.types import (
    DEFAULT_ALIASES,
    AliasTable,
    CanonicalField,
    FieldDefaults,
    HeaderScanSettings,
)
from review_kernel.domain.account import StatusCategory
from review_kernel.domain.stages import Actor, StageSequence, UserDirectory
from review_services.reporting import PriorityThresholds


def build_stage_sequence(config: ReviewConfiguration) -> StageSequence:
    return StageSequence.from_entries(config.stages)


def build_user_directory(config: ReviewConfiguration) -> UserDirectory:
    return UserDirectory(Actor(name=u.name, role=u.role) for u in config.users)


def build_alias_table(config: ReviewConfiguration) -> AliasTable:
    """Configured aliases replace the built-in spellings field by field."""
    aliases = dict(DEFAULT_ALIASES)
    for name, spellings in config.aliases:
        aliases[CanonicalField(name)] = spellings
    return AliasTable(aliases=aliases)


def build_field_defaults(config: ReviewConfiguration) -> FieldDefaults:
    d = config.defaults
    return FieldDefaults(
        bs_pl=d.bs_pl,
        status_category=StatusCategory.coerce(d.status_category),
        main_head=d.main_head,
        sub_head=d.sub_head,
        spoc=d.spoc,
        reviewer=d.reviewer,
    )


def build_scan_settings(config: ReviewConfiguration) -> HeaderScanSettings:
    scan = config.header_scan
    return HeaderScanSettings(
        max_rows=scan.max_rows,
        min_match_ratio=scan.min_match_ratio,
        preferred_sheet_keyword=scan.preferred_sheet_keyword,
    )


def build_priority_thresholds(config: ReviewConfiguration) -> PriorityThresholds:
    t = config.priority_thresholds
    return PriorityThresholds(critical=t.critical, medium=t.medium)
