"""
Stage sequence and actor types (``review_kernel.domain.stages``).

The stage sequence is the ordered list of reviewer roles an account passes
through, terminated by the finalized sentinel (``None``).  It is built from
configuration and injected into the workflow engine; nothing here is a
module-level global.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from review_kernel.exceptions import InvalidStageSequenceError, UnknownUserError

# Sentinel entry meaning "no further reviewer: the account is finalized".
FINALIZED = None


@dataclass(frozen=True)
class StageSequence:
    """Ordered reviewer roles. ``entries`` always ends with the FINALIZED sentinel.

    Guarantees: at least one role, role names unique and non-blank.
    """

    roles: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.roles:
            raise InvalidStageSequenceError("at least one reviewer role is required")
        for role in self.roles:
            if not isinstance(role, str) or not role.strip():
                raise InvalidStageSequenceError(f"role names must be non-blank strings, got {role!r}")
        if len(set(self.roles)) != len(self.roles):
            raise InvalidStageSequenceError(f"duplicate roles in {list(self.roles)}")

    @classmethod
    def from_entries(cls, entries: Sequence[str | None]) -> "StageSequence":
        """Build from a configured list that must end with the sentinel."""
        entries = list(entries)
        if not entries or entries[-1] is not FINALIZED:
            raise InvalidStageSequenceError("the stage list must end with the finalized sentinel (null)")
        roles = entries[:-1]
        if any(r is FINALIZED for r in roles):
            raise InvalidStageSequenceError("the finalized sentinel may only appear last")
        return cls(roles=tuple(roles))

    @property
    def entries(self) -> tuple[str | None, ...]:
        return self.roles + (FINALIZED,)

    @property
    def first(self) -> str:
        return self.roles[0]

    @property
    def last(self) -> str:
        return self.roles[-1]

    def __contains__(self, role: object) -> bool:
        return role in self.roles

    def next_after(self, role: str) -> str | None:
        """Next entry after ``role``; ``None`` means the account finalizes."""
        try:
            idx = self.roles.index(role)
        except ValueError:
            raise InvalidStageSequenceError(f"role {role!r} is not part of {list(self.roles)}") from None
        return self.entries[idx + 1]


@dataclass(frozen=True)
class Actor:
    """A user acting in a role. Authorization is role == current stage, nothing more."""

    name: str
    role: str


SYSTEM_ACTOR = Actor(name="System", role="Admin")


class UserDirectory:
    """Lookup over the configured user catalogue."""

    def __init__(self, users: Iterable[Actor]):
        self._by_name: dict[str, Actor] = {}
        for user in users:
            self._by_name.setdefault(user.name, user)

    def __iter__(self):
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def get(self, name: str) -> Actor:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownUserError(name) from None

    def with_role(self, role: str) -> tuple[Actor, ...]:
        return tuple(u for u in self._by_name.values() if u.role == role)
