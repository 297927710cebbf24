"""Result types returned by a sync run."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class SyncSuccess:
    """At least one provider succeeded (or a sync was already running)."""

    new_count: int


@dataclass(frozen=True)
class SyncError:
    """Every configured provider failed, or the run itself crashed."""

    message: str


SyncResult = Union[SyncSuccess, SyncError]


@dataclass
class ProviderOutcome:
    """What one provider contributed to a run."""

    provider: str
    success: bool
    count: int = 0
    error: str | None = None
