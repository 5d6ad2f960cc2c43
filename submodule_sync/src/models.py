"""Value types shared by the planner, selector and executor."""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .errors import ConfigurationError, InvalidShaError

MIN_SHA_LENGTH = 7
MAX_SHA_LENGTH = 40
SHORT_SHA_LENGTH = 8
DEFAULT_MAX_PARALLEL = 4
DEFAULT_BRANCH = "main"

_SHA_PATTERN = re.compile(rf"^[0-9a-fA-F]{{{MIN_SHA_LENGTH},{MAX_SHA_LENGTH}}}$")


@dataclass(frozen=True, slots=True)
class CommitSha:
    """Validated commit id (7-40 hex characters, stored lowercase)."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _SHA_PATTERN.match(self.value):
            raise InvalidShaError(
                f"Invalid commit SHA: {self.value!r}",
                suggestions=[f"Expected {MIN_SHA_LENGTH}-{MAX_SHA_LENGTH} hexadecimal characters"],
                details={"value": self.value},
            )
        object.__setattr__(self, "value", self.value.lower())

    @classmethod
    def try_parse(cls, value: Optional[str]) -> Optional["CommitSha"]:
        """Return ``None`` for absent or malformed git output."""
        if not value:
            return None
        try:
            return cls(value.strip())
        except InvalidShaError:
            return None

    def short(self, length: int = SHORT_SHA_LENGTH) -> str:
        return self.value[:length]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Submodule:
    name: str
    path: str
    url: Optional[str] = None
    branch: Optional[str] = None


class BranchSource(Enum):
    EXPLICIT = "explicit"
    DETECTED = "detected"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class BranchResolution:
    branch: str
    source: BranchSource
    details: str = ""


@dataclass(frozen=True, slots=True)
class SubmoduleUpdatePlan:
    """Planning snapshot for one submodule; never mutated after creation."""

    submodule: Submodule
    branch: BranchResolution
    needs_init: bool
    is_repository_valid: bool
    current_sha: Optional[CommitSha] = None

    def with_current_sha(self, sha: CommitSha) -> "SubmoduleUpdatePlan":
        return replace(self, current_sha=sha)


class CommitSource(Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True, slots=True)
class CommitSelection:
    sha: CommitSha
    source: CommitSource
    reason: str
    local_path: Optional[Path] = None
    diverged: bool = False


@dataclass(frozen=True, slots=True)
class Selected:
    selection: CommitSelection


@dataclass(frozen=True, slots=True)
class NoCandidate:
    reason: str = "no commit available locally or remotely"


SelectionOutcome = Union[Selected, NoCandidate]


class UpdateStatus(Enum):
    UPDATED = "updated"
    UP_TO_DATE = "up-to-date"
    SKIPPED = "skipped"
    FAILED = "failed"


class ApplyKind(Enum):
    FAST_FORWARDED = "fast-forwarded"
    DETACHED = "detached"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ApplyOutcome:
    kind: ApplyKind
    cause: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.kind is not ApplyKind.FAILED


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Terminal outcome for one submodule in one run."""

    submodule: Submodule
    selection: Optional[CommitSelection]
    status: UpdateStatus
    duration_ms: float
    error: Optional[BaseException] = None
    dry_run: bool = False
    applied_via: Optional[ApplyKind] = None
    branch: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Run-wide settings threaded through every component."""

    repository_root: Path
    dry_run: bool = False
    force_remote: bool = False
    parallel: bool = False
    max_parallel: int = DEFAULT_MAX_PARALLEL
    no_commit: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.max_parallel, int) or self.max_parallel < 1:
            raise ConfigurationError(
                f"max_parallel must be a positive integer, got {self.max_parallel!r}",
                suggestions=["Use a value such as 4"],
            )
        object.__setattr__(self, "repository_root", Path(self.repository_root))
