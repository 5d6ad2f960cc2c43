"""Error taxonomy for submodule synchronization."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping


class SyncError(RuntimeError):
    """Base class for errors raised by the synchronization engine.

    Carries actionable ``suggestions`` and structured ``details`` so the
    reporting layer can explain a failure without parsing its message.
    """

    def __init__(
        self,
        message: str,
        *,
        suggestions: Iterable[str] = (),
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.suggestions = tuple(suggestions)
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": type(self).__name__, "message": self.message}
        if self.suggestions:
            payload["suggestions"] = list(self.suggestions)
        if self.details:
            payload["details"] = dict(self.details)
        if self.__cause__ is not None:
            payload["cause"] = str(self.__cause__)
        return payload


class RepositoryStateError(SyncError):
    """A path is not a valid or expected repository."""


class GitActionError(SyncError):
    """A git action failed; ``step`` names the action, ``path`` where it ran."""

    def __init__(
        self,
        message: str,
        *,
        step: str,
        path: str | None = None,
        suggestions: Iterable[str] = (),
        details: Mapping[str, Any] | None = None,
    ) -> None:
        merged = {"step": step}
        if path is not None:
            merged["path"] = path
        merged.update(details or {})
        super().__init__(message, suggestions=suggestions, details=merged)
        self.step = step
        self.path = path


class ConfigurationError(SyncError):
    """Malformed configuration (.gitmodules entries, settings, values)."""


class InvalidShaError(ConfigurationError):
    """A value does not have the shape of a commit SHA."""


def describe_error(error: BaseException) -> str:
    """One-line description including the first suggestion, if any."""
    text = str(error).splitlines()[0] if str(error) else type(error).__name__
    if isinstance(error, SyncError) and error.suggestions:
        return f"{text} (hint: {error.suggestions[0]})"
    return text
