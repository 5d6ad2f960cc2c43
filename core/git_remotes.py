"""Remote URL parsing and normalization."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

_URI_PREFIX = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
# user@host:path/to/repo.git (scp-like syntax, no protocol)
_SCP_LIKE = re.compile(r"^(?:[^@/]+@)?([^:/]+):(.+)$")
# protocol://[user@]host[:port]/path
_URI = re.compile(r"^[a-z][a-z0-9+.-]*://(?:[^@/]+@)?([^:/]*)(?::\d+)?(/.*)?$", re.IGNORECASE)
_WINDOWS_DRIVE = re.compile(r"^[a-zA-Z]:[\\/]")


@dataclass(frozen=True)
class RemoteInfo:
    host: str
    segments: tuple[str, ...]

    @property
    def repo(self) -> str:
        return self.segments[-1] if self.segments else ""

    @property
    def project_path(self) -> str:
        """Return 'owner/repo' style path."""
        return "/".join(self.segments)


def _strip_git_suffix(path: str) -> str:
    path = path.rstrip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return path


def parse_remote_url(url: str) -> Optional[RemoteInfo]:
    """
    Split a remote URL into host and path segments.
    Handles scp-syntax, standard URIs, and local or relative paths.
    """
    if not url or not url.strip():
        return None
    text = url.strip()
    if _WINDOWS_DRIVE.match(text):
        text = text.replace("\\", "/")

    host = ""
    path = text
    if _URI_PREFIX.match(text):
        match = _URI.match(text)
        if not match:
            return None
        host = (match.group(1) or "").lower()
        path = match.group(2) or ""
    elif not _WINDOWS_DRIVE.match(text) and not text.startswith((".", "/")):
        sc_match = _SCP_LIKE.match(text)
        if sc_match:
            host = sc_match.group(1).lower()
            path = sc_match.group(2)

    path = _strip_git_suffix(path)
    segments = [part for part in path.split("/") if part and part not in {".", ".."}]
    if not segments:
        return None
    return RemoteInfo(host=host, segments=tuple(segments))


def extract_repo_name(url: str) -> Optional[str]:
    """Return the repository name of a remote URL, without ``.git``."""
    info = parse_remote_url(url)
    if info is None:
        return None
    return info.repo or None


def remote_path_segments(url: str) -> List[str]:
    info = parse_remote_url(url)
    if info is None:
        return []
    return [segment.lower() for segment in info.segments]


def remotes_match(first: str, second: str) -> bool:
    """
    Compare two remote URLs by their trailing path.

    Protocol, user and host are ignored, as is a ``.git`` suffix. When both
    URLs carry an owner component the owners must agree too; a relative URL
    such as ``../lib.git`` only has to agree on the repository name.
    """
    left = remote_path_segments(first)
    right = remote_path_segments(second)
    if not left or not right:
        return False
    depth = min(len(left), len(right), 2)
    return left[-depth:] == right[-depth:]
