"""Commit selection between a local sibling and the remote branch head."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .models import CommitSelection, CommitSha, CommitSource, NoCandidate, Selected, SelectionOutcome

AncestryCheck = Callable[[CommitSha, CommitSha, Path], bool]

REASON_FORCED = "forced remote preference"
REASON_SINGLE = "only available source"
REASON_EQUAL = "local and remote agree"
REASON_REMOTE_AHEAD = "remote is ahead of local"
REASON_LOCAL_AHEAD = "local contains all remote changes"
REASON_DIVERGED = "histories diverged, using remote"
REASON_ANCESTRY_UNKNOWN = "ancestry unknown"


def select_commit_smart(
    local_sha: Optional[CommitSha],
    remote_sha: Optional[CommitSha],
    *,
    force_remote: bool,
    repo_path: Path | str,
    is_ancestor: AncestryCheck,
    local_path: Optional[Path] = None,
) -> SelectionOutcome:
    """
    Pick the commit a submodule should move to.

    Rules, first match wins:
      1. neither side known -> ``NoCandidate``
      2. ``force_remote`` with a remote commit -> remote
      3. only one side known -> that side
      4. both equal -> either
      5. ancestry decides; the newer side wins. Diverged histories, or an
         ancestry query that fails, select remote and set ``diverged``.
    """
    if local_sha is None and remote_sha is None:
        return NoCandidate()

    def remote(sha: CommitSha, reason: str, diverged: bool = False) -> Selected:
        return Selected(CommitSelection(sha, CommitSource.REMOTE, reason, diverged=diverged))

    def local(sha: CommitSha, reason: str) -> Selected:
        return Selected(CommitSelection(sha, CommitSource.LOCAL, reason, local_path=local_path))

    if force_remote and remote_sha is not None:
        return remote(remote_sha, REASON_FORCED)
    if remote_sha is None:
        return local(local_sha, REASON_SINGLE)
    if local_sha is None:
        return remote(remote_sha, REASON_SINGLE)
    if local_sha == remote_sha:
        return remote(remote_sha, REASON_EQUAL)

    repo_path = Path(repo_path)
    try:
        if is_ancestor(local_sha, remote_sha, repo_path):
            return remote(remote_sha, REASON_REMOTE_AHEAD)
        if is_ancestor(remote_sha, local_sha, repo_path):
            return local(local_sha, REASON_LOCAL_AHEAD)
    except Exception as exc:
        return remote(remote_sha, f"{REASON_ANCESTRY_UNKNOWN} ({exc}), using remote", diverged=True)
    return remote(remote_sha, REASON_DIVERGED, diverged=True)
