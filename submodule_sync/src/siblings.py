"""Discovery of local sibling checkouts of a submodule's upstream.

Expected workspace layout::

    workspace/
        main-project/       superproject (.gitmodules)
            libs/shared/    submodule checkout
        shared/             sibling checkout, found automatically
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from core.git_remotes import extract_repo_name, remotes_match

from .actions import GitActions
from .console import SyncConsole
from .models import CommitSha


@dataclass(frozen=True, slots=True)
class SiblingRepository:
    name: str
    path: Path
    is_valid: bool
    commit_sha: Optional[CommitSha]


def candidate_paths(submodule_path: Path, remote_url: str, repository_root: Path) -> List[tuple[str, Path]]:
    """Directories next to the superproject named after the URL, then the path."""
    workspace = repository_root.resolve().parent
    names: List[str] = []
    repo_name = extract_repo_name(remote_url)
    if repo_name:
        names.append(repo_name)
    if submodule_path.name and submodule_path.name not in names:
        names.append(submodule_path.name)

    excluded = {repository_root.resolve(), submodule_path.resolve()}
    candidates = []
    for name in names:
        path = workspace / name
        if path.resolve() not in excluded:
            candidates.append((name, path))
    return candidates


def find_sibling_repository(
    submodule_path: Path | str,
    remote_url: str,
    branch: str,
    repository_root: Path | str,
    *,
    actions: GitActions,
    console: SyncConsole,
) -> Optional[SiblingRepository]:
    """Return the first valid sibling tracking ``remote_url``, or ``None``.

    Read-only; a missing or unusable sibling is a normal outcome.
    """
    submodule_path = Path(submodule_path)
    candidates = candidate_paths(submodule_path, remote_url, Path(repository_root))
    console.debug(
        f"Sibling candidates for {submodule_path.name}: {', '.join(str(p) for _, p in candidates) or 'none'}"
    )

    for name, path in candidates:
        if not actions.is_repository(path):
            console.debug(f"{path} is not a git repository")
            continue
        urls = actions.remote_urls(path)
        if not any(remotes_match(url, remote_url) for url in urls):
            console.debug(f"{path} does not track {remote_url}")
            continue
        sha = actions.resolve_ref_to_sha(branch, path)
        if sha is None:
            console.debug(f"Branch '{branch}' not found in sibling {name}")
        else:
            console.debug(f"Resolved {branch} to {sha.short()} in sibling {name}")
        return SiblingRepository(name=name, path=path, is_valid=True, commit_sha=sha)

    return None
