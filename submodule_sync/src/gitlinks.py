"""Record updated submodule pointers in the superproject."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .actions import GitActions
from .console import SyncConsole
from .models import DEFAULT_BRANCH, ExecutionContext, UpdateResult, UpdateStatus


@dataclass(frozen=True, slots=True)
class GitlinkResult:
    executed: bool
    message: str
    paths: tuple[str, ...] = ()


def format_gitlink_line(path: str, branch: str, sha: str) -> str:
    return f"chore(submodule): bump {path} to {branch} @ {sha[:8]}"


def format_gitlink_message(results: Sequence[UpdateResult]) -> str:
    lines = [
        format_gitlink_line(r.submodule.path, r.branch or DEFAULT_BRANCH, str(r.selection.sha))
        for r in results
        if r.selection is not None
    ]
    if len(lines) == 1:
        return lines[0]
    return "\n".join([f"chore(submodule): bump {len(lines)} submodules", ""] + lines)


def committable(results: Sequence[UpdateResult]) -> List[UpdateResult]:
    return sorted(
        (
            r
            for r in results
            if r.status is UpdateStatus.UPDATED and not r.dry_run and r.selection is not None
        ),
        key=lambda r: r.submodule.path,
    )


def commit_gitlinks(
    results: Sequence[UpdateResult],
    context: ExecutionContext,
    actions: GitActions,
    console: SyncConsole,
) -> GitlinkResult:
    """Stage updated gitlinks and commit them unless ``no_commit`` is set."""
    root = context.repository_root
    if context.dry_run:
        simulated = [r for r in results if r.status is UpdateStatus.UPDATED and r.selection is not None]
        if not simulated:
            return GitlinkResult(executed=False, message="")
        message = format_gitlink_message(sorted(simulated, key=lambda r: r.submodule.path))
        console.dry(f"Would commit gitlinks: {message.splitlines()[0]}")
        return GitlinkResult(False, message, tuple(r.submodule.path for r in simulated))

    updated = committable(results)
    if not updated:
        return GitlinkResult(executed=False, message="")

    actions.stage_paths([r.submodule.path for r in updated], root)
    staged = set(actions.staged_paths(root))
    updated = [r for r in updated if r.submodule.path in staged]
    if not updated:
        console.info("Submodule pointers already match the superproject; nothing to commit")
        return GitlinkResult(executed=False, message="")

    paths = [r.submodule.path for r in updated]
    message = format_gitlink_message(updated)

    if context.no_commit:
        console.info(f"Staged {', '.join(paths)} but skipping commit (--no-commit)")
        return GitlinkResult(False, message, tuple(paths))

    actions.commit(message, root, paths)
    console.info(f"Committed gitlinks: {message.splitlines()[0]}")
    return GitlinkResult(True, message, tuple(paths))
