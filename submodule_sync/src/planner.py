"""Build immutable per-submodule update plans from repository state."""
from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

from .actions import GitActions
from .console import SyncConsole
from .errors import ConfigurationError
from .models import BranchResolution, CommitSha, ExecutionContext, Submodule, SubmoduleUpdatePlan

BranchResolver = Callable[[Submodule], BranchResolution]


def to_git_relative_path(root: Path | str, path: Path | str) -> str:
    """``path`` relative to ``root`` with forward slashes, as git expects."""
    relative = os.path.relpath(Path(path), Path(root))
    return PurePosixPath(*Path(relative).parts).as_posix()


def resolve_submodule_paths(submodule: Submodule, root: Path | str) -> tuple[Path, Submodule]:
    """Return the absolute checkout path and the submodule with a root-relative path."""
    root = Path(root)
    configured = Path(submodule.path.replace("\\", "/"))
    absolute = configured if configured.is_absolute() else root / configured
    relative = to_git_relative_path(root, absolute)
    if relative == "." or relative.startswith("../") or relative == "..":
        raise ConfigurationError(
            f"Submodule '{submodule.name}' path {submodule.path!r} is outside the repository",
            suggestions=["Fix the path entry in .gitmodules"],
            details={"path": submodule.path, "root": str(root)},
        )
    if relative != submodule.path:
        submodule = replace(submodule, path=relative)
    return root / relative, submodule


def prepare_update_plan(
    submodule: Submodule,
    context: ExecutionContext,
    resolve_branch: BranchResolver,
    *,
    actions: GitActions,
    console: SyncConsole,
) -> SubmoduleUpdatePlan:
    absolute, normalized = resolve_submodule_paths(submodule, context.repository_root)
    if normalized.path != submodule.path:
        console.warn(f"Submodule '{submodule.name}' uses path {submodule.path!r}; treating it as '{normalized.path}'")

    is_valid = actions.is_repository(absolute)
    branch = resolve_branch(normalized)
    console.debug(
        f"{normalized.path}: repository {'valid' if is_valid else 'missing'}, "
        f"branch '{branch.branch}' ({branch.source.value})"
    )
    return SubmoduleUpdatePlan(
        submodule=normalized,
        branch=branch,
        needs_init=not is_valid,
        is_repository_valid=is_valid,
    )


def enrich_plan_with_current_sha(
    plan: SubmoduleUpdatePlan,
    root: Path | str,
    read_head: Callable[[Path], CommitSha],
    console: Optional[SyncConsole] = None,
) -> SubmoduleUpdatePlan:
    """Attach the checked-out commit when the repository already exists."""
    if not plan.is_repository_valid:
        return plan
    try:
        sha = read_head(Path(root) / plan.submodule.path)
    except Exception as exc:
        if console is not None:
            console.debug(f"{plan.submodule.path}: cannot read HEAD ({exc})")
        return plan
    return plan.with_current_sha(sha)
