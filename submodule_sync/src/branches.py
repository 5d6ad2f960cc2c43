"""Decide which branch a submodule tracks."""
from __future__ import annotations

from typing import Optional

from .actions import GitActions
from .console import SyncConsole
from .models import DEFAULT_BRANCH, BranchResolution, BranchSource, ExecutionContext, Submodule

# ``branch = .`` in .gitmodules follows the superproject's branch.
SAME_AS_SUPERPROJECT = "."


def resolve_branch(
    submodule: Submodule,
    context: ExecutionContext,
    console: SyncConsole,
    actions: Optional[GitActions] = None,
) -> BranchResolution:
    """Explicit configuration first, then the checkout's own branch, then a default."""
    actions = actions or GitActions()
    root = context.repository_root
    submodule_dir = root / submodule.path

    if submodule.branch:
        if submodule.branch != SAME_AS_SUPERPROJECT:
            return BranchResolution(submodule.branch, BranchSource.EXPLICIT, "configured in .gitmodules")
        parent_branch = actions.current_branch(root)
        if parent_branch:
            return BranchResolution(parent_branch, BranchSource.EXPLICIT, "same as superproject branch")
        console.warn(
            f"{submodule.path}: branch '.' requested but the superproject HEAD is detached"
        )

    is_checkout = actions.is_repository(submodule_dir)
    if is_checkout:
        current = actions.current_branch(submodule_dir)
        if current:
            return BranchResolution(current, BranchSource.DETECTED, "current branch of checkout")
        default = actions.default_branch(submodule_dir)
        if default:
            return BranchResolution(default, BranchSource.FALLBACK, "remote default branch")

    console.debug(f"{submodule.path}: no branch information, using '{DEFAULT_BRANCH}'")
    return BranchResolution(DEFAULT_BRANCH, BranchSource.FALLBACK, "built-in default")
