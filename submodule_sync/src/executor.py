"""Per-submodule update state machine.

START -> PREPARING -> SELECTING -> (SKIPPED | COMPARING)
      -> (UP_TO_DATE | APPLYING) -> UPDATED; any state -> FAILED.
"""
from __future__ import annotations

import time
from dataclasses import replace
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, Optional

from .actions import GitActions
from .branches import resolve_branch as default_resolve_branch
from .console import SyncConsole
from .errors import GitActionError, describe_error
from .models import (
    ApplyKind,
    ApplyOutcome,
    CommitSelection,
    CommitSha,
    ExecutionContext,
    NoCandidate,
    Selected,
    SelectionOutcome,
    Submodule,
    SubmoduleUpdatePlan,
    UpdateResult,
    UpdateStatus,
)
from .planner import BranchResolver, enrich_plan_with_current_sha, prepare_update_plan
from .siblings import find_sibling_repository
from .strategies import REASON_ANCESTRY_UNKNOWN, select_commit_smart


class ExecutorState(Enum):
    START = "start"
    PREPARING = "preparing"
    SELECTING = "selecting"
    COMPARING = "comparing"
    APPLYING = "applying"
    SKIPPED = "skipped"
    UP_TO_DATE = "up-to-date"
    UPDATED = "updated"
    FAILED = "failed"


class SubmoduleUpdateExecutor:
    """Drives one submodule at a time; holds no per-submodule state.

    A single instance is shared by all workers of a run, so every
    per-submodule value lives on the stack of :meth:`run`.
    """

    def __init__(
        self,
        context: ExecutionContext,
        actions: GitActions,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.context = context
        self.actions = actions
        self._clock = clock

    def _branch_resolver(self, console: SyncConsole) -> BranchResolver:
        return partial(default_resolve_branch, context=self.context, console=console, actions=self.actions)

    def run(self, submodule: Submodule, console: SyncConsole) -> UpdateResult:
        started = self._clock()
        state = ExecutorState.START
        selection: Optional[CommitSelection] = None
        branch: Optional[str] = None

        def finish(status: UpdateStatus, **kwargs) -> UpdateResult:
            console.debug(f"{submodule.path}: {state.value} -> {status.value}")
            return UpdateResult(
                submodule=target,
                selection=selection,
                status=status,
                duration_ms=(self._clock() - started) * 1000.0,
                branch=branch,
                **kwargs,
            )

        target = submodule
        try:
            plan = prepare_update_plan(
                submodule,
                self.context,
                self._branch_resolver(console),
                actions=self.actions,
                console=console,
            )
            plan = enrich_plan_with_current_sha(
                plan, self.context.repository_root, self.actions.read_head_sha, console
            )
            target = plan.submodule
            branch = plan.branch.branch
            absolute = self.context.repository_root / target.path

            state = ExecutorState.PREPARING
            if self.context.dry_run and plan.needs_init:
                console.dry(f"Would initialize submodule {target.path}")
                return finish(UpdateStatus.SKIPPED, dry_run=True)
            self.prepare(plan, absolute, console)

            state = ExecutorState.SELECTING
            outcome = self.select(plan, absolute, console)
            if isinstance(outcome, NoCandidate):
                console.info(f"{target.path}: skipped ({outcome.reason})")
                return finish(UpdateStatus.SKIPPED)
            selection = outcome.selection
            if selection.diverged:
                console.warn(
                    f"{target.path}: local and remote histories diverged; using remote {selection.sha.short()}"
                )

            state = ExecutorState.COMPARING
            if plan.current_sha == selection.sha:
                console.verbose(f"{target.path}: already at {selection.sha.short()}")
                return finish(UpdateStatus.UP_TO_DATE)

            state = ExecutorState.APPLYING
            if self.context.dry_run:
                console.dry(
                    f"Would update {target.path} to {selection.sha.short()} "
                    f"({selection.source.value}: {selection.reason})"
                )
                return finish(UpdateStatus.UPDATED, dry_run=True)

            applied = self.apply_update(plan, selection, absolute, console)
            if not applied.succeeded:
                return finish(UpdateStatus.FAILED, error=applied.cause)
            console.info(
                f"{target.path}: updated to {selection.sha.short()} from {selection.source.value} "
                f"({applied.kind.value})"
            )
            return finish(UpdateStatus.UPDATED, applied_via=applied.kind)
        except Exception as exc:
            console.error(f"{target.path}: {describe_error(exc)}")
            return finish(UpdateStatus.FAILED, error=exc)

    # --- PREPARING ---

    def prepare(self, plan: SubmoduleUpdatePlan, absolute: Path, console: SyncConsole) -> None:
        root = self.context.repository_root
        rel = plan.submodule.path
        if self.context.dry_run:
            console.dry(f"Would sync URL and fetch all remotes for {rel}")
            return
        if plan.needs_init:
            console.verbose(f"{rel}: initializing submodule")
            self.actions.init_submodule(rel, root)
        console.verbose(f"{rel}: syncing remote URL")
        self.actions.sync_submodule_url(rel, root)
        console.verbose(f"{rel}: fetching all remotes")
        self.actions.fetch_all_remotes(absolute)

    # --- SELECTING ---

    def select(
        self, plan: SubmoduleUpdatePlan, absolute: Path, console: SyncConsole
    ) -> SelectionOutcome:
        submodule = plan.submodule
        branch = plan.branch.branch
        remote_sha = self.actions.resolve_ref_to_sha(f"origin/{branch}", absolute)
        console.debug(f"{submodule.path}: origin/{branch} -> {remote_sha.short() if remote_sha else 'none'}")

        local_sha: Optional[CommitSha] = None
        local_path: Optional[Path] = None
        ancestry_path = absolute
        if submodule.url:
            sibling = find_sibling_repository(
                absolute,
                submodule.url,
                branch,
                self.context.repository_root,
                actions=self.actions,
                console=console,
            )
            if sibling is not None and sibling.commit_sha is not None:
                console.verbose(f"{submodule.path}: found sibling {sibling.name} at {sibling.path}")
                local_sha, local_path = sibling.commit_sha, sibling.path
                ancestry_path = self.ensure_sibling_commit(local_sha, local_path, absolute, console)
            else:
                console.verbose(f"{submodule.path}: no usable local sibling")
        else:
            console.verbose(f"{submodule.path}: no URL configured, skipping sibling search")

        outcome = select_commit_smart(
            local_sha,
            remote_sha,
            force_remote=self.context.force_remote,
            repo_path=ancestry_path,
            is_ancestor=self.actions.is_ancestor,
            local_path=local_path,
        )
        if isinstance(outcome, NoCandidate):
            return outcome
        if (
            ancestry_path != absolute
            and outcome.selection.diverged
            and outcome.selection.reason.startswith(REASON_ANCESTRY_UNKNOWN)
        ):
            # Only a dry run compares inside the sibling; a real run would fetch first.
            console.dry(
                f"{submodule.path}: ancestry of {local_sha.short()} and {remote_sha.short()} "
                f"unknown until the sibling is fetched"
            )
            outcome = Selected(replace(outcome.selection, diverged=False))
        console.verbose(
            f"{submodule.path}: selected {outcome.selection.sha.short()} from "
            f"{outcome.selection.source.value}: {outcome.selection.reason}"
        )
        return outcome

    def ensure_sibling_commit(
        self, sha: CommitSha, sibling_path: Path, absolute: Path, console: SyncConsole
    ) -> Path:
        """
        Bring unpushed sibling commits into the submodule's object store.

        Returns the repository in which to compare ancestry. A dry run
        cannot fetch, so a missing commit is compared inside the sibling.
        """
        if self.actions.has_commit(sha, absolute):
            return absolute
        if self.context.dry_run:
            console.dry(f"Would fetch {sha.short()} from sibling {sibling_path}")
            return sibling_path
        console.verbose(f"Fetching {sha.short()} from local sibling {sibling_path}")
        try:
            self.actions.fetch_from_sibling(sibling_path, absolute)
        except GitActionError as exc:
            console.warn(f"Could not fetch from sibling {sibling_path}: {describe_error(exc)}")
            return absolute
        if not self.actions.has_commit(sha, absolute):
            console.warn(f"Commit {sha.short()} still missing after fetching from {sibling_path}")
        return absolute

    # --- APPLYING ---

    def apply_update(
        self,
        plan: SubmoduleUpdatePlan,
        selection: CommitSelection,
        absolute: Path,
        console: SyncConsole,
    ) -> ApplyOutcome:
        """Branch checkout plus fast-forward, else a detached checkout."""
        rel = plan.submodule.path
        branch = plan.branch.branch
        try:
            self.actions.checkout_branch(branch, absolute)
            self.actions.fast_forward_merge(selection.sha, absolute)
            head = self.actions.read_head_sha(absolute)
        except Exception as exc:
            console.verbose(
                f"{rel}: fast-forward of '{branch}' to {selection.sha.short()} failed "
                f"({describe_error(exc)}); using detached checkout"
            )
        else:
            if head == selection.sha:
                console.verbose(f"{rel}: fast-forwarded '{branch}' to {selection.sha.short()}")
                return ApplyOutcome(ApplyKind.FAST_FORWARDED)
            # ``merge --ff-only`` succeeds without moving when the branch is already ahead.
            console.verbose(
                f"{rel}: '{branch}' stays at {head.short()} instead of {selection.sha.short()}; "
                f"using detached checkout"
            )

        try:
            self.actions.detached_checkout(selection.sha, absolute)
        except Exception as exc:
            console.error(f"{rel}: detached checkout of {selection.sha.short()} failed")
            return ApplyOutcome(ApplyKind.FAILED, cause=exc)
        console.verbose(f"{rel}: checked out {selection.sha.short()} (detached HEAD)")
        return ApplyOutcome(ApplyKind.DETACHED)
