"""Git action adapter: the narrow surface the engine uses to touch repositories.

Reads go through :class:`core.git_api.GitRepository` (pygit2); every
mutation shells out to the git CLI. Failures are wrapped in
:class:`GitActionError` with the failing step and path attached, but are
never interpreted here.
"""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from core.command_runner import CommandError, CommandRunner, SubprocessCommandRunner
from core.git_api import GitRepository, GitRepositoryError

from .cache import RepositoryCache
from .errors import GitActionError, RepositoryStateError
from .models import CommitSha

SIBLING_REMOTE = "pull-submodules-sibling"

_SUGGESTIONS = {
    "init": (
        "Check network connectivity and that the submodule URL is reachable",
        "Make sure nothing else occupies the submodule path",
    ),
    "sync": ("Verify the submodule entry in .gitmodules",),
    "fetch": (
        "Check network connectivity and credentials for the submodule remotes",
        "Run 'git fetch --all' inside the submodule to see the full error",
    ),
    "checkout-branch": ("Commit or stash local changes inside the submodule",),
    "fast-forward": ("The branch has diverged; a detached checkout will be used instead",),
    "detached-checkout": (
        "Commit or stash local changes inside the submodule",
        "Verify the target commit was fetched",
    ),
    "ancestry": ("Fetch both commits into the submodule repository",),
    "sibling-fetch": ("Check that the sibling repository is readable",),
    "stage": ("Check the superproject index is not locked",),
    "commit": ("Check commit hooks and user.name/user.email configuration",),
}


class GitActions:
    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        cache: Optional[RepositoryCache] = None,
    ) -> None:
        self._runner = runner or SubprocessCommandRunner()
        self.cache = cache if cache is not None else RepositoryCache()

    def open(self, cwd: Path | str) -> GitRepository:
        return GitRepository(cwd, runner=self._runner)

    @contextmanager
    def _step(self, step: str, cwd: Path | str, description: str) -> Iterator[None]:
        try:
            yield
        except (CommandError, GitRepositoryError) as exc:
            raise GitActionError(
                f"{description} failed in {cwd}",
                step=step,
                path=str(cwd),
                suggestions=_SUGGESTIONS.get(step, ()),
            ) from exc

    # --- Reads ---

    def is_repository(self, path: Path | str) -> bool:
        return self.cache.get_or_compute(path, lambda p: self.open(p).is_valid)

    def resolve_ref_to_sha(self, ref: str, cwd: Path | str) -> Optional[CommitSha]:
        """Commit id for ``ref`` or ``None``; unresolvable refs are not errors."""
        if not self.is_repository(cwd):
            return None
        try:
            return CommitSha.try_parse(self.open(cwd).resolve_rev(ref))
        except GitRepositoryError:
            return None

    def read_head_sha(self, cwd: Path | str) -> CommitSha:
        try:
            return CommitSha(self.open(cwd).get_head_commit())
        except GitRepositoryError as exc:
            raise RepositoryStateError(
                f"Cannot read HEAD of {cwd}",
                suggestions=["Initialize the submodule or check out a commit"],
                details={"path": str(cwd)},
            ) from exc

    def current_branch(self, cwd: Path | str) -> Optional[str]:
        try:
            return self.open(cwd).get_head_branch()
        except GitRepositoryError:
            return None

    def default_branch(self, cwd: Path | str, remote: str = "origin") -> Optional[str]:
        try:
            return self.open(cwd).resolve_default_branch(remote)
        except GitRepositoryError:
            return None

    def remote_url(self, cwd: Path | str, remote: str = "origin") -> Optional[str]:
        try:
            return self.open(cwd).get_remote_url(remote)
        except GitRepositoryError:
            return None

    def remote_urls(self, cwd: Path | str) -> list[str]:
        try:
            repo = self.open(cwd)
            urls = [repo.get_remote_url(name) for name in repo.list_remotes()]
        except GitRepositoryError:
            return []
        return [url for url in urls if url]

    def has_commit(self, sha: CommitSha, cwd: Path | str) -> bool:
        try:
            return self.open(cwd).has_commit(str(sha))
        except GitRepositoryError:
            return False

    def is_ancestor(self, ancestor: CommitSha, descendant: CommitSha, cwd: Path | str) -> bool:
        with self._step("ancestry", cwd, f"Ancestry check {ancestor.short()}..{descendant.short()}"):
            return self.open(cwd).is_ancestor(str(ancestor), str(descendant))

    # --- Mutations ---

    def fetch_all_remotes(self, cwd: Path | str) -> None:
        with self._step("fetch", cwd, "Fetching all remotes"):
            self.open(cwd).fetch(all_remotes=True)

    def checkout_branch(self, name: str, cwd: Path | str) -> None:
        with self._step("checkout-branch", cwd, f"Checking out branch '{name}'"):
            self.open(cwd).checkout(name)

    def fast_forward_merge(self, sha: CommitSha, cwd: Path | str) -> None:
        with self._step("fast-forward", cwd, f"Fast-forward to {sha.short()}"):
            self.open(cwd).merge(str(sha), fast_forward_only=True)

    def detached_checkout(self, sha: CommitSha, cwd: Path | str) -> None:
        with self._step("detached-checkout", cwd, f"Detached checkout of {sha.short()}"):
            self.open(cwd).checkout(str(sha), detach=True)

    def sync_submodule_url(self, rel_path: str, root_cwd: Path | str) -> None:
        with self._step("sync", root_cwd, f"Syncing submodule URL for '{rel_path}'"):
            self.open(root_cwd).submodule_sync(rel_path)

    def init_submodule(self, rel_path: str, root_cwd: Path | str) -> None:
        with self._step("init", root_cwd, f"Initializing submodule '{rel_path}'"):
            self.open(root_cwd).submodule_init(rel_path)
        # The path changed from "not a repository" to a checkout.
        self.cache.set(Path(root_cwd) / rel_path, True)

    def fetch_from_sibling(self, sibling_path: Path | str, cwd: Path | str) -> None:
        """Fetch every branch of a local sibling through a temporary remote."""
        repo = self.open(cwd)
        url = Path(sibling_path).resolve().as_uri()
        with self._step("sibling-fetch", cwd, f"Fetching from sibling {sibling_path}"):
            if SIBLING_REMOTE in repo.list_remotes():
                repo.remove_remote(SIBLING_REMOTE)
            repo.add_remote(SIBLING_REMOTE, url)
            try:
                repo.fetch_refspec(SIBLING_REMOTE, f"+refs/heads/*:refs/remotes/{SIBLING_REMOTE}/*")
            finally:
                repo.remove_remote(SIBLING_REMOTE)

    def stage_paths(self, paths: Sequence[str], root_cwd: Path | str) -> None:
        with self._step("stage", root_cwd, "Staging gitlinks"):
            self.open(root_cwd).add(list(paths))

    def commit(self, message: str, root_cwd: Path | str, paths: Sequence[str] = ()) -> None:
        with self._step("commit", root_cwd, "Committing gitlinks"):
            self.open(root_cwd).commit(message, list(paths))

    def staged_paths(self, root_cwd: Path | str) -> list[str]:
        return self.open(root_cwd).staged_paths()
