"""High-level Git API wrapper integrating pygit2 for reads and CLI for writes."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Union

import pygit2

from .command_runner import (
    CommandResult,
    CommandRunner,
    SubprocessCommandRunner,
)


class GitRepositoryError(RuntimeError):
    """Raised when a repository cannot be opened or queried."""


class GitRepository:
    """
    High-level API for git operations on one working tree.

    Design Philosophy:
    - READ operations use pygit2 for performance and structured data.
    - WRITE operations use Git CLI to ensure hooks run and config is respected.
    - CONFIG operations use Git CLI to avoid libgit2/git format incompatibilities.
    """

    def __init__(
        self, path: Path | str, runner: Optional[CommandRunner] = None
    ) -> None:
        self.path = Path(path).resolve()
        self._repo: Optional[pygit2.Repository] = None
        self._runner = runner or SubprocessCommandRunner()

    # --- Core & Properties (pygit2) ---

    def open(self) -> None:
        """Opens the repository. Raises GitRepositoryError if not found."""
        try:
            self._repo = pygit2.Repository(str(self.path))
        except (pygit2.GitError, KeyError) as e:
            raise GitRepositoryError(f"Failed to open repository at {self.path}: {e}") from e

    @property
    def repo(self) -> pygit2.Repository:
        """Access the underlying pygit2 Repository object (Read-only usage recommended)."""
        if self._repo is None:
            self.open()
        return self._repo  # type: ignore

    @property
    def is_valid(self) -> bool:
        """
        Checks if the path is the root of a valid git working tree.

        libgit2 searches parent directories when opening, so an empty
        submodule directory would otherwise resolve to the superproject.
        """
        if not self.path.is_dir():
            return False
        try:
            self.open()
        except GitRepositoryError:
            return False
        workdir = self.repo.workdir
        if not workdir:
            return False
        return Path(workdir).resolve() == self.path

    @property
    def root_dir(self) -> Path:
        """Returns the working directory root path."""
        workdir = self.repo.workdir
        return Path(workdir).resolve() if workdir else self.path

    @staticmethod
    def discover(start: Path | str, runner: Optional[CommandRunner] = None) -> Optional["GitRepository"]:
        """Locate the working tree enclosing ``start``."""
        try:
            found = pygit2.discover_repository(str(start))
        except pygit2.GitError:
            return None
        if not found:
            return None
        try:
            repo = pygit2.Repository(found)
        except pygit2.GitError:
            return None
        if not repo.workdir:
            return None
        return GitRepository(repo.workdir, runner=runner)

    # --- CLI Helper ---

    def _run_git(
        self,
        args: List[str],
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Internal helper to run git CLI commands in this repo."""
        return self._runner.run(["git"] + args, cwd=self.path, env=env, check=check)

    def run_git_cmd(
        self,
        args: List[str],
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """
        Run arbitrary git command in the repository context.
        Useful for complex commands not covered by high-level API.
        """
        return self._run_git(args, check, env)

    # --- Configuration (CLI) ---

    def get_config(self, key: str) -> Optional[str]:
        """Gets a git config value via CLI."""
        res = self._run_git(["config", "--get", key], check=False)
        if res.returncode != 0:
            return None
        return res.stdout.strip()

    def set_config(self, key: str, value: str, scope: str = "local") -> None:
        """
        Sets a git config value via CLI.
        scope: 'local', 'global', or 'system'
        """
        self._run_git(["config", f"--{scope}", key, value])

    # --- Status & Inspection (pygit2) ---

    def get_head_branch(self) -> Optional[str]:
        """Returns the current branch name, or None if detached HEAD."""
        try:
            if self.repo.head_is_detached:
                return None
            return self.repo.head.shorthand
        except pygit2.GitError:
            # Unborn HEAD still names its branch through the symbolic ref
            try:
                head = self.repo.lookup_reference("HEAD")
                target = head.target
                if isinstance(target, str) and target.startswith("refs/heads/"):
                    return target[11:]
            except (KeyError, pygit2.GitError):
                pass
            return None

    def get_head_commit(self) -> str:
        """Returns the full commit hash of HEAD."""
        try:
            if self.repo.head_is_unborn:
                raise GitRepositoryError(f"HEAD is unborn in {self.path}")
            return str(self.repo.head.target)
        except pygit2.GitError as e:
            raise GitRepositoryError(f"Cannot read HEAD in {self.path}: {e}") from e

    def resolve_rev(self, rev: str) -> Optional[str]:
        """Resolves a revision (branch, tag, sha) to a full commit hash."""
        try:
            obj = self.repo.revparse_single(f"{rev}^{{commit}}")
            return str(obj.id)
        except (KeyError, ValueError, pygit2.GitError):
            return None

    def has_commit(self, sha: str) -> bool:
        return self.resolve_rev(sha) is not None

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """
        True when ``ancestor`` is a strict ancestor of ``descendant``.
        Raises GitRepositoryError when either commit is not available.
        """
        ancestor_id = self.resolve_rev(ancestor)
        descendant_id = self.resolve_rev(descendant)
        if ancestor_id is None or descendant_id is None:
            missing = ancestor if ancestor_id is None else descendant
            raise GitRepositoryError(f"Commit {missing} not found in {self.path}")
        if ancestor_id == descendant_id:
            return False
        try:
            return self.repo.descendant_of(descendant_id, ancestor_id)
        except pygit2.GitError as e:
            raise GitRepositoryError(f"Ancestry query failed in {self.path}: {e}") from e

    def resolve_default_branch(self, remote: str = "origin") -> Optional[str]:
        """
        Heuristic to resolve the default branch (main/master) of a remote.
        """
        remote_prefix = f"refs/remotes/{remote}/"
        try:
            sym_ref = self.repo.lookup_reference(f"{remote_prefix}HEAD")
            target = sym_ref.target
            if isinstance(target, str) and target.startswith(remote_prefix):
                return target[len(remote_prefix) :]
        except (KeyError, ValueError, pygit2.GitError):
            pass

        for candidate in ["main", "master"]:
            try:
                self.repo.lookup_reference(f"{remote_prefix}{candidate}")
                return candidate
            except (KeyError, pygit2.GitError):
                continue
        return None

    # --- Remote Management (pygit2 READ / CLI WRITE) ---

    def list_remotes(self) -> List[str]:
        """List remote names."""
        return [r.name for r in self.repo.remotes]

    def get_remote_url(self, name: str) -> Optional[str]:
        """Get the fetch URL for a remote."""
        try:
            return self.repo.remotes[name].url
        except (KeyError, ValueError, pygit2.GitError):
            return None

    def add_remote(self, name: str, url: str) -> None:
        """Add a new remote via CLI."""
        self._run_git(["remote", "add", name, url])

    def remove_remote(self, name: str) -> None:
        self._run_git(["remote", "remove", name])

    # --- Write Actions (CLI) ---

    def fetch(
        self, remote: str = "origin", prune: bool = False, all_remotes: bool = False
    ) -> None:
        """Fetch from remote."""
        if all_remotes:
            args = ["fetch", "--all"]
        else:
            args = ["fetch", remote]

        if prune:
            args.append("--prune")
        self._run_git(args)

    def fetch_refspec(self, remote: str, refspec: str) -> None:
        self._run_git(["fetch", remote, refspec])

    def checkout(self, target: str, detach: bool = False) -> None:
        """
        Checkout a branch or commit.
        """
        args = ["checkout"]
        if detach:
            args.append("--detach")
        args.append(target)
        self._run_git(args)

    def merge(self, target: str, fast_forward_only: bool = False) -> None:
        """Merge target into current branch."""
        args = ["merge"]
        if fast_forward_only:
            args.append("--ff-only")
        args.append(target)
        self._run_git(args)

    def add(self, paths: Sequence[Union[str, Path]]) -> None:
        """Stage files."""
        if not paths:
            return
        args = ["add", "--"] + [str(p) for p in paths]
        self._run_git(args)

    def commit(self, message: str, paths: Optional[Sequence[Union[str, Path]]] = None) -> None:
        """Commit staged changes, limited to ``paths`` when given."""
        args = ["commit", "-m", message]
        if paths:
            args += ["--"] + [str(p) for p in paths]
        self._run_git(args)

    def staged_paths(self) -> List[str]:
        res = self._run_git(["diff", "--cached", "--name-only"], check=False)
        return [line.strip() for line in res.stdout.splitlines() if line.strip()]

    # --- Submodules (CLI) ---

    def submodule_init(self, rel_path: str) -> None:
        """Register and clone one submodule."""
        self._run_git(["submodule", "init", "--", rel_path])
        self._run_git(["submodule", "update", "--", rel_path])

    def submodule_sync(self, rel_path: str) -> None:
        """Copy the URL from .gitmodules into the submodule's config."""
        self._run_git(["submodule", "sync", "--", rel_path])

    # --- Factory ---

    @staticmethod
    def init(path: Path | str, initial_branch: str = "main") -> GitRepository:
        """Initialize a new git repository (CLI)."""
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        runner = SubprocessCommandRunner()
        runner.run(["git", "init", "-b", initial_branch, str(path)], check=True)
        return GitRepository(path, runner=runner)
