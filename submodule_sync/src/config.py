"""Build the run configuration from git config and command-line flags."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from core.command_runner import CommandRunner, SubprocessCommandRunner
from core.git_api import GitRepository

from .errors import ConfigurationError, RepositoryStateError
from .models import DEFAULT_MAX_PARALLEL, ExecutionContext

CONFIG_SECTION = "submodule-sync"
_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


def parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Invalid boolean for {key}: {value!r}",
        suggestions=[f"Use 'git config {key} true' or 'false'"],
    )


def parse_max_parallel(value: object, source: str = "max-parallel") -> int:
    try:
        number = int(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid {source} value: {value!r}",
            suggestions=["Use a positive integer such as 4"],
        ) from exc
    if number < 1:
        raise ConfigurationError(
            f"Invalid {source} value: {value!r}",
            suggestions=["Use a positive integer such as 4"],
        )
    return number


def discover_root(start: Path | str, runner: Optional[CommandRunner] = None) -> Path:
    repo = GitRepository.discover(start, runner=runner)
    if repo is None:
        raise RepositoryStateError(
            f"Not inside a git working tree: {start}",
            suggestions=["Run from the superproject or pass -C <path>"],
        )
    return repo.path


def load_context(
    args: argparse.Namespace,
    root: Optional[Path | str] = None,
    runner: Optional[CommandRunner] = None,
) -> ExecutionContext:
    """Git config supplies defaults; explicit flags win."""
    runner = runner or SubprocessCommandRunner()
    start = Path(root or getattr(args, "directory", None) or Path.cwd())
    repository_root = discover_root(start, runner)
    repo = GitRepository(repository_root, runner=runner)

    def flag(name: str, key: str) -> bool:
        explicit = getattr(args, name, None)
        if explicit is not None:
            return bool(explicit)
        configured = repo.get_config(f"{CONFIG_SECTION}.{key}")
        if configured is None:
            return False
        return parse_bool(f"{CONFIG_SECTION}.{key}", configured)

    max_parallel = getattr(args, "max_parallel", None)
    if max_parallel is None:
        configured = repo.get_config(f"{CONFIG_SECTION}.max-parallel")
        max_parallel = (
            parse_max_parallel(configured, f"{CONFIG_SECTION}.max-parallel")
            if configured is not None
            else DEFAULT_MAX_PARALLEL
        )
    else:
        max_parallel = parse_max_parallel(max_parallel, "--max-parallel")

    return ExecutionContext(
        repository_root=repository_root,
        dry_run=bool(getattr(args, "dry_run", False)),
        force_remote=flag("force_remote", "force-remote"),
        parallel=flag("parallel", "parallel"),
        max_parallel=max_parallel,
        no_commit=flag("no_commit", "no-commit"),
    )


def check_environment(runner: Optional[CommandRunner] = None) -> str:
    """Return ``git --version`` output; the engine cannot run without git."""
    runner = runner or SubprocessCommandRunner()
    result = runner.run(["git", "--version"], check=False)
    if result.returncode != 0:
        raise ConfigurationError(
            "git executable is not available",
            suggestions=["Install git and make sure it is on PATH"],
            details={"stderr": result.stderr.strip()},
        )
    return result.stdout.strip()
