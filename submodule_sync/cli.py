"""Command line interface for pull-submodules."""
from __future__ import annotations

import time
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, Optional
import sys

from core.command_runner import SubprocessCommandRunner

from .src.actions import GitActions
from .src.cache import RepositoryCache
from .src.config import check_environment, load_context
from .src.console import SyncConsole, TerminalConsole
from .src.coordinator import process_submodules
from .src.errors import SyncError, describe_error
from .src.gitlinks import commit_gitlinks
from .src.gitmodules import read_gitmodules
from .src.summary import format_summary_table, format_totals, summarize


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(
        prog="pull-submodules",
        description="Update submodules to the newest commit from a local sibling checkout or the remote branch",
    )
    # Boolean flags default to None so git config can fill in unset values.
    parser.add_argument("-d", "--dry-run", action="store_true", default=None, help="Show what would change without touching any repository")
    parser.add_argument("-n", "--no-commit", action="store_true", default=None, help="Stage updated submodule pointers but do not commit them")
    parser.add_argument("-r", "--force-remote", action="store_true", default=None, help="Always prefer the remote branch head over local siblings")
    parser.add_argument("-p", "--parallel", action="store_true", default=None, help="Process submodules concurrently")
    parser.add_argument("-j", "--max-parallel", type=int, metavar="N", help="Maximum concurrent submodules in parallel mode (default: 4)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress details")
    parser.add_argument("--debug", action="store_true", help="Show debug output (implies --verbose)")
    parser.add_argument("-C", dest="directory", type=Path, metavar="PATH", help="Run as if started in PATH")
    return parser.parse_args(list(argv))


def run(args: Namespace, console: Optional[SyncConsole] = None) -> int:
    started = time.monotonic()
    runner = SubprocessCommandRunner()
    console = console or TerminalConsole(verbose=bool(args.verbose), debug=bool(args.debug))

    console.debug(check_environment(runner))
    context = load_context(args, runner=runner)
    console.verbose(f"Repository root: {context.repository_root}")

    submodules = read_gitmodules(context.repository_root, runner, console)
    if not submodules:
        console.info("No submodules found")
        return 0

    actions = GitActions(runner, cache=RepositoryCache())
    results = process_submodules(submodules, context, console, actions)

    summary = summarize(results, started)
    for line in format_summary_table(results):
        console.info(line)
    console.info(format_totals(summary))

    commit_gitlinks(results, context, actions, console)
    return 1 if summary.has_failures else 0


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    console = TerminalConsole(verbose=bool(args.verbose), debug=bool(args.debug))
    try:
        return run(args, console)
    except SyncError as exc:
        console.error(describe_error(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
