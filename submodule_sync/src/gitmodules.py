"""Read submodule declarations from ``.gitmodules``."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from core.command_runner import CommandRunner, SubprocessCommandRunner

from .console import SyncConsole
from .errors import ConfigurationError
from .models import Submodule

GITMODULES_FILE = ".gitmodules"


def parse_config_listing(output: str) -> Dict[str, Dict[str, str]]:
    """Group ``git config -z --get-regexp`` output by submodule name.

    Each record is ``<key>\\n<value>\\0``; submodule names may themselves
    contain dots, so the variable is split off the right.
    """
    grouped: Dict[str, Dict[str, str]] = {}
    for record in output.split("\0"):
        if not record:
            continue
        key, _, value = record.partition("\n")
        if not key.startswith("submodule."):
            continue
        name, dot, variable = key[len("submodule."):].rpartition(".")
        if not dot or not name:
            continue
        grouped.setdefault(name, {})[variable.lower()] = value
    return grouped


def read_gitmodules(
    root: Path | str,
    runner: Optional[CommandRunner] = None,
    console: Optional[SyncConsole] = None,
) -> List[Submodule]:
    root = Path(root)
    gitmodules = root / GITMODULES_FILE
    if not gitmodules.is_file():
        return []

    runner = runner or SubprocessCommandRunner()
    command = ["git", "config", "--file", GITMODULES_FILE, "-z", "--get-regexp", r"^submodule\."]
    result = runner.run(command, cwd=root, check=False)
    # Exit code 1 means no matching keys.
    if result.returncode == 1 and not result.stdout:
        return []
    if result.returncode != 0:
        raise ConfigurationError(
            f"Cannot read {gitmodules}: {result.stderr.strip() or 'git config failed'}",
            suggestions=["Check .gitmodules for syntax errors"],
            details={"path": str(gitmodules), "returncode": result.returncode},
        )

    submodules: List[Submodule] = []
    for name, entries in parse_config_listing(result.stdout).items():
        path = entries.get("path", "").strip()
        if not path:
            if console is not None:
                console.warn(f"Submodule '{name}' has no path in {GITMODULES_FILE}; ignoring it")
            continue
        submodules.append(
            Submodule(
                name=name,
                path=path,
                url=entries.get("url") or None,
                branch=entries.get("branch") or None,
            )
        )
    return submodules
