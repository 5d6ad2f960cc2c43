"""Utilities for executing git and shell commands."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence
import os
import shlex
import subprocess
import threading


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    """Raised when a command fails."""

    def __init__(self, result: CommandResult, *, cwd: Path | None = None):
        message = f"Command failed with exit code {result.returncode}: {format_command(result.command)}"
        if cwd is not None:
            message = f"{message} (cwd={cwd})"
        stderr = result.stderr.strip()
        if stderr:
            message = f"{message}\nstderr: {stderr}"
        super().__init__(message)
        self.result = result
        self.cwd = cwd

    @property
    def stderr(self) -> str:
        return self.result.stderr


def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return format_command(command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    # Keep git from prompting for credentials inside worker threads.
    _DEFAULT_ENV = {"GIT_TERMINAL_PROMPT": "0"}

    @classmethod
    def _merge_environment(cls, env: Mapping[str, str] | None) -> Dict[str, str]:
        merged = os.environ.copy()
        merged.update(cls._DEFAULT_ENV)
        if env:
            merged.update(env)
        return merged

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        try:
            process = subprocess.run(
                list(command),
                cwd=str(cwd) if cwd else None,
                env=self._merge_environment(env),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            # Missing executable or unusable cwd; surface it like a failed command.
            result = CommandResult(command=command, returncode=127, stdout="", stderr=str(exc))
        else:
            result = CommandResult(
                command=command,
                returncode=process.returncode,
                stdout=process.stdout,
                stderr=process.stderr,
            )
        if check and result.returncode != 0:
            raise CommandError(result, cwd=cwd)
        return result


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str] = field(default_factory=dict)


Responder = Callable[[List[str], Optional[Path]], Optional[CommandResult]]


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them.

    An optional responder can script replies per command; unanswered
    commands succeed with empty output.
    """

    def __init__(self, responder: Responder | None = None) -> None:
        self.commands: List[RecordedCommand] = []
        self._responder = responder
        self._lock = threading.Lock()

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        with self._lock:
            self.commands.append(
                RecordedCommand(
                    command=list(command),
                    cwd=str(cwd) if cwd else None,
                    env=dict(env) if env else {},
                )
            )
        result = None
        if self._responder is not None:
            result = self._responder(list(command), cwd)
        if result is None:
            result = CommandResult(command=command, returncode=0, stdout="", stderr="")
        if check and result.returncode != 0:
            raise CommandError(result, cwd=cwd)
        return result

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(list(self.commands))

    def iter_formatted(self) -> Iterable[str]:
        for record in self.iter_commands():
            cmd = self.format_command(record.command)
            if record.cwd:
                yield f"(cwd={record.cwd}) {cmd}"
            else:
                yield cmd
