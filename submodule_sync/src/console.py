"""Console output used instead of a process-wide logger."""
from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import IO, List, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class SyncConsole(Protocol):
    """Minimal console interface required by the synchronization engine."""

    def debug(self, message: str) -> None:
        ...

    def verbose(self, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def warn(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def dry(self, message: str) -> None:
        ...


class TerminalConsole:
    """Prints to stdout/stderr; safe to share between worker threads."""

    def __init__(
        self,
        *,
        verbose: bool = False,
        debug: bool = False,
        stdout: Optional[IO[str]] = None,
        stderr: Optional[IO[str]] = None,
    ) -> None:
        self.show_verbose = verbose or debug
        self.show_debug = debug
        self._stdout = stdout
        self._stderr = stderr
        self._lock = threading.Lock()

    def _emit(self, text: str, *, error: bool = False) -> None:
        stream = (self._stderr or sys.stderr) if error else (self._stdout or sys.stdout)
        with self._lock:
            print(text, file=stream, flush=True)

    def debug(self, message: str) -> None:
        if self.show_debug:
            self._emit(f"[debug] {message}")

    def verbose(self, message: str) -> None:
        if self.show_verbose:
            self._emit(message)

    def info(self, message: str) -> None:
        self._emit(message)

    def warn(self, message: str) -> None:
        self._emit(f"Warning: {message}", error=True)

    def error(self, message: str) -> None:
        self._emit(f"Error: {message}", error=True)

    def dry(self, message: str) -> None:
        self._emit(f"[dry-run] {message}")

    def write_block(self, entries: List["ConsoleEntry"]) -> None:
        """Replay buffered entries without interleaving other threads."""
        with self._lock:
            for entry in entries:
                text = self._render(entry)
                if text is None:
                    continue
                stream = (self._stderr or sys.stderr) if entry.level in {"warn", "error"} else (self._stdout or sys.stdout)
                print(text, file=stream, flush=True)

    def _render(self, entry: "ConsoleEntry") -> Optional[str]:
        if entry.level == "debug":
            return f"[debug] {entry.message}" if self.show_debug else None
        if entry.level == "verbose":
            return entry.message if self.show_verbose else None
        if entry.level == "warn":
            return f"Warning: {entry.message}"
        if entry.level == "error":
            return f"Error: {entry.message}"
        if entry.level == "dry":
            return f"[dry-run] {entry.message}"
        return entry.message


@dataclass(frozen=True, slots=True)
class ConsoleEntry:
    level: str
    message: str


class BufferedConsole:
    """Collects messages; flushed as one block when a submodule finishes."""

    def __init__(self, prefix: str = "") -> None:
        self.entries: List[ConsoleEntry] = []
        self._prefix = prefix

    def _record(self, level: str, message: str) -> None:
        text = f"{self._prefix}{message}" if self._prefix else message
        self.entries.append(ConsoleEntry(level, text))

    def debug(self, message: str) -> None:
        self._record("debug", message)

    def verbose(self, message: str) -> None:
        self._record("verbose", message)

    def info(self, message: str) -> None:
        self._record("info", message)

    def warn(self, message: str) -> None:
        self._record("warn", message)

    def error(self, message: str) -> None:
        self._record("error", message)

    def dry(self, message: str) -> None:
        self._record("dry", message)

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [entry.message for entry in self.entries if level is None or entry.level == level]

    def pairs(self) -> List[Tuple[str, str]]:
        return [(entry.level, entry.message) for entry in self.entries]

    def flush_to(self, target: SyncConsole) -> None:
        if isinstance(target, TerminalConsole):
            target.write_block(self.entries)
        else:
            for entry in self.entries:
                getattr(target, entry.level)(entry.message)
        self.entries = []
