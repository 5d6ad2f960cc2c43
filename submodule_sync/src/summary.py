"""Aggregate per-submodule results for reporting."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .errors import describe_error
from .models import SHORT_SHA_LENGTH, UpdateResult, UpdateStatus


@dataclass(frozen=True, slots=True)
class SyncSummary:
    total: int
    updated: int
    up_to_date: int
    skipped: int
    failed: int
    diverged: int
    duration_ms: float
    results: tuple[UpdateResult, ...]

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


def summarize(
    results: Sequence[UpdateResult],
    started: float,
    now: Optional[float] = None,
) -> SyncSummary:
    """``started`` and ``now`` are :func:`time.monotonic` readings."""
    counts: Dict[UpdateStatus, int] = {status: 0 for status in UpdateStatus}
    for result in results:
        counts[result.status] += 1
    diverged = sum(1 for result in results if result.selection is not None and result.selection.diverged)
    elapsed = (time.monotonic() if now is None else now) - started
    return SyncSummary(
        total=len(results),
        updated=counts[UpdateStatus.UPDATED],
        up_to_date=counts[UpdateStatus.UP_TO_DATE],
        skipped=counts[UpdateStatus.SKIPPED],
        failed=counts[UpdateStatus.FAILED],
        diverged=diverged,
        duration_ms=elapsed * 1000.0,
        results=tuple(results),
    )


def _status_label(result: UpdateResult) -> str:
    label = result.status.value
    if result.dry_run:
        label = f"{label} (dry-run)"
    if result.selection is not None and result.selection.diverged:
        label = f"{label} [diverged]"
    return label


def format_summary_table(results: Sequence[UpdateResult]) -> List[str]:
    """Aligned table lines sorted by path; failures are listed underneath."""
    headers = ["Path", "Status", "Source", "Commit", "Time"]
    rows: List[Dict[str, str]] = []
    for result in sorted(results, key=lambda r: r.submodule.path):
        selection = result.selection
        rows.append(
            {
                "Path": result.submodule.path,
                "Status": _status_label(result),
                "Source": selection.source.value if selection else "-",
                "Commit": selection.sha.short(SHORT_SHA_LENGTH) if selection else "-",
                "Time": f"{result.duration_ms / 1000.0:.1f}s",
            }
        )

    widths = {header: len(header) for header in headers}
    for row in rows:
        for header in headers:
            widths[header] = max(widths[header], len(row[header]))

    def _format(row: Dict[str, str]) -> str:
        return "  ".join(row[header].ljust(widths[header]) for header in headers).rstrip()

    lines = [_format({header: header for header in headers})]
    lines.append("  ".join("-" * widths[header] for header in headers))
    lines.extend(_format(row) for row in rows)

    failures = [r for r in sorted(results, key=lambda r: r.submodule.path) if r.status is UpdateStatus.FAILED]
    if failures:
        lines.append("")
        lines.append("Failures:")
        for result in failures:
            reason = describe_error(result.error) if result.error is not None else "unknown error"
            lines.append(f"  {result.submodule.path}: {reason}")
    return lines


def format_totals(summary: SyncSummary) -> str:
    parts = [
        f"{summary.total} submodules",
        f"{summary.updated} updated",
        f"{summary.up_to_date} up-to-date",
        f"{summary.skipped} skipped",
        f"{summary.failed} failed",
    ]
    if summary.diverged:
        parts.append(f"{summary.diverged} diverged")
    return f"{', '.join(parts)} in {summary.duration_ms / 1000.0:.1f}s"
