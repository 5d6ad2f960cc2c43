"""Run the update state machine over every submodule."""
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from .actions import GitActions
from .cache import RepositoryCache
from .console import BufferedConsole, SyncConsole
from .executor import SubmoduleUpdateExecutor
from .models import ExecutionContext, Submodule, UpdateResult, UpdateStatus


def process_submodules(
    submodules: Sequence[Submodule],
    context: ExecutionContext,
    console: SyncConsole,
    actions: Optional[GitActions] = None,
) -> List[UpdateResult]:
    """Process ``submodules`` and return exactly one result for each.

    Sequential mode finishes one submodule before starting the next. With
    ``context.parallel`` at most ``context.max_parallel`` run at once; a
    freed worker picks up the next queued submodule. Results are in
    completion order.
    """
    if not submodules:
        return []
    # One validity cache per run, shared by discovery and planning.
    actions = actions or GitActions(cache=RepositoryCache())
    executor = SubmoduleUpdateExecutor(context, actions)

    if not context.parallel or len(submodules) == 1:
        return [executor.run(submodule, console) for submodule in submodules]

    workers = min(context.max_parallel, len(submodules))
    console.verbose(f"Processing {len(submodules)} submodules with {workers} workers")

    started: Dict[str, float] = {}

    def _run(submodule: Submodule) -> UpdateResult:
        started[submodule.path] = time.monotonic()
        buffer = BufferedConsole(prefix=f"[{submodule.path}] ")
        try:
            return executor.run(submodule, buffer)
        finally:
            buffer.flush_to(console)

    results: List[UpdateResult] = []
    batch_started = time.monotonic()
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="submodule") as pool:
        futures = {pool.submit(_run, submodule): submodule for submodule in submodules}
        for future in as_completed(futures):
            submodule = futures[future]
            try:
                results.append(future.result())
            except Exception as exc:
                elapsed = time.monotonic() - started.get(submodule.path, batch_started)
                console.error(f"Worker for {submodule.path} generated an exception: {exc}")
                results.append(
                    UpdateResult(
                        submodule=submodule,
                        selection=None,
                        status=UpdateStatus.FAILED,
                        duration_ms=elapsed * 1000.0,
                        error=exc,
                    )
                )
    return results
