"""Per-run serialisation of status writes.

Reports for one run must reach the provider in order: an update that lands
after the final one would move a completed status back to running. Adapters
do not lock anything themselves; an orchestrator that reports from several
tasks holds :meth:`CheckRunLocks.hold` around each ``report_status`` call.
Unrelated runs get independent locks and never wait on each other.
"""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

if typ.TYPE_CHECKING:
    from pacvcs.events import Event

RunKey: typ.TypeAlias = tuple[str, str, str, str]


def run_key(provider: str, event: Event) -> RunKey:
    """Return the key identifying the status object of ``event``."""
    return (provider, event.owner, event.repository, event.sha)


class CheckRunLocks:
    """Registry of ``asyncio.Lock`` objects, one per run.

    Examples
    --------
    >>> locks = CheckRunLocks()
    >>> async def report(adapter, event, opts):
    ...     async with locks.hold(adapter.name, event):
    ...         await adapter.report_status(event, opts)

    """

    def __init__(self) -> None:
        """Initialise an empty registry."""
        self._locks: dict[RunKey, asyncio.Lock] = {}

    def __len__(self) -> int:
        """Return the number of runs currently tracked."""
        return len(self._locks)

    def lock_for(self, provider: str, event: Event) -> asyncio.Lock:
        """Return the lock for ``event``, creating it on first use."""
        return self._locks.setdefault(run_key(provider, event), asyncio.Lock())

    @contextlib.asynccontextmanager
    async def hold(self, provider: str, event: Event) -> typ.AsyncIterator[None]:
        """Hold the lock for ``event`` for the duration of the block."""
        async with self.lock_for(provider, event):
            yield

    def discard(self, provider: str, event: Event) -> None:
        """Forget the lock of a finished run.

        Only call this once no task can report for the run any more.
        """
        self._locks.pop(run_key(provider, event), None)


__all__ = ["CheckRunLocks", "RunKey", "run_key"]
