"""Create-once, update-many lifecycle of a run's provider status object.

States move ``uncreated -> in_progress -> completed``. The first report for a
run creates the provider object and binds its identifier to the event; every
later report updates that object. A run becomes ``completed`` only on a
report carrying a conclusion, and the completion timestamp is attached at
that point and never earlier.

Adapters supply two coroutines, one that creates the provider object and
returns its identifier and one that updates an existing object, and let
:func:`advance_check_run` decide which one runs.
"""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt  # noqa: TC003
import typing as typ

import msgspec

from pacvcs.common.time import utcnow
from pacvcs.errors import CheckRunStateError
from pacvcs.events import CheckRunState, Conclusion, RunStatus
from pacvcs.status.presentation import present_status

if typ.TYPE_CHECKING:
    from pacvcs.events import Event, StatusOpts


class StatusUpdate(msgspec.Struct, kw_only=True, frozen=True):
    """Provider-neutral description of one status write.

    Attributes
    ----------
    create
        Whether the provider object has to be created by this write.
    status
        Run status to report. ``completed`` only for terminal reports.
    conclusion
        Final conclusion, or ``Conclusion.NONE`` while running.
    title, summary
        Rendered presentation; empty when there is nothing to show.
    text
        Long-form body supplied by the caller.
    details_url
        Link to logs, or ``None`` to leave any existing link untouched.
    started_at
        Set on the creating write only.
    completed_at
        Set on terminal writes only.
    next_state
        Lifecycle state once the write succeeds.

    """

    create: bool
    status: RunStatus
    conclusion: Conclusion
    title: str
    summary: str
    text: str
    details_url: str | None
    started_at: dt.datetime | None
    completed_at: dt.datetime | None
    next_state: CheckRunState


def plan_status_update(
    event: Event,
    opts: StatusOpts,
    *,
    app_name: str,
    now: dt.datetime | None = None,
) -> StatusUpdate:
    """Work out the next write for ``event`` without touching the provider.

    Raises
    ------
    CheckRunStateError
        If the run is already completed and ``opts`` is not terminal.

    """
    terminal = opts.is_terminal
    if event.check_run_state == CheckRunState.COMPLETED and not terminal:
        raise CheckRunStateError.downgrade(event.check_run_id, str(opts.status))

    if terminal:
        status = RunStatus.COMPLETED
    elif opts.status == RunStatus.COMPLETED:
        # completed without a conclusion has not finished yet
        status = RunStatus.IN_PROGRESS
    else:
        status = RunStatus(opts.status)

    timestamp = now or utcnow()
    presentation = present_status(opts, app_name)
    create = event.check_run_id is None
    return StatusUpdate(
        create=create,
        status=status,
        conclusion=Conclusion(opts.conclusion) if terminal else Conclusion.NONE,
        title=presentation.title,
        summary=presentation.summary,
        text=opts.text,
        details_url=opts.details_url or None,
        started_at=timestamp if create else None,
        completed_at=timestamp if terminal else None,
        next_state=CheckRunState.COMPLETED if terminal else CheckRunState.IN_PROGRESS,
    )


CreateStatus: typ.TypeAlias = cabc.Callable[[StatusUpdate], cabc.Awaitable[str]]
UpdateStatus: typ.TypeAlias = cabc.Callable[[str, StatusUpdate], cabc.Awaitable[None]]


async def advance_check_run(
    event: Event,
    opts: StatusOpts,
    *,
    app_name: str,
    create: CreateStatus,
    update: UpdateStatus,
) -> StatusUpdate:
    """Apply one status report to ``event`` through the provider callbacks.

    The event is only mutated after the provider write succeeded, so a failed
    creation leaves the run ``uncreated`` and the error propagates to the
    caller.
    ``create`` must return the identifier of the object it made whenever the
    provider accepted it; if it raises after the object exists, the run stays
    unbound and the next report creates a second object.
    """
    plan = plan_status_update(event, opts, app_name=app_name)
    if plan.create:
        identifier = await create(plan)
        event.record_check_run(identifier)
    else:
        await update(typ.cast("str", event.check_run_id), plan)
    event.check_run_state = plan.next_state
    return plan


__all__ = [
    "CreateStatus",
    "StatusUpdate",
    "UpdateStatus",
    "advance_check_run",
    "plan_status_update",
]
