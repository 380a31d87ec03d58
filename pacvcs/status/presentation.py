"""Title and summary shown to users for each run status.

The wording is part of the contract with repository users and must not drift
between providers.
"""

from __future__ import annotations

import msgspec

from pacvcs.events import Conclusion, RunStatus, StatusOpts

RUNNING_TITLE = "CI has Started"
RUNNING_SUMMARY = "{app} is running."

_CONCLUSION_PRESENTATION: dict[Conclusion, tuple[str, str]] = {
    Conclusion.SUCCESS: ("Success", "{app} has successfully validated your commit."),
    Conclusion.FAILURE: ("Failed", "{app} has failed."),
    Conclusion.SKIPPED: ("Skipped", "{app} is skipping this commit."),
    Conclusion.NEUTRAL: (
        "Unknown",
        "{app} doesn't know what happened with this commit.",
    ),
}


class StatusPresentation(msgspec.Struct, kw_only=True, frozen=True):
    """Rendered title and summary for one status report."""

    title: str
    summary: str

    @property
    def is_empty(self) -> bool:
        """Return whether there is nothing to show."""
        return not self.title and not self.summary


def present_status(opts: StatusOpts, app_name: str) -> StatusPresentation:
    """Render the title and summary for ``opts``.

    An ``in_progress`` status always renders the running message, even when a
    stale conclusion is still attached. Reports with neither a running status
    nor a conclusion (for example ``queued``) render empty strings.

    Examples
    --------
    >>> from pacvcs.events import StatusOpts
    >>> present_status(StatusOpts.from_raw("completed", "failure"), "PaC").summary
    'PaC has failed.'

    """
    if opts.status == RunStatus.IN_PROGRESS:
        return StatusPresentation(
            title=RUNNING_TITLE, summary=RUNNING_SUMMARY.format(app=app_name)
        )

    templates = _CONCLUSION_PRESENTATION.get(Conclusion(opts.conclusion))
    if templates is None:
        return StatusPresentation(title="", summary="")
    title, summary = templates
    return StatusPresentation(title=title, summary=summary.format(app=app_name))


__all__ = [
    "RUNNING_SUMMARY",
    "RUNNING_TITLE",
    "StatusPresentation",
    "present_status",
]
