"""Reconciliation of polled run snapshots against what was seen before."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from octap.models.workflow import WorkflowRun


@dataclass(frozen=True, kw_only=True)
class Reconciliation:
    """Outcome of reconciling one poll."""

    newly_completed: Sequence[WorkflowRun]
    all_completed: bool
    has_transition: bool


class RunStateTracker:
    """Remembers the latest snapshot of every run and which runs completed.

    A run is reported in ``newly_completed`` only once, and only when it was
    seen in a non-completed state by an earlier poll. Runs that are already
    completed when first discovered are recorded silently.
    """

    def __init__(self) -> None:
        self._runs: dict[int, WorkflowRun] = {}
        self._completed: set[int] = set()

    @property
    def runs(self) -> Mapping[int, WorkflowRun]:
        """Latest snapshot per run id."""
        return self._runs

    @property
    def completed_ids(self) -> frozenset[int]:
        """Ids of runs whose completion has been handled."""
        return frozenset(self._completed)

    def reconcile(
        self, runs: Sequence[WorkflowRun], *, is_initial: bool = False
    ) -> Reconciliation:
        """Record ``runs`` and report completions observed since last poll.

        ``all_completed`` is only true for a non-empty run set: an empty
        set means no workflow has started yet.
        """
        newly_completed: list[WorkflowRun] = []
        all_completed = True

        for run in runs:
            previous = self._runs.get(run.id)
            self._runs[run.id] = run

            if not run.is_completed:
                all_completed = False
                continue

            if run.id in self._completed:
                continue

            self._completed.add(run.id)
            if not is_initial and previous is not None and not previous.is_completed:
                newly_completed.append(run)

        return Reconciliation(
            newly_completed=newly_completed,
            all_completed=all_completed and bool(runs),
            has_transition=bool(newly_completed),
        )
