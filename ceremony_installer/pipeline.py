from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from .state_store import is_step_completed, mark_step_completed

logger = logging.getLogger(__name__)


class Step(Protocol):
    """One stage of the install; mutates and returns the shared state."""

    step_id: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]
    durations: Dict[str, float] = field(default_factory=dict)


def select_steps(
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> List[Step]:
    """Return the contiguous slice of ``steps`` between start_at and stop_after."""

    ids = [s.step_id for s in steps]
    for name, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in ids:
            raise ValueError(f"Unknown step for {name}: {value} (known: {', '.join(ids)})")

    first = ids.index(start_at) if start_at is not None else 0
    last = ids.index(stop_after) if stop_after is not None else len(ids) - 1
    if last < first:
        raise ValueError(f"stop_after {stop_after} comes before start_at {start_at}")
    return list(steps[first : last + 1])


def run_pipeline(
    *,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
    clock: Callable[[], float] = time.monotonic,
) -> PipelineResult:
    """Run the selected steps in order.

    A step already listed in ``execution.completed_steps`` is skipped unless
    ``force`` is set. When a step raises, ``execution.current_step`` keeps its
    id so the caller can record where the install stopped.
    """

    selected = select_steps(steps, start_at, stop_after)
    exe = state.setdefault("execution", {})

    ran: List[str] = []
    skipped: List[str] = []
    durations: Dict[str, float] = {}

    for step in selected:
        exe["current_step"] = step.step_id

        if is_step_completed(state, step.step_id) and not force:
            logger.info("Skipping step %s (already completed)", step.step_id)
            skipped.append(step.step_id)
            continue

        logger.info("==> %s", step.step_id)
        began = clock()
        state = step.run(state)
        exe = state.setdefault("execution", {})
        durations[step.step_id] = round(clock() - began, 3)
        mark_step_completed(state, step.step_id)
        ran.append(step.step_id)
        logger.debug("Step %s finished in %.1fs", step.step_id, durations[step.step_id])

    if stop_after is not None:
        logger.info("Stopped after %s as requested", stop_after)

    exe["current_step"] = None
    exe.setdefault("step_durations", {}).update(durations)
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped, durations=durations)
