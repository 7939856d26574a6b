from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .hook import Hook
from .step import Step, StepContext

if TYPE_CHECKING:
    from .config import Settings
    from .environment import EnvironmentLabel
    from .host import Host


logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SKIPPED = "skipped-already-satisfied"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class StepRecord:
    name: str
    outcome: Outcome
    phase: Optional[str] = None  # 'check' | 'apply' for failed records
    error: Optional[str] = None
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "outcome": self.outcome.value,
            "phase": self.phase,
            "error": self.error,
            "duration": round(self.duration, 3),
        }


@dataclass
class RunResult:
    records: List[StepRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed is None

    @property
    def failed(self) -> Optional[StepRecord]:
        if self.records and self.records[-1].outcome is Outcome.FAILED:
            return self.records[-1]
        return None

    @property
    def outcomes(self) -> List[Outcome]:
        return [r.outcome for r in self.records]

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "ok" if self.ok else "error", "steps": [r.to_dict() for r in self.records]}


class Sequencer:
    """Sequential, halt-on-first-failure runner for provisioning steps.

    Steps that do not apply to the environment label are left out of the
    run entirely. For the rest: a satisfied precondition records a skip, an
    unsatisfied one triggers the action. Any exception from either phase
    records a failure and stops the run; there is no retry or rollback.
    """

    def __init__(
        self,
        settings: "Settings",
        host: "Host",
        label: "EnvironmentLabel",
        hook: Optional[Hook] = None,
    ) -> None:
        self.ctx = StepContext(settings=settings, host=host, label=label)
        self.hook = hook

    def applicable(self, steps: List[Step]) -> List[Step]:
        names = [s.name for s in steps]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate step names: {', '.join(dupes)}")
        selected = []
        for step in steps:
            if step.applies_to(self.ctx.label):
                selected.append(step)
            else:
                logger.info(f"Step '{step.name}' does not apply to {self.ctx.label} hosts; leaving it out")
        return selected

    def run(self, steps: List[Step]) -> RunResult:
        selected = self.applicable(steps)
        result = RunResult()
        self._notify("on_run_start", selected, self.ctx.label)
        for step in selected:
            self._notify("on_step_start", step)
            record = self._run_step(step)
            result.records.append(record)
            self._notify("on_step_end", step, record)
            if record.outcome is Outcome.FAILED:
                logger.error(f"Step '{record.name}' failed during {record.phase}: {record.error}")
                break
        self._notify("on_run_end", result)
        return result

    def _run_step(self, step: Step) -> StepRecord:
        start = time.time()
        try:
            satisfied = step.check(self.ctx)
        except Exception as e:  # noqa: BLE001
            return StepRecord(step.name, Outcome.FAILED, phase="check", error=str(e) or type(e).__name__,
                              duration=time.time() - start)
        if satisfied:
            logger.info(f"Step '{step.name}' already satisfied; skipping")
            return StepRecord(step.name, Outcome.SKIPPED, duration=time.time() - start)

        logger.info(f"Applying step '{step.name}'")
        try:
            step.apply(self.ctx)
        except Exception as e:  # noqa: BLE001
            return StepRecord(step.name, Outcome.FAILED, phase="apply", error=str(e) or type(e).__name__,
                              duration=time.time() - start)
        return StepRecord(step.name, Outcome.APPLIED, duration=time.time() - start)

    def _notify(self, event: str, *args: Any) -> None:
        if self.hook is None:
            return
        try:
            getattr(self.hook, event)(*args)
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Hook {type(self.hook).__name__}.{event} raised: {e}")
