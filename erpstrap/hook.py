from __future__ import annotations

import logging
from abc import ABC
from typing import TYPE_CHECKING, Any, List, Optional

from rich.console import Console

if TYPE_CHECKING:
    from .sequencer import RunResult, StepRecord
    from .step import Step


logger = logging.getLogger(__name__)


class Hook(ABC):
    """Base Hook with no-op defaults.

    Hooks observe a sequencer run. They are best-effort: the sequencer logs
    and discards any exception a hook raises, so a broken hook never changes
    the outcome of a run.
    """

    def on_run_start(self, steps: List["Step"], label: Any) -> None:  # noqa: D401
        return None

    def on_step_start(self, step: "Step") -> None:  # noqa: D401
        return None

    def on_step_end(self, step: "Step", record: "StepRecord") -> None:  # noqa: D401
        return None

    def on_run_end(self, result: "RunResult") -> None:  # noqa: D401
        return None


class ConsoleHook(Hook):
    """Colored progress lines on the terminal."""

    STYLES = {
        "applied": "green",
        "skipped-already-satisfied": "yellow",
        "failed": "bold red",
    }

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def on_run_start(self, steps: List["Step"], label: Any) -> None:
        self.console.print(f"[bold]Running {len(steps)} steps[/bold] (environment: {label})")

    def on_step_start(self, step: "Step") -> None:
        self.console.print(f"[green]→ {step.describe()}[/green]")

    def on_step_end(self, step: "Step", record: "StepRecord") -> None:
        style = self.STYLES.get(record.outcome.value, "white")
        line = f"  [{style}]{record.outcome.value}[/{style}] {record.name}"
        if record.error:
            line += f" ({record.phase}: {record.error})"
        self.console.print(line)

    def on_run_end(self, result: "RunResult") -> None:
        if result.ok:
            self.console.print("[bold green]All steps completed.[/bold green]")
        else:
            failed = result.failed
            self.console.print(f"[bold red]Run halted at step '{failed.name}'.[/bold red]")
