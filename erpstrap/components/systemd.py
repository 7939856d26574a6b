from __future__ import annotations

from typing import Iterable, Optional

from ..host import Host
from ..step import Step, StepContext
from .apt import package_installed


def is_active(host: Host, unit: str) -> bool:
    return host.run(["systemctl", "is-active", "--quiet", unit]).ok


def is_enabled(host: Host, unit: str) -> bool:
    return host.run(["systemctl", "is-enabled", "--quiet", unit]).ok


class EnsureServiceRunningStep(Step):
    """Start ``unit`` if it is not running.

    With ``package`` set, the step is satisfied while that package is not
    installed, so a plan can include it for hosts that may lack the service.
    """

    def __init__(
        self,
        name: str,
        unit: str,
        package: Optional[str] = None,
        skip_in: Optional[Iterable] = None,
    ) -> None:
        super().__init__(name, skip_in)
        self.unit = unit
        self.package = package
        self.description = f"Starting {unit}"

    def check(self, ctx: StepContext) -> bool:
        if self.package and not package_installed(ctx.host, self.package):
            return True
        return is_active(ctx.host, self.unit)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["systemctl", "start", self.unit], check=True)


class EnableServiceStep(Step):
    """Reload unit files, then enable and start ``unit``."""

    def __init__(self, name: str, unit: str, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.unit = unit
        self.description = f"Enabling and starting {unit}"

    def check(self, ctx: StepContext) -> bool:
        return is_enabled(ctx.host, self.unit) and is_active(ctx.host, self.unit)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["systemctl", "daemon-reload"], check=True)
        ctx.host.run(["systemctl", "enable", "--now", self.unit], check=True)


class StopServiceStep(Step):
    def __init__(self, name: str, unit: str, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.unit = unit
        self.description = f"Stopping and disabling {unit}"

    def check(self, ctx: StepContext) -> bool:
        return not is_active(ctx.host, self.unit) and not is_enabled(ctx.host, self.unit)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["systemctl", "stop", self.unit], check=True)
        ctx.host.run(["systemctl", "disable", self.unit], check=True)
