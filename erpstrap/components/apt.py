from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from ..errors import PreconditionError
from ..host import Host
from ..step import Step, StepContext

NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}


def package_installed(host: Host, package: str) -> bool:
    """True when dpkg reports ``package`` as installed.

    dpkg-query exits 1 for packages it has never heard of; any other
    non-zero exit means the package database could not be queried.
    """
    res = host.run(["dpkg-query", "-W", "-f=${Status}", package])
    if res.returncode == 0:
        return res.stdout.strip().endswith("install ok installed")
    if res.returncode == 1:
        return False
    raise PreconditionError(f"dpkg-query failed for {package} (exit {res.returncode}): {res.stderr}")


def installed_matching(host: Host, pattern: str) -> List[str]:
    res = host.run(["dpkg-query", "-W", "-f=${Package} ${Status}\n", pattern])
    if res.returncode == 1:
        return []
    if res.returncode != 0:
        raise PreconditionError(f"dpkg-query failed for {pattern} (exit {res.returncode}): {res.stderr}")
    found = []
    for line in res.stdout.splitlines():
        name, _, status = line.partition(" ")
        if status.strip().endswith("install ok installed"):
            found.append(name)
    return found


def _simulate(host: Host, verb: str) -> str:
    res = host.run(["apt-get", "--simulate", verb], env=NONINTERACTIVE)
    if not res.ok:
        raise PreconditionError(f"apt-get --simulate {verb} failed (exit {res.returncode}): {res.stderr}")
    return res.stdout


class SystemUpgradeStep(Step):
    """Refresh package lists and apply pending upgrades."""

    description = "Updating and upgrading system packages"

    def check(self, ctx: StepContext) -> bool:
        return re.search(r"\b0 upgraded\b", _simulate(ctx.host, "upgrade")) is not None

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["apt-get", "update"], env=NONINTERACTIVE, check=True)
        ctx.host.run(["apt-get", "upgrade", "-y"], env=NONINTERACTIVE, check=True)


class EnsurePackagesStep(Step):
    """Install any of ``packages`` that are not installed yet."""

    def __init__(self, name: str, packages: Sequence[str], skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.packages = list(packages)
        self.description = f"Installing {', '.join(self.packages)}"

    def missing(self, host: Host) -> List[str]:
        return [p for p in self.packages if not package_installed(host, p)]

    def check(self, ctx: StepContext) -> bool:
        return not self.missing(ctx.host)

    def apply(self, ctx: StepContext) -> None:
        missing = self.missing(ctx.host)
        if missing:
            # Lists may be empty or stale even when nothing is upgradable
            ctx.host.run(["apt-get", "update"], env=NONINTERACTIVE, check=True)
            ctx.host.run(["apt-get", "install", "-y"] + missing, env=NONINTERACTIVE, check=True)


class PurgePackagesStep(Step):
    """Purge every installed package matching ``pattern`` plus its data directories."""

    def __init__(self, name: str, pattern: str, data_dirs: Sequence[str] = (), skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.pattern = pattern
        self.data_dirs = list(data_dirs)
        self.description = f"Purging packages matching {pattern}"

    def check(self, ctx: StepContext) -> bool:
        if installed_matching(ctx.host, self.pattern):
            return False
        return not any(ctx.host.exists(d) for d in self.data_dirs)

    def apply(self, ctx: StepContext) -> None:
        if installed_matching(ctx.host, self.pattern):
            ctx.host.run(["apt-get", "--purge", "remove", "-y", self.pattern], env=NONINTERACTIVE, check=True)
        for d in self.data_dirs:
            ctx.host.remove(d)


class AutoremoveStep(Step):
    description = "Removing packages that are no longer needed"

    def check(self, ctx: StepContext) -> bool:
        return re.search(r"\b0 to remove\b", _simulate(ctx.host, "autoremove")) is not None

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["apt-get", "autoremove", "-y"], env=NONINTERACTIVE, check=True)
        ctx.host.run(["apt-get", "clean"], check=True)
