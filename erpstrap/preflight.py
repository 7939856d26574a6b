from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .errors import PrivilegeError, UnsupportedHostError
from .host import Host


@dataclass
class HostIssue:
    kind: str         # 'privilege' | 'unsupported_host'
    message: str
    details: Optional[Dict[str, Any]] = None


class HostValidator:
    """Base class for preflight validators that collect issues without raising."""

    def run(self, host: Host) -> List[HostIssue]:
        raise NotImplementedError


class PrivilegeValidator(HostValidator):
    def run(self, host: Host) -> List[HostIssue]:
        if host.is_root():
            return []
        return [HostIssue(kind="privilege", message="This command must be run as root")]


class ReleaseValidator(HostValidator):
    """Require Ubuntu and one of the supported releases, as reported by lsb_release."""

    def __init__(self, supported: Sequence[str]) -> None:
        self.supported = list(supported)

    def run(self, host: Host) -> List[HostIssue]:
        distro = host.run(["lsb_release", "-is"])
        release = host.run(["lsb_release", "-rs"])
        if not distro.ok or not release.ok:
            return [HostIssue(kind="unsupported_host", message="Unable to determine the OS release (lsb_release failed)")]
        name, version = distro.stdout.strip(), release.stdout.strip()
        if name.lower() != "ubuntu":
            return [HostIssue(kind="unsupported_host", message=f"Unsupported distribution: {name}",
                              details={"distro": name, "release": version})]
        if version not in self.supported:
            return [HostIssue(
                kind="unsupported_host",
                message=f"Unsupported Ubuntu version: {version}. Supported versions are {' '.join(self.supported)}",
                details={"distro": name, "release": version},
            )]
        return []


def run_preflight(host: Host, validators: Sequence[HostValidator]) -> None:
    """Raise for the first issue any validator reports."""
    for v in validators:
        for issue in v.run(host):
            if issue.kind == "privilege":
                raise PrivilegeError(issue.message)
            raise UnsupportedHostError(issue.message)
