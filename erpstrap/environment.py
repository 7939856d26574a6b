"""Host environment classification.

The prober inspects a handful of host signals and classifies the machine
into exactly one label. Detection itself is a pure function over a
``HostSignals`` value; only ``collect_signals`` touches the live host.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Mapping, Optional

if TYPE_CHECKING:
    from .config import Settings


PROC_VERSION_PATH = Path("/proc/version")
HYPERVISOR_UUID_PATH = Path("/sys/hypervisor/uuid")

IDE_ENV_VARS = ("PYCHARM_HOSTED", "JETBRAINS_REMOTE_RUN")
_CONTAINER_KERNEL_RE = re.compile(r"(microsoft|wsl)", re.IGNORECASE)


class EnvironmentLabel(str, Enum):
    CONTAINER = "container-hosted"
    IDE = "ide-hosted"
    CLOUD = "cloud-instance"
    STANDARD = "standard"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HostSignals:
    kernel_version: str = ""
    environ: Mapping[str, str] = field(default_factory=dict)
    hypervisor_uuid: Optional[str] = None


def detect(signals: HostSignals) -> EnvironmentLabel:
    """Classify a host from its signals.

    Signals are evaluated in a fixed priority order and the first match
    wins: container kernel signature, IDE remote-run variables, cloud
    hypervisor identifier. Anything else is ``standard``.
    """
    if _CONTAINER_KERNEL_RE.search(signals.kernel_version or ""):
        return EnvironmentLabel.CONTAINER
    if any(signals.environ.get(var) for var in IDE_ENV_VARS):
        return EnvironmentLabel.IDE
    if (signals.hypervisor_uuid or "")[:3].lower() == "ec2":
        return EnvironmentLabel.CLOUD
    return EnvironmentLabel.STANDARD


def _read_head(path: Path, size: Optional[int] = None) -> Optional[str]:
    try:
        with open(path) as f:
            return f.read(size) if size else f.read()
    except OSError:
        return None


def collect_signals(
    environ: Optional[Mapping[str, str]] = None,
    proc_version: Path = PROC_VERSION_PATH,
    hypervisor_uuid: Path = HYPERVISOR_UUID_PATH,
) -> HostSignals:
    """Read the live host signals. Unreadable files count as absent."""
    env = os.environ if environ is None else environ
    return HostSignals(
        kernel_version=_read_head(proc_version) or "",
        environ={var: env[var] for var in IDE_ENV_VARS if var in env},
        hypervisor_uuid=_read_head(hypervisor_uuid, 3),
    )


def detect_host(environ: Optional[Mapping[str, str]] = None) -> EnvironmentLabel:
    return detect(collect_signals(environ))


def post_install_notes(label: EnvironmentLabel, settings: "Settings", ip_address: str) -> List[str]:
    """Follow-up instructions for the operator once an install succeeds."""
    notes: List[str] = []
    if label is EnvironmentLabel.CONTAINER:
        notes += [
            "Container-hosted environment: make sure port forwarding is configured on the host.",
            "You may need to run the following commands on the Windows host:",
            f"netsh interface portproxy add v4tov4 listenport=80 listenaddress=0.0.0.0 connectport=80 connectaddress={ip_address}",
            f"netsh interface portproxy add v4tov4 listenport=443 listenaddress=0.0.0.0 connectport=443 connectaddress={ip_address}",
            "For local testing, add the following entry to the host's hosts file:",
            f"{ip_address} {settings.domain}",
        ]
    elif label is EnvironmentLabel.IDE:
        notes += [
            "IDE-hosted environment: no service unit or reverse proxy was set up. Start the server with:",
            settings.launch_command,
        ]
    elif label is EnvironmentLabel.CLOUD:
        notes.append(
            "Cloud instance: make sure the security group allows incoming traffic on ports 80 and 443."
        )
    else:
        notes.append("Standard environment: no additional steps required.")

    if label is not EnvironmentLabel.IDE:
        notes.append(f"Odoo is available at http://{settings.domain} or http://{ip_address}")
        notes.append(f"To set up TLS with Certbot, run: sudo certbot --nginx -d {settings.domain}")
    notes.append(f"Change the master password in {settings.config_path} before going live.")
    return notes
