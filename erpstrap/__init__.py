"""
erpstrap: idempotent installer for an Odoo stack on Ubuntu.

This package provides core primitives:
- EnvironmentLabel / detect: classify the host (container, IDE, cloud, standard).
- Host: command-execution interface; SystemHost runs commands locally.
- Step: named unit of work with a side-effect-free check and an action.
- Sequencer: runs steps in order, skipping satisfied ones, halting on failure.
- Settings / Config: run configuration from environment variables and YAML.
- build_install_plan / build_uninstall_plan: the ordered step lists.
"""

from .config import Config, Settings
from .environment import EnvironmentLabel, HostSignals, collect_signals, detect, detect_host, post_install_notes
from .errors import ActionError, CommandError, ErpstrapError, PreconditionError, PrivilegeError, UnsupportedHostError
from .hook import ConsoleHook, Hook
from .host import CommandResult, Host, SystemHost
from .plan import build_install_plan, build_uninstall_plan
from .preflight import HostIssue, HostValidator, PrivilegeValidator, ReleaseValidator, run_preflight
from .sequencer import Outcome, RunResult, Sequencer, StepRecord
from .step import Step, StepContext

__all__ = [
    "Config",
    "Settings",
    # Environment
    "EnvironmentLabel",
    "HostSignals",
    "collect_signals",
    "detect",
    "detect_host",
    "post_install_notes",
    # Errors
    "ErpstrapError",
    "PreconditionError",
    "ActionError",
    "CommandError",
    "UnsupportedHostError",
    "PrivilegeError",
    # Hooks
    "Hook",
    "ConsoleHook",
    # Host
    "CommandResult",
    "Host",
    "SystemHost",
    # Plans
    "build_install_plan",
    "build_uninstall_plan",
    # Preflight
    "HostIssue",
    "HostValidator",
    "PrivilegeValidator",
    "ReleaseValidator",
    "run_preflight",
    # Sequencing
    "Outcome",
    "RunResult",
    "Sequencer",
    "StepRecord",
    "Step",
    "StepContext",
]
