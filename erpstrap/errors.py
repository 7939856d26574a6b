from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .host import CommandResult


class ErpstrapError(Exception):
    """Base class for every failure that aborts a provisioning run."""


class PreconditionError(ErpstrapError):
    """A step's precondition could not be evaluated (as opposed to being false)."""


class ActionError(ErpstrapError):
    """A step's action did not complete."""


class CommandError(ActionError):
    """A checked command exited non-zero."""

    def __init__(self, result: "CommandResult", message: Optional[str] = None) -> None:
        self.result = result
        detail = result.stderr or result.stdout
        msg = message or f"Command {' '.join(result.cmd)!r} exited with code {result.returncode}"
        if detail:
            msg = f"{msg}: {detail.strip().splitlines()[-1]}"
        super().__init__(msg)


class UnsupportedHostError(ErpstrapError):
    """The host is not a supported Ubuntu release."""


class PrivilegeError(ErpstrapError):
    """The process is not running with root privileges."""
