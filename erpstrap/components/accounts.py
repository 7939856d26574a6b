from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Optional

from ..errors import PreconditionError
from ..host import Host
from ..step import Step, StepContext

_ACCOUNT_RE = re.compile(r"^[a-z_][a-z0-9_-]{0,31}$")


def validate_account_name(account: str) -> str:
    if not _ACCOUNT_RE.match(account or ""):
        raise ValueError(f"Invalid account name: {account!r}")
    return account


def account_exists(host: Host, account: str) -> bool:
    """Look the account up with getent; exit 2 means "no such key"."""
    res = host.run(["getent", "passwd", account])
    if res.returncode == 0:
        return True
    if res.returncode == 2:
        return False
    raise PreconditionError(f"getent passwd {account} failed (exit {res.returncode}): {res.stderr}")


class EnsureSystemAccountStep(Step):
    """Create a system account with a same-named group and the given home."""

    def __init__(self, name: str, account: str, home: Path | str, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.account = validate_account_name(account)
        self.home = str(home)
        self.description = f"Creating system user {account}"

    def check(self, ctx: StepContext) -> bool:
        return account_exists(ctx.host, self.account)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(
            ["adduser", "--system", f"--home={self.home}", "--group", self.account],
            check=True,
        )


class RemoveSystemAccountStep(Step):
    def __init__(self, name: str, account: str, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.account = validate_account_name(account)
        self.description = f"Removing system user {account}"

    def check(self, ctx: StepContext) -> bool:
        return not account_exists(ctx.host, self.account)

    def apply(self, ctx: StepContext) -> None:
        # Home is removed by its own step beforehand, so no -r here.
        ctx.host.run(["userdel", self.account], check=True)
