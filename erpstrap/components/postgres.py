from __future__ import annotations

import re
from typing import Iterable, Optional

from ..errors import ActionError, PreconditionError
from ..host import Host
from ..step import Step, StepContext
from .accounts import validate_account_name
from .apt import package_installed

POSTGRES_USER = "postgres"


def server_major_version(host: Host) -> int:
    res = host.run(["psql", "--version"])
    if not res.ok:
        raise PreconditionError(f"psql --version failed (exit {res.returncode}): {res.stderr}")
    m = re.search(r"(\d+)(?:\.\d+)?", res.stdout)
    if not m:
        raise PreconditionError(f"Cannot parse PostgreSQL version from {res.stdout!r}")
    return int(m.group(1))


def role_exists(host: Host, role: str) -> bool:
    res = host.run(
        ["psql", "-tAc", f"SELECT 1 FROM pg_roles WHERE rolname='{role}'"],
        user=POSTGRES_USER,
    )
    if not res.ok:
        raise PreconditionError(f"Querying pg_roles for {role} failed (exit {res.returncode}): {res.stderr}")
    return res.stdout.strip() == "1"


class PostgresVersionStep(Step):
    """Gate: the installed server must be at least ``settings.min_postgres_major``."""

    description = "Checking PostgreSQL version"

    def check(self, ctx: StepContext) -> bool:
        return server_major_version(ctx.host) >= ctx.settings.min_postgres_major

    def apply(self, ctx: StepContext) -> None:
        found = server_major_version(ctx.host)
        raise ActionError(
            f"PostgreSQL {ctx.settings.min_postgres_major} or higher is required. Detected version: {found}."
        )


class EnsureDatabaseRoleStep(Step):
    """Create a PostgreSQL superuser role named after the service account."""

    def __init__(self, name: str, role: str, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.role = validate_account_name(role)
        self.description = f"Creating PostgreSQL role {role}"

    def check(self, ctx: StepContext) -> bool:
        return role_exists(ctx.host, self.role)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["createuser", "-s", self.role], user=POSTGRES_USER, check=True)


class DropDatabaseRoleStep(Step):
    def __init__(self, name: str, role: str, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.role = validate_account_name(role)
        self.description = f"Dropping PostgreSQL role {role}"

    def check(self, ctx: StepContext) -> bool:
        if not package_installed(ctx.host, "postgresql"):
            return True
        return not role_exists(ctx.host, self.role)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["dropuser", "--if-exists", self.role], user=POSTGRES_USER, check=True)
