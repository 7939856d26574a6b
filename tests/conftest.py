"""Pytest configuration and fixtures for erpstrap tests"""
import fnmatch
import re
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from erpstrap.config import Settings
from erpstrap.environment import EnvironmentLabel
from erpstrap.errors import CommandError
from erpstrap.host import CommandResult, Host
from erpstrap.step import StepContext


class FakeHost(Host):
    """In-memory stand-in for an Ubuntu machine.

    Accounts, database roles, packages and unit states live in sets; files
    are real files, but only under ``root``. Commands not modelled below
    succeed with no output. ``fail()`` forces a result for a command prefix.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.users: set = set()
        self.roles: set = set()
        self.packages: set = set()
        self.active: set = set()
        self.enabled: set = set()
        self.upgradable = 0
        self.removable = 0
        self.pg_version = "16.2"
        self.distro = "Ubuntu"
        self.release = "24.04"
        self.root_user = True
        # psql can only reach the cluster while the postgresql unit is active
        self.pg_needs_service = False
        self.calls: List[Tuple[List[str], Optional[str]]] = []
        self.failures: Dict[Tuple[str, ...], CommandResult] = {}

    # Test helpers
    def fail(self, *prefix: str, returncode: int = 1, stderr: str = "boom") -> None:
        self.failures[tuple(prefix)] = CommandResult(cmd=list(prefix), returncode=returncode, stderr=stderr)

    def ran(self, *prefix: str) -> int:
        return sum(1 for cmd, _ in self.calls if tuple(cmd[: len(prefix)]) == prefix)

    def _inside(self, path) -> bool:
        try:
            Path(path).resolve().relative_to(self.root.resolve())
            return True
        except ValueError:
            return False

    # Host interface
    def is_root(self) -> bool:
        return self.root_user

    def exists(self, path) -> bool:
        return self._inside(path) and super().exists(path)

    def remove(self, path) -> None:
        assert self._inside(path), f"refusing to touch {path} outside the fake root"
        super().remove(path)

    def run(self, cmd, user=None, env=None, check=False) -> CommandResult:
        cmd = list(cmd)
        self.calls.append((cmd, user))
        res = None
        for prefix, forced in self.failures.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                res = CommandResult(cmd=cmd, returncode=forced.returncode, stdout=forced.stdout, stderr=forced.stderr)
                break
        if res is None:
            res = self._simulate(cmd)
        if check and not res.ok:
            raise CommandError(res)
        return res

    def _simulate(self, cmd: List[str]) -> CommandResult:
        prog, args = cmd[0], cmd[1:]
        out, err, rc = "", "", 0
        if prog == "getent":
            rc = 0 if args[1] in self.users else 2
            out = f"{args[1]}:x:999:999::/home:/usr/sbin/nologin" if rc == 0 else ""
        elif prog == "adduser":
            self.users.add(args[-1])
        elif prog == "userdel":
            self.users.discard(args[-1])
        elif prog == "psql":
            if args[0] == "--version":
                out = f"psql (PostgreSQL) {self.pg_version} (Ubuntu {self.pg_version}-1)"
            elif self.pg_needs_service and "postgresql" not in self.active:
                rc, err = 2, "psql: error: could not connect to server"
            else:
                m = re.search(r"rolname='([^']+)'", args[-1])
                out = "1" if m and m.group(1) in self.roles else ""
        elif prog == "createuser":
            self.roles.add(args[-1])
        elif prog == "dropuser":
            self.roles.discard(args[-1])
        elif prog == "dpkg-query":
            pattern = args[-1]
            if "${Package}" in args[1]:
                matches = sorted(p for p in self.packages if fnmatch.fnmatch(p, pattern))
                rc = 0 if matches else 1
                out = "\n".join(f"{p} install ok installed" for p in matches)
            elif pattern in self.packages:
                out = "install ok installed"
            else:
                rc = 1
        elif prog == "apt-get":
            if args[0] == "--simulate":
                out = f"{self.upgradable} upgraded, 0 newly installed, {self.removable} to remove and 0 not upgraded."
            elif args[0] == "install":
                self.packages.update(a for a in args[2:])
            elif args[0] == "upgrade":
                self.upgradable = 0
            elif args[0] == "autoremove":
                self.removable = 0
            elif args[0] == "--purge":
                self.packages = {p for p in self.packages if not fnmatch.fnmatch(p, args[-1])}
        elif prog == "systemctl":
            verb, unit = args[0], args[-1]
            if verb == "is-active":
                rc = 0 if unit in self.active else 3
            elif verb == "is-enabled":
                rc = 0 if unit in self.enabled else 1
            elif verb == "start":
                self.active.add(unit)
            elif verb == "enable":
                self.enabled.add(unit)
                if "--now" in args:
                    self.active.add(unit)
            elif verb == "stop":
                self.active.discard(unit)
            elif verb == "disable":
                self.enabled.discard(unit)
        elif prog == "git" and args[0] == "clone":
            (Path(args[-1]) / ".git").mkdir(parents=True)
        elif prog == "python3" and args[:2] == ["-m", "venv"]:
            (Path(args[2]) / "bin").mkdir(parents=True, exist_ok=True)
            (Path(args[2]) / "bin" / "python3").write_text("")
        elif prog == "mkdir":
            Path(args[-1]).mkdir(parents=True, exist_ok=True)
        elif prog == "lsb_release":
            out = self.distro if args[0] == "-is" else self.release
        elif prog == "hostname":
            out = "10.0.0.5 172.17.0.1"
        return CommandResult(cmd=cmd, returncode=rc, stdout=out, stderr=err)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_host(temp_dir):
    """A clean fake host rooted in a temporary directory"""
    return FakeHost(temp_dir)


@pytest.fixture
def settings(temp_dir):
    """Settings with every file location inside the temporary directory"""
    return Settings(
        domain="erp.example.com",
        account="svcuser",
        install_dir=temp_dir / "opt" / "svcuser",
        etc_dir=temp_dir / "etc",
        var_dir=temp_dir / "var",
        log_file=temp_dir / "erpstrap.log",
    )


@pytest.fixture
def ctx(settings, fake_host):
    """Step context for a standard host"""
    return StepContext(settings=settings, host=fake_host, label=EnvironmentLabel.STANDARD)
