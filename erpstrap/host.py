from __future__ import annotations

import os
import shutil
import subprocess
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .errors import CommandError


@dataclass
class CommandResult:
    cmd: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class Host(ABC):
    """Capability interface over the machine being provisioned.

    Steps talk to the host only through ``run`` and the file helpers below,
    so they can be exercised against a fake host in tests.
    """

    @abstractmethod
    def run(
        self,
        cmd: List[str],
        user: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = False,
    ) -> CommandResult:
        """Run a command to completion and report its exit status and output."""

    def is_root(self) -> bool:
        return os.geteuid() == 0

    # File helpers
    def exists(self, path: Path | str) -> bool:
        return os.path.lexists(str(path))

    def is_dir(self, path: Path | str) -> bool:
        return Path(path).is_dir()

    def read_text(self, path: Path | str) -> str:
        return Path(path).read_text()

    def write_text(self, path: Path | str, content: str, mode: Optional[int] = None) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content)
        if mode is not None:
            p.chmod(mode)

    def backup(self, path: Path | str) -> Path:
        """Move ``path`` aside to ``<path>.bak``, replacing any older backup."""
        src = Path(path)
        dst = src.with_name(src.name + ".bak")
        os.replace(src, dst)
        return dst

    def symlink(self, target: Path | str, link: Path | str) -> None:
        p = Path(link)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.symlink_to(Path(target))

    def remove(self, path: Path | str) -> None:
        p = Path(path)
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        elif os.path.lexists(str(p)):
            p.unlink()


@dataclass
class SystemHost(Host):
    """Host backed by the local machine via subprocess.

    Config:
    - show: bool – echo command output while it runs (default False).
    - timeout: float – optional per-command timeout in seconds.
    """

    show: bool = False
    timeout: Optional[float] = None
    base_env: Dict[str, str] = field(default_factory=lambda: dict(os.environ))

    def run(
        self,
        cmd: List[str],
        user: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = False,
    ) -> CommandResult:
        full_cmd = list(cmd)
        if user:
            full_cmd = ["sudo", "-H", "-u", user, "--"] + full_cmd
        proc_env = dict(self.base_env)
        if env:
            proc_env.update(env)

        stdout_buf: list[str] = []
        stderr_buf: list[str] = []
        try:
            proc = subprocess.Popen(
                full_cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
                env=proc_env,
            )
        except OSError as e:
            result = CommandResult(cmd=full_cmd, returncode=127, stderr=str(e))
            if check:
                raise CommandError(result) from e
            return result

        def _read_stream(stream, buf):
            try:
                for line in iter(stream.readline, ""):
                    buf.append(line)
                    if self.show:
                        print(line, end="", flush=True)
            finally:
                stream.close()

        readers = [
            threading.Thread(target=_read_stream, args=(proc.stdout, stdout_buf), daemon=True),
            threading.Thread(target=_read_stream, args=(proc.stderr, stderr_buf), daemon=True),
        ]
        for t in readers:
            t.start()
        try:
            proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            stderr_buf.append(f"timed out after {self.timeout}s\n")
        for t in readers:
            t.join()

        result = CommandResult(
            cmd=full_cmd,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout="".join(stdout_buf).strip(),
            stderr="".join(stderr_buf).strip(),
        )
        if check and not result.ok:
            raise CommandError(result)
        return result
