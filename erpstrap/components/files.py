from __future__ import annotations

import base64
import configparser
import logging
import secrets
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..host import Host
from ..step import Step, StepContext
from ..templates import render_server_config

logger = logging.getLogger(__name__)


def _chown(host: Host, owner: str, path: Path | str, recursive: bool = False) -> None:
    cmd = ["chown"] + (["-R"] if recursive else []) + [f"{owner}:{owner}", str(path)]
    host.run(cmd, check=True)


class EnsureDirectoryStep(Step):
    def __init__(self, name: str, path: Path | str, owner: Optional[str] = None, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.path = Path(path)
        self.owner = owner
        self.description = f"Creating directory {self.path}"

    def check(self, ctx: StepContext) -> bool:
        return ctx.host.is_dir(self.path)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.run(["mkdir", "-p", str(self.path)], check=True)
        if self.owner:
            _chown(ctx.host, self.owner, self.path)


class WriteFileStep(Step):
    """Write a rendered file, replacing (and backing up) any differing version.

    The step is satisfied when the file already holds exactly the rendered
    content, so rendering must be deterministic for a given host state.

    Config:
    - owner: account that should own the file (chowned as owner:owner).
    - mode: file permission bits.
    - after_write: commands run once the file has been replaced.
    """

    def __init__(
        self,
        name: str,
        path: Path | str,
        render: Callable[[StepContext], str],
        owner: Optional[str] = None,
        mode: Optional[int] = None,
        after_write: Optional[List[List[str]]] = None,
        skip_in: Optional[Iterable] = None,
    ) -> None:
        super().__init__(name, skip_in)
        self.path = Path(path)
        self.render = render
        self.owner = owner
        self.mode = mode
        self.after_write = after_write or []
        self.description = f"Writing {self.path}"
        self._content: Optional[str] = None

    def content(self, ctx: StepContext) -> str:
        if self._content is None:
            self._content = self.render(ctx)
        return self._content

    def check(self, ctx: StepContext) -> bool:
        if not ctx.host.exists(self.path):
            return False
        return ctx.host.read_text(self.path) == self.content(ctx)

    def apply(self, ctx: StepContext) -> None:
        host = ctx.host
        if host.exists(self.path):
            backup = host.backup(self.path)
            logger.warning(f"{self.path} already exists with different content; previous version saved to {backup}")
        host.write_text(self.path, self.content(ctx), mode=self.mode)
        if self.owner:
            _chown(host, self.owner, self.path)
        for cmd in self.after_write:
            host.run(cmd, check=True)


def generate_admin_password() -> str:
    return base64.b64encode(secrets.token_bytes(12)).decode("ascii")


def existing_admin_password(host: Host, path: Path) -> Optional[str]:
    if not host.exists(path):
        return None
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(host.read_text(path))
    except configparser.Error as e:
        logger.warning(f"Ignoring unparsable {path}: {e}")
        return None
    value = parser.get("options", "admin_passwd", fallback=None)
    return value or None


class ServerConfigStep(WriteFileStep):
    """Server configuration file.

    The master password comes from settings when given, otherwise the one
    already on disk is kept, otherwise a fresh random one is generated.
    """

    def __init__(self, name: str, path: Path | str, **kwargs) -> None:
        super().__init__(name, path, self._render, **kwargs)

    def _render(self, ctx: StepContext) -> str:
        password = (
            ctx.settings.admin_password
            or existing_admin_password(ctx.host, self.path)
            or generate_admin_password()
        )
        return render_server_config(ctx.settings, password)


class RemovePathStep(Step):
    def __init__(self, name: str, path: Path | str, after_remove: Optional[List[List[str]]] = None, skip_in: Optional[Iterable] = None) -> None:
        super().__init__(name, skip_in)
        self.path = Path(path)
        self.after_remove = after_remove or []
        self.description = f"Removing {self.path}"

    def check(self, ctx: StepContext) -> bool:
        return not ctx.host.exists(self.path)

    def apply(self, ctx: StepContext) -> None:
        ctx.host.remove(self.path)
        for cmd in self.after_remove:
            ctx.host.run(cmd, check=True)
