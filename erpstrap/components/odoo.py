from __future__ import annotations

from ..step import Step, StepContext


class SourceCheckoutStep(Step):
    """Shallow clone of the server sources for the configured series."""

    description = "Cloning Odoo sources"

    def check(self, ctx: StepContext) -> bool:
        return ctx.host.exists(ctx.settings.source_dir / ".git")

    def apply(self, ctx: StepContext) -> None:
        s = ctx.settings
        ctx.host.run(
            ["git", "clone", s.repo_url, "--depth", "1", "--branch", s.series, "--single-branch", str(s.source_dir)],
            user=s.account,
            check=True,
        )


class VirtualenvStep(Step):
    """Virtualenv with the server requirements.

    The custom addons directory is created last and doubles as the marker
    that the whole step went through.
    """

    description = "Creating virtualenv and installing requirements"

    def check(self, ctx: StepContext) -> bool:
        s = ctx.settings
        return ctx.host.exists(s.venv_dir / "bin" / "python3") and ctx.host.is_dir(s.custom_addons_dir)

    def apply(self, ctx: StepContext) -> None:
        s = ctx.settings
        host = ctx.host
        pip = str(s.venv_dir / "bin" / "pip3")
        host.run(["python3", "-m", "venv", str(s.venv_dir)], user=s.account, check=True)
        host.run([pip, "install", "--upgrade", "wheel", "setuptools", "pip"], user=s.account, check=True)
        host.run([pip, "install", "-r", str(s.source_dir / "requirements.txt")], user=s.account, check=True)
        host.run(["mkdir", "-p", str(s.custom_addons_dir)], user=s.account, check=True)
