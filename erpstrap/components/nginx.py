from __future__ import annotations

from ..step import Step, StepContext


class EnableSiteStep(Step):
    """Link the site into sites-enabled, drop the default site, restart Nginx."""

    description = "Enabling Nginx site"

    def check(self, ctx: StepContext) -> bool:
        s = ctx.settings
        return ctx.host.exists(s.site_enabled_path) and not ctx.host.exists(s.default_site_path)

    def apply(self, ctx: StepContext) -> None:
        s = ctx.settings
        host = ctx.host
        if not host.exists(s.site_enabled_path):
            host.symlink(s.site_available_path, s.site_enabled_path)
        host.remove(s.default_site_path)
        host.run(["nginx", "-t"], check=True)
        host.run(["systemctl", "restart", "nginx"], check=True)
