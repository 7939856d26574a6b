"""
Install and uninstall plans.

A plan is the ordered list of steps for one run. Order matters and is fixed
here; steps that make no sense on an IDE-hosted machine (service unit,
reverse proxy) carry ``skip_in`` so the sequencer leaves them out there.
"""
from __future__ import annotations

from typing import List

from .config import Settings
from .environment import EnvironmentLabel
from .step import Step, StepContext
from .steps import (
    AutoremoveStep,
    DropDatabaseRoleStep,
    EnableServiceStep,
    EnableSiteStep,
    EnsureDatabaseRoleStep,
    EnsureDirectoryStep,
    EnsurePackagesStep,
    EnsureServiceRunningStep,
    EnsureSystemAccountStep,
    PostgresVersionStep,
    PurgePackagesStep,
    RemovePathStep,
    RemoveSystemAccountStep,
    ServerConfigStep,
    SourceCheckoutStep,
    StopServiceStep,
    SystemUpgradeStep,
    VirtualenvStep,
    WriteFileStep,
)
from .templates import render_nginx_site, render_service_unit

NO_SERVICE = (EnvironmentLabel.IDE,)


def _service_unit(ctx: StepContext) -> str:
    return render_service_unit(ctx.settings)


def _nginx_site(ctx: StepContext) -> str:
    return render_nginx_site(ctx.settings)


def build_install_plan(settings: Settings) -> List[Step]:
    service = settings.service_name
    return [
        SystemUpgradeStep("system-upgrade"),
        EnsurePackagesStep("packages:base", settings.base_packages),
        EnsurePackagesStep("packages:postgresql", ["postgresql"]),
        EnsureServiceRunningStep("service-running:postgresql", "postgresql"),
        PostgresVersionStep("postgresql-version"),
        EnsureSystemAccountStep("system-account", settings.account, settings.install_dir),
        EnsureDatabaseRoleStep("database-role", settings.account),
        EnsurePackagesStep("packages:wkhtmltopdf", ["wkhtmltopdf"]),
        EnsureDirectoryStep("directory:server-log", settings.server_log_dir, owner=settings.account),
        SourceCheckoutStep("source-checkout"),
        VirtualenvStep("virtualenv"),
        ServerConfigStep(
            "server-config",
            settings.config_path,
            owner=settings.account,
            mode=0o640,
            after_write=[["systemctl", "try-restart", service]],
        ),
        WriteFileStep(
            "service-unit",
            settings.service_path,
            _service_unit,
            after_write=[["systemctl", "daemon-reload"], ["systemctl", "try-restart", service]],
            skip_in=NO_SERVICE,
        ),
        EnableServiceStep("service-enabled", service, skip_in=NO_SERVICE),
        EnsurePackagesStep("packages:proxy", settings.proxy_packages, skip_in=NO_SERVICE),
        WriteFileStep(
            "nginx-site",
            settings.site_available_path,
            _nginx_site,
            after_write=[["systemctl", "try-reload-or-restart", "nginx"]],
            skip_in=NO_SERVICE,
        ),
        EnableSiteStep("nginx-site-enabled", skip_in=NO_SERVICE),
    ]


def build_uninstall_plan(settings: Settings, purge_database: bool = False) -> List[Step]:
    service = settings.service_name
    steps: List[Step] = [
        StopServiceStep("service-stopped", service),
        RemovePathStep("remove:install-dir", settings.install_dir),
        RemovePathStep("remove:server-config", settings.config_path),
        RemovePathStep("remove:server-log", settings.server_log_dir),
        RemovePathStep("remove:nginx-site-link", settings.site_enabled_path),
        RemovePathStep("remove:nginx-site", settings.site_available_path),
    ]
    if not purge_database:
        # the role query needs a running cluster
        steps += [
            EnsureServiceRunningStep("service-running:postgresql", "postgresql", package="postgresql"),
            DropDatabaseRoleStep("database-role-dropped", settings.account),
        ]
    steps.append(RemoveSystemAccountStep("system-account-removed", settings.account))
    if purge_database:
        steps.append(PurgePackagesStep(
            "packages-purged:postgresql",
            "postgresql*",
            [
                settings.etc_dir / "postgresql",
                settings.etc_dir / "postgresql-common",
                settings.var_dir / "lib" / "postgresql",
            ],
        ))
    steps += [
        RemovePathStep(
            "remove:service-unit",
            settings.service_path,
            after_remove=[["systemctl", "daemon-reload"]],
        ),
        AutoremoveStep("autoremove"),
    ]
    return steps
