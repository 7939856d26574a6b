from __future__ import annotations

# Aggregator module for provisioning steps.
# Implementations live in the erpstrap.components package.

from .components import (
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


__all__ = [
    # packages
    "SystemUpgradeStep",
    "EnsurePackagesStep",
    "PurgePackagesStep",
    "AutoremoveStep",

    # accounts and database roles
    "EnsureSystemAccountStep",
    "RemoveSystemAccountStep",
    "PostgresVersionStep",
    "EnsureDatabaseRoleStep",
    "DropDatabaseRoleStep",

    # files
    "EnsureDirectoryStep",
    "WriteFileStep",
    "ServerConfigStep",
    "RemovePathStep",

    # application and services
    "SourceCheckoutStep",
    "VirtualenvStep",
    "EnsureServiceRunningStep",
    "EnableServiceStep",
    "StopServiceStep",
    "EnableSiteStep",
]
