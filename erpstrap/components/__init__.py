from .accounts import EnsureSystemAccountStep, RemoveSystemAccountStep
from .apt import AutoremoveStep, EnsurePackagesStep, PurgePackagesStep, SystemUpgradeStep
from .files import EnsureDirectoryStep, RemovePathStep, ServerConfigStep, WriteFileStep
from .nginx import EnableSiteStep
from .odoo import SourceCheckoutStep, VirtualenvStep
from .postgres import DropDatabaseRoleStep, EnsureDatabaseRoleStep, PostgresVersionStep
from .systemd import EnableServiceStep, EnsureServiceRunningStep, StopServiceStep
