"""Configuration management for erpstrap."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml


DEFAULT_CONFIG_PATH = Path("/etc/erpstrap.yaml")
CONFIG_ENV_VAR = "ERPSTRAP_CONFIG"

SUPPORTED_RELEASES = ("20.04", "22.04", "24.04")

BASE_PACKAGES = (
    "git", "wget", "build-essential", "python3-dev", "python3-pip", "python3-venv",
    "libxml2-dev", "libxslt1-dev", "zlib1g-dev", "libsasl2-dev",
    "libldap2-dev", "libssl-dev", "libffi-dev", "libmysqlclient-dev",
    "libjpeg-dev", "libpq-dev", "libjpeg8-dev", "liblcms2-dev", "libblas-dev", "libatlas-base-dev",
    "node-less", "libtiff5-dev", "libopenjp2-7-dev", "libcap-dev",
)


class Config:
    """YAML-backed store of persistent defaults.

    Values here sit between environment variables (which win) and the
    built-in defaults of ``Settings``.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._data: dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from file."""
        if self.config_path.exists():
            try:
                with open(self.config_path) as f:
                    self._data = yaml.safe_load(f) or {}
            except Exception as e:
                raise RuntimeError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(self._data, dict):
                raise RuntimeError(f"Config file {self.config_path} must contain a mapping")
        else:
            self._data = {}

    def save(self) -> None:
        """Save configuration to the config file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                yaml.dump(self._data, f, default_flow_style=False)
        except Exception as e:
            raise RuntimeError(f"Failed to save config to {self.config_path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def items(self) -> Dict[str, Any]:
        return dict(self._data)

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ
        path = env.get(CONFIG_ENV_VAR)
        return cls(config_path=Path(path) if path else None)


# key in YAML -> environment variable that overrides it
ENV_KEYS = {
    "domain": "DOMAIN",
    "account": "ODOO_USER",
    "install_dir": "ODOO_DIR",
    "series": "ODOO_VERSION",
    "admin_password": "ODOO_ADMIN_PASSWORD",
    "log_file": "ERPSTRAP_LOG_FILE",
}


@dataclass(frozen=True)
class Settings:
    """Everything a provisioning run needs, resolved once up front."""

    domain: str = "localhost"
    account: str = "odoo17"
    install_dir: Path = Path("/opt/odoo17")
    series: str = "17.0"
    admin_password: Optional[str] = None
    log_file: Path = Path("/var/log/erpstrap.log")
    repo_url: str = "https://www.github.com/odoo/odoo"
    http_port: int = 8069
    longpolling_port: int = 8072
    etc_dir: Path = Path("/etc")
    var_dir: Path = Path("/var")
    min_postgres_major: int = 12
    supported_releases: Tuple[str, ...] = SUPPORTED_RELEASES
    base_packages: Tuple[str, ...] = BASE_PACKAGES
    proxy_packages: Tuple[str, ...] = ("nginx", "certbot", "python3-certbot-nginx")

    @property
    def major(self) -> str:
        return self.series.split(".", 1)[0]

    @property
    def service_name(self) -> str:
        return f"odoo{self.major}"

    @property
    def source_dir(self) -> Path:
        return self.install_dir / self.service_name

    @property
    def venv_dir(self) -> Path:
        return self.install_dir / f"{self.service_name}-venv"

    @property
    def custom_addons_dir(self) -> Path:
        return self.source_dir / "custom-addons"

    @property
    def config_path(self) -> Path:
        return self.etc_dir / f"{self.service_name}.conf"

    @property
    def service_path(self) -> Path:
        return self.etc_dir / "systemd" / "system" / f"{self.service_name}.service"

    @property
    def site_available_path(self) -> Path:
        return self.etc_dir / "nginx" / "sites-available" / "odoo"

    @property
    def site_enabled_path(self) -> Path:
        return self.etc_dir / "nginx" / "sites-enabled" / "odoo"

    @property
    def default_site_path(self) -> Path:
        return self.etc_dir / "nginx" / "sites-enabled" / "default"

    @property
    def server_log_dir(self) -> Path:
        return self.var_dir / "log" / self.service_name

    @property
    def launch_command(self) -> str:
        return f"{self.venv_dir}/bin/python3 {self.source_dir}/odoo-bin -c {self.config_path}"

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None, config: Optional[Config] = None) -> "Settings":
        """Resolve settings: environment variable, then YAML config, then default."""
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for key, var in ENV_KEYS.items():
            raw = env.get(var)
            if raw is None or raw == "":
                raw = config.get(key) if config else None
            if raw is not None and raw != "":
                values[key] = raw

        if config:
            for key in ("repo_url", "http_port", "longpolling_port", "min_postgres_major"):
                if config.get(key) is not None:
                    values[key] = config.get(key)
            extra = config.get("extra_packages")
            if extra:
                values["base_packages"] = BASE_PACKAGES + tuple(extra)

        if "account" not in values and "series" in values:
            values["account"] = f"odoo{str(values['series']).split('.', 1)[0]}"
        if "install_dir" not in values:
            values["install_dir"] = f"/opt/{values.get('account', cls.account)}"

        for key in ("install_dir", "log_file"):
            if key in values:
                values[key] = Path(values[key])
        for key in ("http_port", "longpolling_port", "min_postgres_major"):
            if key in values:
                values[key] = int(values[key])
        if "series" in values:
            values["series"] = str(values["series"])
        return cls(**values)
