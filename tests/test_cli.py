"""Tests for the command line entry points"""
import pytest
import yaml
from typer.testing import CliRunner

from erpstrap import cli
from erpstrap.environment import EnvironmentLabel


@pytest.fixture
def fixed_settings(monkeypatch, settings):
    """Make the CLI resolve to the temp-dir settings"""
    monkeypatch.setattr(cli, "_load_settings", lambda environ=None: settings)
    return settings


class TestInstallCommand:
    def test_install_on_clean_host(self, fixed_settings, fake_host, capsys):
        code = cli.cmd_install(host=fake_host, environ={}, label=EnvironmentLabel.STANDARD)

        assert code == 0
        assert "svcuser" in fake_host.users
        assert fixed_settings.config_path.exists()
        out = capsys.readouterr().out
        assert "certbot" in out
        assert "10.0.0.5" in out

    def test_install_logs_to_file(self, fixed_settings, fake_host):
        cli.cmd_install(host=fake_host, environ={}, label=EnvironmentLabel.STANDARD)
        log = fixed_settings.log_file.read_text()
        assert "system-account" in log

    def test_install_failure_returns_one(self, fixed_settings, fake_host):
        fake_host.fail("adduser", stderr="adduser: cannot lock /etc/passwd")
        assert cli.cmd_install(host=fake_host, environ={}, label=EnvironmentLabel.STANDARD) == 1
        assert fake_host.ran("createuser") == 0

    def test_install_requires_root(self, fixed_settings, fake_host):
        fake_host.root_user = False
        assert cli.cmd_install(host=fake_host, environ={}, label=EnvironmentLabel.STANDARD) == 1
        assert fake_host.ran("apt-get") == 0

    def test_install_rejects_unsupported_release(self, fixed_settings, fake_host):
        fake_host.release = "18.04"
        assert cli.cmd_install(host=fake_host, environ={}, label=EnvironmentLabel.STANDARD) == 1
        assert fake_host.ran("apt-get") == 0

    def test_ide_install_prints_launch_command(self, fixed_settings, fake_host, capsys):
        code = cli.cmd_install(host=fake_host, environ={}, label=EnvironmentLabel.IDE)
        assert code == 0
        assert "odoo-bin" in capsys.readouterr().out


class TestUninstallCommand:
    def test_uninstall_without_prompts(self, fixed_settings, fake_host):
        cli.cmd_install(host=fake_host, environ={}, label=EnvironmentLabel.STANDARD)

        code = cli.cmd_uninstall(host=fake_host, environ={}, purge_database=False, reboot=False)

        assert code == 0
        assert fake_host.users == set()
        assert fake_host.ran("systemctl", "reboot") == 0

    def test_uninstall_reboots_when_asked(self, fixed_settings, fake_host):
        assert cli.cmd_uninstall(host=fake_host, environ={}, purge_database=False, reboot=True) == 0
        assert fake_host.ran("systemctl", "reboot") == 1


class TestPlanAndDetect:
    def test_plan_lists_steps(self, fixed_settings, capsys):
        assert cli.cmd_plan(environ={}, label=EnvironmentLabel.STANDARD) == 0
        out = capsys.readouterr().out
        assert "system-upgrade" in out
        assert "nginx-site" in out

    def test_plan_marks_inapplicable_steps(self, fixed_settings, capsys):
        assert cli.cmd_plan(environ={}, label=EnvironmentLabel.IDE) == 0
        assert "not applicable" in capsys.readouterr().out

    def test_detect_reports_ide(self, capsys):
        assert cli.cmd_detect({"PYCHARM_HOSTED": "1"}) == 0
        out = capsys.readouterr().out
        assert "PYCHARM_HOSTED" in out


class TestConfigCommand:
    """Test the config command through the Typer app"""

    def test_set_then_get(self, temp_dir):
        path = temp_dir / "erpstrap.yaml"
        runner = CliRunner(env={"ERPSTRAP_CONFIG": str(path)})

        result = runner.invoke(cli.app, ["config", "domain", "erp.example.com"])
        assert result.exit_code == 0
        assert yaml.safe_load(path.read_text()) == {"domain": "erp.example.com"}

        result = runner.invoke(cli.app, ["config", "domain"])
        assert result.exit_code == 0
        assert "domain = erp.example.com" in result.output

    def test_get_unset_key(self, temp_dir):
        runner = CliRunner(env={"ERPSTRAP_CONFIG": str(temp_dir / "none.yaml")})
        result = runner.invoke(cli.app, ["config", "account"])
        assert "(not set)" in result.output


class TestMain:
    def test_main_returns_command_exit_code(self, temp_dir, monkeypatch):
        monkeypatch.setenv("ERPSTRAP_CONFIG", str(temp_dir / "erpstrap.yaml"))
        assert cli.main(["config", "domain", "erp.example.com"]) == 0

    def test_main_unknown_command(self):
        assert cli.main(["frobnicate"]) != 0
