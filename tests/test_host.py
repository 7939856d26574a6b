"""Tests for the local host implementation"""
from unittest import mock

import pytest

from erpstrap.errors import CommandError
from erpstrap.host import SystemHost


class TestSystemHostRun:
    """Test command execution through subprocess"""

    def test_captures_stdout(self):
        res = SystemHost().run(["echo", "hello"])
        assert res.ok
        assert res.stdout == "hello"

    def test_non_zero_exit_reported(self):
        res = SystemHost().run(["sh", "-c", "echo oops >&2; exit 3"])
        assert res.returncode == 3
        assert res.stderr == "oops"

    def test_check_raises_command_error(self):
        with pytest.raises(CommandError, match="oops"):
            SystemHost().run(["sh", "-c", "echo oops >&2; exit 1"], check=True)

    def test_missing_program(self):
        res = SystemHost().run(["erpstrap-no-such-program"])
        assert res.returncode == 127

    def test_extra_env_is_passed(self):
        res = SystemHost(base_env={"PATH": "/usr/bin:/bin"}).run(["sh", "-c", "echo $GREETING"], env={"GREETING": "hi"})
        assert res.stdout == "hi"

    def test_timeout_kills_command(self):
        res = SystemHost(timeout=0.2).run(["sleep", "5"])
        assert not res.ok
        assert "timed out" in res.stderr

    def test_user_prefixes_sudo(self):
        host = SystemHost()
        with mock.patch("erpstrap.host.subprocess.Popen", side_effect=OSError("no sudo")) as popen:
            res = host.run(["whoami"], user="svcuser")
        assert popen.call_args[0][0] == ["sudo", "-H", "-u", "svcuser", "--", "whoami"]
        assert res.returncode == 127


class TestFileHelpers:
    def test_write_text_creates_parents_and_mode(self, temp_dir):
        path = temp_dir / "a" / "b" / "file.conf"
        SystemHost().write_text(path, "x\n", mode=0o640)
        assert path.read_text() == "x\n"
        assert path.stat().st_mode & 0o777 == 0o640

    def test_backup_replaces_older_backup(self, temp_dir):
        host = SystemHost()
        path = temp_dir / "file.conf"
        (temp_dir / "file.conf.bak").write_text("oldest")
        path.write_text("current")

        backup = host.backup(path)

        assert backup.read_text() == "current"
        assert not path.exists()

    def test_symlink_and_remove(self, temp_dir):
        host = SystemHost()
        target = temp_dir / "site"
        target.write_text("server {}")
        link = temp_dir / "enabled" / "site"

        host.symlink(target, link)
        assert link.is_symlink()

        host.remove(link)
        assert not host.exists(link)
        assert target.exists()

    def test_remove_directory_tree(self, temp_dir):
        tree = temp_dir / "tree"
        (tree / "nested").mkdir(parents=True)
        (tree / "nested" / "f").write_text("")
        SystemHost().remove(tree)
        assert not tree.exists()

    def test_is_root_uses_effective_uid(self):
        with mock.patch("erpstrap.host.os.geteuid", return_value=0):
            assert SystemHost().is_root() is True
        with mock.patch("erpstrap.host.os.geteuid", return_value=1000):
            assert SystemHost().is_root() is False
