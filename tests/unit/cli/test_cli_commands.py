"""Tests for the hostops CLI"""

import json

import pytest
from click.testing import CliRunner

from hostops import __version__
from hostops.cli.main import cli
from hostops.core.capabilities import create_registry
from hostops.core.capabilities.executors.platform import Platform
from hostops.i18n import set_language


@pytest.fixture
def scripted_registry(monkeypatch, linux_host):
    """Point every CLI command at the scripted Linux host"""
    def factory():
        return create_registry(linux_host, platform=Platform.LINUX)

    monkeypatch.setattr("hostops.cli.call.create_registry", factory)
    monkeypatch.setattr("hostops.cli.caps.create_registry", factory)
    monkeypatch.setattr("hostops.cli.diagnose.create_registry", factory)
    yield linux_host
    set_language("en")


class TestCall:
    """Test `hostops call`"""

    def setup_method(self):
        self.runner = CliRunner()

    def test_success_prints_envelope(self, scripted_registry):
        scripted_registry.script("cat", stdout="box\n", args=["/etc/hostname"])

        result = self.runner.invoke(cli, ["call", "fs-cat", "--args", '{"path": "/etc/hostname"}'], obj={})

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "name": "fs-cat",
            "result": {"path": "/etc/hostname", "content": "box\n", "success": True},
            "error": None,
        }

    def test_soft_error_exits_one(self, scripted_registry):
        result = self.runner.invoke(cli, ["call", "net-ping", "--args", '{"host": "invalid..host"}'], obj={})

        assert result.exit_code == 1
        envelope = json.loads(result.output)
        assert envelope["result"] is None
        assert "Invalid host format" in envelope["error"]
        assert scripted_registry.calls == []

    def test_unknown_capability_exits_two(self, scripted_registry):
        result = self.runner.invoke(cli, ["call", "fs-rm"], obj={})
        assert result.exit_code == 2

    def test_bad_json_is_usage_error(self, scripted_registry):
        result = self.runner.invoke(cli, ["call", "fs-ls", "--args", "{nope"], obj={})
        assert result.exit_code == 2
        assert "--args" in result.output


class TestCaps:
    """Test `hostops caps`"""

    def test_lists_selected_capabilities(self, scripted_registry):
        result = CliRunner().invoke(cli, ["caps", "fs-ls", "git-push"], obj={})

        assert result.exit_code == 0
        assert "fs-ls" in result.output
        assert "git-push" in result.output
        assert "sys-cpu" not in result.output


class TestDiagnose:
    """Test `hostops diagnose`"""

    def test_quick_json(self, scripted_registry):
        result = CliRunner().invoke(cli, ["diagnose", "--depth", "quick", "--json"], obj={})

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["execution_summary"]["depth"] == "quick"
        assert data["performance_metrics"]["memory_usage_percent"] == 50.0

    def test_quick_text_in_chinese(self, scripted_registry):
        result = CliRunner().invoke(cli, ["--lang", "zh_CN", "diagnose", "--depth", "quick"], obj={})

        assert result.exit_code == 0
        assert "系统诊断" in result.output

    def test_rejects_unknown_depth(self, scripted_registry):
        result = CliRunner().invoke(cli, ["diagnose", "--depth", "deep"], obj={})
        assert result.exit_code == 2


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
