import json
import os
import subprocess
import sys

import pytest
from click.testing import CliRunner

from stackplan.cli import cli
from stackplan.config import ACCOUNT_ENV_VAR

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


def test_module_execution():
    """Test that 'python -m stackplan' works."""
    result = subprocess.run(
        [sys.executable, "-m", "stackplan", "--help"],
        capture_output=True,
        text=True
    )
    assert result.returncode == 0
    assert "stackplan" in result.stdout


class TestCompileCommand:
    def setup_method(self):
        self.runner = CliRunner()

    def test_text_plan(self):
        result = self.runner.invoke(cli, ["compile", os.path.join(FIXTURES, "website.yaml")])
        assert result.exit_code == 0
        assert "1. Zone (AWS::Route53::HostedZone)" in result.output
        assert "5. ApexRecord" in result.output
        assert "fingerprint:" in result.output

    def test_json_format(self):
        result = self.runner.invoke(
            cli, ["compile", os.path.join(FIXTURES, "dns_and_cost.json"), "--format", "json"]
        )
        assert result.exit_code == 0
        start = result.output.index("{")
        report = json.loads(result.output[start:])
        assert [s["name"] for s in report["steps"]] == ["Zone", "NSRecordSet", "BudgetForAlerting"]

    def test_cycle_exits_1(self):
        result = self.runner.invoke(cli, ["compile", os.path.join(FIXTURES, "cyclic.yaml")])
        assert result.exit_code == 1
        assert "Cyclic dependency" in result.output

    def test_unresolved_exits_1(self):
        result = self.runner.invoke(cli, ["compile", os.path.join(FIXTURES, "unresolved.yaml")])
        assert result.exit_code == 1
        assert "MissingZone" in result.output

    def test_load_error_exits_2(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("Resources:\n  X:\n    Type: AWS::Nope::Thing\n")
        result = self.runner.invoke(cli, ["compile", str(bad)])
        assert result.exit_code == 2
        assert "Load error" in result.output

    def test_markdown_written_with_lf(self, tmp_path):
        out = tmp_path / "plan.md"
        result = self.runner.invoke(
            cli,
            ["compile", os.path.join(FIXTURES, "website.yaml"), "--format", "markdown", "-o", str(out)],
        )
        assert result.exit_code == 0
        content = out.read_bytes()
        assert b"\r\n" not in content
        assert b"```mermaid" in content
        content.decode("utf-8")

    def test_unwritable_output_exits_2(self, tmp_path):
        out = tmp_path / "missing" / "plan.md"
        result = self.runner.invoke(
            cli,
            ["compile", os.path.join(FIXTURES, "website.yaml"), "--format", "markdown", "-o", str(out)],
        )
        assert result.exit_code == 2
        assert "Write error" in result.output
        assert not out.exists()


class TestSynthCommand:
    def setup_method(self):
        self.runner = CliRunner()

    @pytest.fixture(autouse=True)
    def _no_account_env(self, monkeypatch):
        monkeypatch.delenv(ACCOUNT_ENV_VAR, raising=False)

    def test_website(self):
        result = self.runner.invoke(
            cli, ["synth", "website", "--config", os.path.join(FIXTURES, "site.yaml")]
        )
        assert result.exit_code == 0
        assert "1. HostedZone" in result.output
        assert "wwwARecord" in result.output
        assert "target: account=123456789012 region=us-east-1" in result.output

    def test_json_carries_target(self, monkeypatch):
        monkeypatch.setenv(ACCOUNT_ENV_VAR, "999999999999")
        result = self.runner.invoke(
            cli, ["synth", "dns", "--config", os.path.join(FIXTURES, "site.yaml"), "--format", "json"]
        )
        assert result.exit_code == 0
        report = json.loads(result.output[result.output.index("{"):])
        assert report["meta"]["target"] == {"account": "999999999999", "region": "us-east-1"}

    def test_cost_html(self, tmp_path):
        out = tmp_path / "plan.html"
        result = self.runner.invoke(
            cli,
            ["synth", "cost", "-c", os.path.join(FIXTURES, "site.yaml"), "--format", "html", "-o", str(out)],
        )
        assert result.exit_code == 0
        assert "BudgetForAlerting" in out.read_text(encoding="utf-8")

    def test_missing_config_exits_2(self, tmp_path):
        result = self.runner.invoke(cli, ["synth", "dns", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2

    def test_unknown_blueprint(self):
        result = self.runner.invoke(cli, ["synth", "kubernetes"])
        assert result.exit_code != 0
