"""Unit tests for the CLI — Typer command registration and basic behavior.

Exercises inspect, plan and deploy via typer.testing.CliRunner against
temporary build directories.
"""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from ssrforge.cli.app import app

runner = CliRunner()


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("inspect", "plan", "deploy"):
            assert command in result.output

    def test_command_help(self):
        for command in ("inspect", "plan", "deploy"):
            result = runner.invoke(app, [command, "--help"])
            assert result.exit_code == 0, command


# ---------------------------------------------------------------------------
# Test: inspect
# ---------------------------------------------------------------------------


class TestInspect:
    def test_lists_static_routes(self, vite_site: Path):
        result = runner.invoke(app, ["inspect", str(vite_site)])
        assert result.exit_code == 0, result.output
        assert "favicon.ico" in result.output
        assert "assets/*" in result.output
        assert "build/client" in result.output

    def test_classic_layout(self, classic_site: Path):
        result = runner.invoke(app, ["inspect", str(classic_site), "--layout", "remix-classic"])
        assert result.exit_code == 0, result.output
        assert "build/*" in result.output

    def test_missing_build_output(self, tmp_path: Path):
        result = runner.invoke(app, ["inspect", str(tmp_path)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_unknown_layout(self, vite_site: Path):
        result = runner.invoke(app, ["inspect", str(vite_site), "--layout", "gatsby"])
        assert result.exit_code == 1

    def test_dev_mode_placeholder(self, tmp_path: Path):
        result = runner.invoke(app, ["inspect", str(tmp_path), "--dev"])
        assert result.exit_code == 0, result.output
        assert "Placeholder" in result.output


# ---------------------------------------------------------------------------
# Test: plan
# ---------------------------------------------------------------------------


class TestPlan:
    def test_renders_plan(self, vite_site: Path):
        result = runner.invoke(app, ["plan", str(vite_site)])
        assert result.exit_code == 0, result.output
        assert "Deployment Plan" in result.output
        assert "staticCfFunction" in result.output

    def test_edge_flag(self, vite_site: Path):
        result = runner.invoke(app, ["plan", str(vite_site), "--edge"])
        assert result.exit_code == 0, result.output
        assert "edge" in result.output

    def test_json_output(self, vite_site: Path):
        result = runner.invoke(app, ["plan", str(vite_site), "--json", "--regional"])
        assert result.exit_code == 0, result.output
        assert '"edge_mode": false' in result.output
        assert '"behaviors"' in result.output

    def test_missing_build_output(self, tmp_path: Path):
        result = runner.invoke(app, ["plan", str(tmp_path)])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# Test: deploy
# ---------------------------------------------------------------------------


class TestDeploy:
    def test_dry_run_deploy(self, vite_site: Path):
        result = runner.invoke(app, ["deploy", str(vite_site), "--no-dev"])
        assert result.exit_code == 0, result.output
        assert "deployed" in result.output
        assert (vite_site / "build" / "server.mjs").is_file()

    def test_custom_domain(self, vite_site: Path):
        result = runner.invoke(app, ["deploy", str(vite_site), "--domain", "my-app.com"])
        assert result.exit_code == 0, result.output
        assert "https://my-app.com" in result.output

    def test_dev_mode(self, tmp_path: Path):
        result = runner.invoke(app, ["deploy", str(tmp_path), "--dev"])
        assert result.exit_code == 0, result.output
        assert "placeholder" in result.output
        assert not (tmp_path / "build").exists()

    def test_json_uses_metadata_alias(self, vite_site: Path):
        result = runner.invoke(app, ["deploy", str(vite_site), "--json"])
        assert result.exit_code == 0, result.output
        assert '"_metadata"' in result.output

    def test_missing_build_output(self, tmp_path: Path):
        result = runner.invoke(app, ["deploy", str(tmp_path), "--no-dev"])
        assert result.exit_code == 1
        assert "Deploy failed" in result.output
        assert "BLOCKED" in result.output
