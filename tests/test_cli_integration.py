"""CLI integration tests."""

import json
import logging

import pytest
from click.testing import CliRunner

from htn_planner.cli import main


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    package = logging.getLogger("htn_planner")
    handlers, level, package_level = root.handlers[:], root.level, package.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    package.setLevel(package_level)


def _write_state(tmp_path, state):
    path = tmp_path / "state.json"
    path.write_text(json.dumps(state))
    return str(path)


class TestCLIBasicOperation:
    """Tests for basic CLI functionality."""

    def test_cli_plans_default_domain(self):
        """Default domain with empty state plans one charge step."""
        runner = CliRunner()

        result = runner.invoke(main, [])

        assert result.exit_code == 0, f"CLI failed: {result.output}"
        output = json.loads(result.output)
        assert output["success"] is True
        assert output["plan"] == [{"workflow": "Charger", "params": {}}]
        assert output["mtr"] == [0]
        assert output["world_state"]["battery_level"] == 10
        assert output["world_state"]["background_tasks"] == []

    def test_cli_reads_state_file(self, tmp_path):
        runner = CliRunner()
        state = _write_state(tmp_path, {"battery_level": 20})

        result = runner.invoke(main, ["--domain", "htn_planner.demo:patrol_domain", "--state", state])

        assert result.exit_code == 0, f"CLI failed: {result.output}"
        output = json.loads(result.output)
        assert [step["workflow"] for step in output["plan"]] == ["Charger", "Charger", "Charger", "Patrol"]
        assert output["plan"][-1]["params"] == {"route": "perimeter"}
        assert output["stats"]["tasks_processed"] == 8


class TestCLIOptions:
    """Tests for CLI option handling."""

    def test_cli_debug_includes_tree(self, tmp_path):
        """--debug adds the diagnostic tree to the output."""
        runner = CliRunner()
        out = tmp_path / "plan.json"

        result = runner.invoke(main, ["--debug", "--output", str(out)])

        assert result.exit_code == 0
        output = json.loads(out.read_text())
        assert output["tree"]["kind"] == "root"
        assert output["tree"]["children"][0]["task"] == "root"

    def test_cli_mtr_divergence(self, tmp_path):
        runner = CliRunner()
        state = _write_state(tmp_path, {"battery_level": 60})

        result = runner.invoke(
            main,
            ["-d", "htn_planner.demo:patrol_domain", "-s", state, "--mtr", "0,1"],
        )

        assert result.exit_code == 0
        output = json.loads(result.output)
        assert output["mtr"] == [1]
        assert output["stats"]["mtr_diverged_at"] == 0

    def test_cli_config_file(self, tmp_path):
        """Budgets from --config apply to the run."""
        runner = CliRunner()
        config = tmp_path / "htn.yaml"
        config.write_text("planner:\n  max_recursion: 1\n")

        result = runner.invoke(main, ["--config", str(config)])

        assert result.exit_code == 1
        assert "recursion_limit_exceeded" in result.output

    def test_cli_verbose(self):
        runner = CliRunner()

        result = runner.invoke(main, ["--verbose"])

        assert result.exit_code == 0


class TestCLIErrors:
    """Tests for CLI failure reporting."""

    def test_cli_planning_failure(self, tmp_path):
        """A failed plan exits 1 and names the failure kind."""
        runner = CliRunner()
        state = _write_state(tmp_path, {"battery_level": 100})

        result = runner.invoke(main, ["--state", state])

        assert result.exit_code == 1
        assert "precondition_not_met" in result.output

    def test_cli_foreign_background_entries(self, tmp_path):
        """Entries under background_tasks that are not handles print as strings."""
        runner = CliRunner()
        state = _write_state(tmp_path, {"battery_level": 90, "background_tasks": ["x"]})

        result = runner.invoke(main, ["--state", state])

        assert result.exit_code == 0, f"CLI failed: {result.output}"
        output = json.loads(result.output)
        assert output["world_state"]["background_tasks"] == ["x"]

    def test_cli_bad_domain(self):
        runner = CliRunner()

        result = runner.invoke(main, ["--domain", "htn_planner.demo:nothing_here"])

        assert result.exit_code == 2
        assert "has no attribute" in result.output

    def test_cli_unknown_root(self):
        runner = CliRunner()

        result = runner.invoke(main, ["--root", "missing"])

        assert result.exit_code == 1
        assert "Root task 'missing' not found in domain" in result.output

    def test_cli_invalid_state(self, tmp_path):
        runner = CliRunner()
        path = tmp_path / "state.json"
        path.write_text("[1, 2]")

        result = runner.invoke(main, ["--state", str(path)])

        assert result.exit_code == 1
        assert "World state must be a JSON object" in result.output

    def test_cli_invalid_mtr(self):
        runner = CliRunner()

        result = runner.invoke(main, ["--mtr", "0,x"])

        assert result.exit_code == 2
