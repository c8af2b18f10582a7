"""CLI tests for the run and show commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
import pytest
import yaml
from click.testing import CliRunner

from taskbalance.cli import _format_result, _load_factory, _setup_logging, cli
from taskbalance.core.factory import TaskFactory


def _write_spec(path: Path, drivers: list[dict], name: str = "sms") -> Path:
    path.write_text(yaml.dump({"name": name, "data": {"to": "555-0100"}, "drivers": drivers}))
    return path


class TestRunCommand:
    def test_failover_success(self, task_spec_file, tmp_path):
        out_path = tmp_path / "out" / "results.json"
        result = CliRunner().invoke(
            cli,
            ["run", "--spec", str(task_spec_file), "--out", str(out_path), "--config-dir", str(tmp_path)],
        )

        assert result.exit_code == 0, result.output
        assert "primary" in result.output
        assert "fallback" in result.output
        assert "1 of 1 run(s) succeeded" in result.output

        payload = json.loads(out_path.read_text(encoding="utf-8"))
        assert payload["task"] == "sms"
        assert payload["last_success"] is True
        assert [a["driver"] for a in payload["attempts"]] == ["primary", "fallback"]
        assert payload["attempts"][1]["result"] == {"to": "555-0100"}

    def test_all_fail_exits_nonzero(self, tmp_path):
        spec = _write_spec(tmp_path / "task.yaml", [
            {"name": "a", "work": "tests.drivers:fail"},
            {"name": "b", "weight": 0, "backup": True, "work": "tests.drivers:explode"},
        ])
        result = CliRunner().invoke(cli, ["run", "--spec", str(spec), "--config-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "RuntimeError: b exploded" in result.output
        assert "0 of 1 run(s) succeeded" in result.output

    def test_multiple_runs(self, task_spec_file, tmp_path):
        result = CliRunner().invoke(
            cli,
            ["run", "--spec", str(task_spec_file), "--runs", "3", "--config-dir", str(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert "Run 3/3" in result.output
        assert "3 of 3 run(s) succeeded, 6 attempt(s) logged." in result.output

    def test_explicit_driver(self, task_spec_file, tmp_path):
        result = CliRunner().invoke(
            cli,
            ["run", "--spec", str(task_spec_file), "--driver", "fallback", "--config-dir", str(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert "primary" not in result.output

    def test_unknown_driver(self, task_spec_file, tmp_path):
        result = CliRunner().invoke(
            cli,
            ["run", "--spec", str(task_spec_file), "--driver", "ghost", "--config-dir", str(tmp_path)],
        )
        assert result.exit_code != 0
        assert "ghost" in result.output

    def test_bad_work_reference(self, tmp_path):
        spec = _write_spec(tmp_path / "task.yaml", [{"name": "a", "work": "tests.drivers:missing"}])
        result = CliRunner().invoke(cli, ["run", "--spec", str(spec), "--config-dir", str(tmp_path)])
        assert result.exit_code != 0
        assert "does not resolve" in result.output

    def test_invalid_config(self, task_spec_file, tmp_path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.yaml").write_text("balancer: {random_seed: nope}\n")
        result = CliRunner().invoke(
            cli,
            ["run", "--spec", str(task_spec_file), "--config-dir", str(config_dir)],
        )
        assert result.exit_code != 0
        assert "Invalid configuration" in result.output

    def test_missing_spec_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["run", "--spec", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2


class TestShowCommand:
    def test_show(self, tmp_path):
        spec = _write_spec(tmp_path / "task.yaml", [
            {"name": "heavy", "weight": 3, "work": "tests.drivers:succeed"},
            {"name": "light", "weight": 1, "work": "tests.drivers:succeed"},
            {"name": "spare", "weight": 0, "backup": True},
            {"name": "spare2", "weight": 0, "backup": True},
        ])
        result = CliRunner().invoke(cli, ["show", "--spec", str(spec), "--config-dir", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "Task 'sms' (4 driver(s))" in result.output
        assert "p=0.750" in result.output
        assert "p=0.250" in result.output
        assert "Backup order: spare -> spare2" in result.output

    def test_show_without_backups(self, tmp_path):
        spec = _write_spec(tmp_path / "task.yaml", [{"name": "only"}])
        result = CliRunner().invoke(cli, ["show", "--spec", str(spec), "--config-dir", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "Backup order: (none)" in result.output


class TestHelpers:
    def test_format_result_truncates(self):
        text = _format_result("x" * 200, limit=20)
        assert len(text) == 20
        assert text.endswith("...")

    def test_format_result_short(self):
        assert _format_result({"a": 1}) == "{'a': 1}"

    def test_setup_logging_fallback(self, monkeypatch):
        """When load_config raises, _setup_logging should not propagate the error."""
        monkeypatch.setattr(
            "taskbalance.core.config.load_config",
            lambda *a, **kw: (_ for _ in ()).throw(RuntimeError("no config")),
        )
        _setup_logging(verbose=False)

    def test_load_factory(self, tmp_path):
        (tmp_path / "default.yaml").write_text(yaml.dump({"balancer": {"random_seed": 11}}))
        factory = _load_factory(tmp_path, None)
        assert isinstance(factory, TaskFactory)
        assert factory.config.balancer.random_seed == 11

    def test_load_factory_bad_config(self, tmp_path):
        (tmp_path / "default.yaml").write_text("balancer: [unclosed")
        with pytest.raises(click.ClickException, match="Invalid YAML"):
            _load_factory(tmp_path, None)

    def test_verbose_flag(self, task_spec_file, tmp_path, monkeypatch):
        levels = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: levels.append(kw["level"]))
        result = CliRunner().invoke(
            cli,
            ["--verbose", "show", "--spec", str(task_spec_file), "--config-dir", str(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert levels == [logging.DEBUG]
