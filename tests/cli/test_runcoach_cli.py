"""Tests for the runcoach CLI commands."""

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from runcoach.cli import cli

RUN = "celeste/1a"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working dir and home; data lives in tmp_path/data."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    return tmp_path / "data"


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures the root logger onto the runner's stderr."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def invoke(runner: CliRunner, data_dir: Path, *args: str, **kwargs):
    return runner.invoke(cli, ["--data-dir", str(data_dir), *args], **kwargs)


def test_help(runner) -> None:
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Practice coach" in result.output
    for command in ("record", "durations", "advise", "clear", "runs", "init"):
        assert command in result.output


# =============================================================================
# durations
# =============================================================================


class TestDurations:
    def test_set_and_show_json(self, runner, data_dir) -> None:
        result = invoke(runner, data_dir, "durations", "set", RUN, "a-00=12.5", "a-01=8", "a-02=20")
        assert result.exit_code == 0, result.output
        assert "Stored 3 segments" in result.output

        result = invoke(runner, data_dir, "durations", "show", RUN, "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "run": RUN,
            "segments": {"a-00": 12.5, "a-01": 8.0, "a-02": 20.0},
        }

    def test_show_table(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "durations", "set", RUN, "a=10", "b=20")

        result = invoke(runner, data_dir, "durations", "show", RUN)

        assert result.exit_code == 0
        assert "20.00" in result.output

    def test_show_missing(self, runner, data_dir) -> None:
        result = invoke(runner, data_dir, "durations", "show", RUN)
        assert "No durations stored" in result.output

        result = invoke(runner, data_dir, "durations", "show", RUN, "--json")
        assert json.loads(result.stdout) is None

    def test_segment_id_may_contain_equals(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "durations", "set", RUN, "x=y=4")

        result = invoke(runner, data_dir, "durations", "show", RUN, "--json")
        assert json.loads(result.stdout)["segments"] == {"x=y": 4.0}

    @pytest.mark.parametrize("pair", ["a", "=5", "a=fast"])
    def test_malformed_pair(self, runner, data_dir, pair: str) -> None:
        result = invoke(runner, data_dir, "durations", "set", RUN, pair)

        assert result.exit_code == 2
        assert "SEGMENTS" in result.output

    @pytest.mark.parametrize("pairs", [["a=-1"], ["a=0"], ["a=5", "a=6"], ["a=nan"]])
    def test_invalid_durations(self, runner, data_dir, pairs: list[str]) -> None:
        result = invoke(runner, data_dir, "durations", "set", RUN, *pairs)

        assert result.exit_code == 1
        assert "RC-3002" in result.output


# =============================================================================
# record / runs / clear
# =============================================================================


class TestRecord:
    def test_record_counts_attempts(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "record", RUN, "a", "--failure")
        result = invoke(runner, data_dir, "record", RUN, "a", "--success")

        assert result.exit_code == 0
        assert "Recorded success on a (2 attempts)" in result.output

    def test_outcome_is_required(self, runner, data_dir) -> None:
        result = invoke(runner, data_dir, "record", RUN, "a")

        assert result.exit_code == 2
        assert "--success or --failure" in result.output

    def test_tracking_disabled(self, runner, data_dir, monkeypatch) -> None:
        monkeypatch.setenv("RUNCOACH_TRACKING_ENABLED", "false")

        result = invoke(runner, data_dir, "record", RUN, "a", "--success")

        assert "Tracking is disabled" in result.output
        assert not (data_dir / "attempts").exists()

    def test_runs(self, runner, data_dir) -> None:
        result = invoke(runner, data_dir, "runs")
        assert "No runs recorded yet" in result.output

        invoke(runner, data_dir, "record", RUN, "a", "--success")
        invoke(runner, data_dir, "record", "other", "x", "--failure")

        result = invoke(runner, data_dir, "runs", "--json")
        assert json.loads(result.stdout) == [RUN, "other"]


class TestClear:
    def test_clear_run(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "record", RUN, "a", "--success")
        invoke(runner, data_dir, "record", "other", "x", "--failure")

        result = invoke(runner, data_dir, "clear", RUN, "-y")

        assert result.exit_code == 0
        result = invoke(runner, data_dir, "runs", "--json")
        assert json.loads(result.stdout) == ["other"]

    def test_clear_all(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "record", RUN, "a", "--success")

        result = invoke(runner, data_dir, "clear", "--all", "--yes")

        assert result.exit_code == 0
        assert json.loads(invoke(runner, data_dir, "runs", "--json").stdout) == []

    def test_declined_confirmation_keeps_data(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "record", RUN, "a", "--success")

        result = invoke(runner, data_dir, "clear", RUN, input="n\n")

        assert result.exit_code == 1
        assert json.loads(invoke(runner, data_dir, "runs", "--json").stdout) == [RUN]

    @pytest.mark.parametrize("args", [[], [RUN, "--all"]])
    def test_needs_exactly_one_target(self, runner, data_dir, args: list[str]) -> None:
        result = invoke(runner, data_dir, "clear", *args, "-y")

        assert result.exit_code == 2


# =============================================================================
# advise
# =============================================================================


class TestAdvise:
    def test_without_durations(self, runner, data_dir) -> None:
        result = invoke(runner, data_dir, "advise", RUN)

        assert result.exit_code == 0
        assert "No durations stored" in result.output

        result = invoke(runner, data_dir, "advise", RUN, "--json")
        assert json.loads(result.stdout) == {"run": RUN, "recommendation": None}

    def test_fresh_run_needs_data(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "durations", "set", RUN, "a=10", "b=20")

        result = invoke(runner, data_dir, "advise", RUN)

        assert result.exit_code == 0, result.output
        assert "Practice a" in result.output
        assert "collecting data" in result.output

    def test_json_with_all_detail(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "durations", "set", RUN, "a=10", "b=10")
        for _ in range(20):
            invoke(runner, data_dir, "record", RUN, "a", "--success")
            invoke(runner, data_dir, "record", RUN, "b", "--failure")

        result = invoke(runner, data_dir, "advise", RUN, "--json", "--detail", "all")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        rec = data["recommendation"]
        assert data["run"] == RUN
        assert rec["segment"] == "b"
        assert rec["reason"] == "needs_data"
        assert rec["go_for_run"] is False
        assert data["time_expended_seconds"] == pytest.approx(20 * 10 + 20 * 5)
        segments = {entry["segment"]: entry for entry in data["segments"]}
        assert segments["a"]["attempts"] == 20
        assert segments["a"]["probability"] == pytest.approx(0.99)
        assert segments["a"]["confidence"] == "negative_learning_rate"
        assert segments["b"]["probability"] < 1e-6
        assert segments["b"]["confidence"] == "insufficient_data"
        assert "benefit" in segments["b"]

    def test_extra_detail_table(self, runner, data_dir) -> None:
        invoke(runner, data_dir, "durations", "set", RUN, "a=10", "b=20")

        result = invoke(runner, data_dir, "advise", RUN, "--detail", "extra")

        assert result.exit_code == 0
        assert "P(success)" in result.output
        assert "50.0%" in result.output


# =============================================================================
# init / errors
# =============================================================================


def test_init_writes_config(runner, data_dir) -> None:
    result = invoke(runner, data_dir, "init")

    assert result.exit_code == 0
    assert (data_dir / "config.yaml").exists()


def test_invalid_config_exits_with_error_id(runner, data_dir, tmp_path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("fitting:\n  min_samples: 2\n")

    result = runner.invoke(cli, ["--config", str(bad), "runs"])

    assert result.exit_code == 1
    assert "RC-5002" in result.output


def test_debug_keeps_session_log(runner, data_dir) -> None:
    result = invoke(runner, data_dir, "--debug", "runs")
    assert result.exit_code == 0
    assert len(list((data_dir / "logs").glob("session_*.log"))) == 1

    invoke(runner, data_dir, "runs")
    assert len(list((data_dir / "logs").glob("session_*.log"))) == 1
