# ---------- TESTS FOR MAIN PIPELINE ORCHESTRATION ----------

import asyncio
import json
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeProviderClient, make_postings
from jobsweep.config import settings
from jobsweep.config.loader import get_merged_config
from jobsweep.config.models import ExternalRun, RunStatus
from jobsweep.main import main, pipeline_step, run_pipeline, warn_if_deadline_too_close
from jobsweep.utils.exceptions import EmptySearchSpaceError, ProviderListError


@pytest.fixture(autouse=True)
def fast_and_isolated():
    """No stagger or batch delays, no .env file, no correlation id leaks."""
    with patch.object(settings, "START_STAGGER_SECS", (0, 0)), patch.object(
        settings, "BATCH_DELAY_SECS", 0
    ), patch("jobsweep.config.loader.load_dotenv"):
        yield


def make_config(**raw):
    with patch.dict(os.environ, {"APIFY_TOKEN": "t", "DATAGOL_WORKSPACE_ID": "ws", "DATAGOL_WRITE_TOKEN": "w"}):
        return get_merged_config(raw)


def empty_source():
    source = MagicMock()
    source.get_filter_values.return_value = []
    return source


# ----------------------------
# pipeline_step
# ----------------------------
def test_pipeline_step_returns_result():
    @pipeline_step("Test step", 1, 1)
    def step(x):
        return x * 2

    assert step(3) == 6


def test_pipeline_step_wraps_unexpected_errors():
    @pipeline_step("Test step", 1, 1)
    def step():
        raise KeyError("boom")

    with pytest.raises(RuntimeError) as exc_info:
        step()
    assert isinstance(exc_info.value.__cause__, KeyError)
    assert str(exc_info.value).startswith("Step 1/1: Test step failed")


def test_pipeline_step_lets_pipeline_errors_through():
    @pipeline_step("Test step", 2, 4)
    async def step():
        raise ProviderListError("unavailable")

    with pytest.raises(ProviderListError):
        asyncio.run(step())


def test_pipeline_step_supports_async_functions():
    @pipeline_step("Async step", 1, 1)
    async def step():
        return "done"

    assert asyncio.run(step()) == "done"


# ----------------------------
# run_pipeline
# ----------------------------
def test_run_pipeline_end_to_end():
    config = make_config(jobTitles=["Engineer"], locations=["Remote"], totalJobsToFetch=2, maxConcurrentScrapers=1, reuseRecentRuns=False)
    client = FakeProviderClient(postings={("Engineer", "Remote"): make_postings("Dev", 3)})
    sink = MagicMock()
    sink.emit.side_effect = lambda jobs: len(jobs)

    summary = asyncio.run(run_pipeline(config, client=client, filter_source=empty_source(), sink=sink))

    assert summary["search_units"] == 1
    assert summary["admitted"] == 2
    assert summary["delivered"] == 2
    assert len(summary["run_id"]) == 32
    assert [job["title"] for job in sink.emit.call_args.args[0]] == ["Dev 0", "Dev 1"]
    assert client.started[0]["rows"] == 2


def test_run_pipeline_reuses_recent_run():
    config = make_config(jobTitles=["Engineer"], locations=["Remote"], totalJobsToFetch=5)
    actor_input = {"title": "Engineer", "location": "Remote", "rows": 5}
    client = FakeProviderClient(
        runs=[ExternalRun(id="old", status=RunStatus.SUCCEEDED, started_at=datetime.now(timezone.utc) - timedelta(hours=1))],
        details={"old": ExternalRun(id="old", status=RunStatus.SUCCEEDED, input=actor_input, result_set_id="ds-old")},
        datasets={"ds-old": make_postings("Cached", 2)},
    )

    summary = asyncio.run(run_pipeline(config, client=client, filter_source=empty_source(), sink=MagicMock()))

    assert summary["admitted"] == 2
    assert client.started == []


def test_run_pipeline_dry_run_skips_sink():
    config = make_config(jobTitles=["Engineer"], locations=["Remote"], dryRun=True, reuseRecentRuns=False)
    client = FakeProviderClient(postings={("Engineer", "Remote"): make_postings("Dev", 1)})
    sink = MagicMock()

    summary = asyncio.run(run_pipeline(config, client=client, filter_source=empty_source(), sink=sink))

    assert summary["admitted"] == 1
    assert summary["delivered"] == 0
    sink.emit.assert_not_called()


def test_run_pipeline_empty_search_space():
    config = make_config()
    client = FakeProviderClient()

    with patch.object(settings, "DEFAULT_JOB_TITLES", ()):
        with pytest.raises(EmptySearchSpaceError):
            asyncio.run(run_pipeline(config, client=client, filter_source=empty_source(), sink=MagicMock()))

    assert client.started == []


def test_run_pipeline_list_failure_is_fatal():
    config = make_config(jobTitles=["Engineer"], locations=["Remote"])
    client = MagicMock()
    client.list_runs.side_effect = ProviderListError("unavailable")

    with pytest.raises(ProviderListError):
        asyncio.run(run_pipeline(config, client=client, filter_source=empty_source(), sink=MagicMock()))


def test_deadline_warning(caplog):
    config = make_config(maxConcurrentScrapers=1, scraperTimeoutSecs=600)
    deadline = (datetime.now(timezone.utc) + timedelta(minutes=5)).isoformat()

    with patch.dict(os.environ, {"APIFY_TIMEOUT_AT": deadline}):
        with caplog.at_level("WARNING"):
            warn_if_deadline_too_close(3, config)

    assert "Run may be stopped before all searches finish" in caplog.text


# ----------------------------
# main
# ----------------------------
def test_main_success(tmp_path, capsys):
    path = tmp_path / "input.json"
    path.write_text(json.dumps({"jobTitles": ["Engineer"]}), encoding="utf-8")

    async def fake_pipeline(config):
        assert config.dry_run is True
        assert config.run_input.job_titles == ["Engineer"]
        return {"run_id": "x", "search_units": 1, "admitted": 3, "delivered": 0}

    with patch("jobsweep.main.configure_logging"), patch("jobsweep.main.run_pipeline", new=fake_pipeline):
        assert main(["--input", str(path), "--dry-run"]) == 0

    assert "Admitted 3 postings" in capsys.readouterr().out


def test_main_failure_exit_code(tmp_path):
    path = tmp_path / "input.json"
    path.write_text("{}", encoding="utf-8")

    async def failing_pipeline(config):
        raise EmptySearchSpaceError("nothing to search")

    with patch("jobsweep.main.configure_logging"), patch("jobsweep.main.run_pipeline", new=failing_pipeline):
        assert main(["--input", str(path)]) == 1


def test_main_invalid_input_exit_code(tmp_path):
    path = tmp_path / "input.json"
    path.write_text(json.dumps({"totalJobsToFetch": 0}), encoding="utf-8")

    with patch("jobsweep.main.configure_logging"):
        assert main(["--input", str(path)]) == 1
