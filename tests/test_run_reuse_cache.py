# ---------- TESTS FOR RUN REUSE CACHE ----------

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests

from jobsweep.config.models import ExecutionRequest, ExternalRun, RunStatus
from jobsweep.utils.exceptions import ProviderDetailError, ProviderListError
from jobsweep.utils.provider.cache import RunReuseCache, is_equivalent_input

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

request = ExecutionRequest("Engineer", "Remote", result_limit=50, recency_window_hours=24)
matching_input = {"title": "Engineer", "location": "Remote", "rows": 50, "publishedAt": "r86400"}


def listed(run_id, hours_ago):
    return ExternalRun(
        id=run_id, status=RunStatus.SUCCEEDED, started_at=NOW - timedelta(hours=hours_ago)
    )


def detail(run_id, run_input):
    return ExternalRun(
        id=run_id,
        status=RunStatus.SUCCEEDED,
        started_at=NOW,
        input=run_input,
        result_set_id=f"ds-{run_id}",
    )


@pytest.fixture
def client():
    return MagicMock()


def find(cache):
    return asyncio.run(cache.find(request, now=NOW))


# ----------------------------
# Equivalence
# ----------------------------
def test_equivalence_ignores_other_fields():
    assert is_equivalent_input(matching_input, {"title": "Engineer", "location": "Remote", "rows": 50})


def test_different_rows_is_not_equivalent():
    assert not is_equivalent_input(matching_input, {**matching_input, "rows": 25})


# ----------------------------
# Lookup
# ----------------------------
def test_returns_newest_equivalent_run(client):
    client.list_runs.return_value = [listed("new", 1), listed("older", 2)]
    client.get_run.side_effect = lambda run_id: detail(run_id, matching_input)
    cache = RunReuseCache(client, "bebity/linkedin-jobs-scraper")

    run = find(cache)

    assert run.id == "new"
    client.get_run.assert_called_once_with("new")
    client.list_runs.assert_called_once_with("bebity/linkedin-jobs-scraper", 10, "SUCCEEDED")


def test_skips_runs_with_different_input(client):
    client.list_runs.return_value = [listed("other", 1), listed("match", 2)]
    inputs = {"other": {**matching_input, "location": "Ghent"}, "match": matching_input}
    client.get_run.side_effect = lambda run_id: detail(run_id, inputs[run_id])
    cache = RunReuseCache(client, "actor")

    assert find(cache).id == "match"


def test_match_outside_window_is_not_reused(client):
    client.list_runs.return_value = [listed("old", 25)]
    client.get_run.side_effect = lambda run_id: detail(run_id, matching_input)
    cache = RunReuseCache(client, "actor")

    assert find(cache) is None
    client.get_run.assert_not_called()


def test_detail_failure_skips_candidate(client):
    client.list_runs.return_value = [listed("broken", 1), listed("ok", 2)]

    def get_run(run_id):
        if run_id == "broken":
            raise ProviderDetailError("boom")
        return detail(run_id, matching_input)

    client.get_run.side_effect = get_run
    cache = RunReuseCache(client, "actor")

    assert find(cache).id == "ok"


def test_run_without_input_or_timestamp_is_skipped(client):
    no_timestamp = ExternalRun(id="nots", status=RunStatus.SUCCEEDED)
    client.list_runs.return_value = [no_timestamp, listed("noinput", 1)]
    client.get_run.return_value = detail("noinput", None)
    cache = RunReuseCache(client, "actor")

    assert find(cache) is None
    client.get_run.assert_called_once_with("noinput")


def test_list_failure_propagates(client):
    client.list_runs.side_effect = ProviderListError("unavailable")
    cache = RunReuseCache(client, "actor")

    with pytest.raises(ProviderListError):
        find(cache)


def test_list_transport_error_becomes_list_error(client):
    client.list_runs.side_effect = requests.ConnectionError("refused")
    cache = RunReuseCache(client, "actor")

    with pytest.raises(ProviderListError):
        find(cache)
