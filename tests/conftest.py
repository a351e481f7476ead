import threading
from datetime import datetime, timedelta, timezone

import pytest

from jobsweep.config.models import ExternalRun, RunStatus
from jobsweep.utils.exceptions import ExecutionFailure


# ----------------------------
# In-memory provider
# ----------------------------
class FakeProviderClient:
    """Stands in for ProviderClient.

    postings: {(title, location): [posting, ...]} served by new runs.
    failing: {(title, location), ...} whose runs end with status FAILED.
    """

    def __init__(self, postings=None, failing=None, runs=None, details=None, datasets=None):
        self.postings = postings or {}
        self.failing = set(failing or ())
        self.runs = runs or []
        self.details = details or {}
        self.datasets = dict(datasets or {})
        self.started = []
        self._lock = threading.Lock()

    def start_run(self, actor_id, actor_input, memory_mbytes, timeout_secs):
        key = (actor_input["title"], actor_input["location"])
        with self._lock:
            self.started.append(actor_input)
            run_id = f"run-{len(self.started)}"
        if key in self.failing:
            raise ExecutionFailure(run_id, "FAILED")
        dataset_id = f"dataset-{run_id}"
        self.datasets[dataset_id] = list(self.postings.get(key, []))
        return ExternalRun(
            id=run_id,
            status=RunStatus.SUCCEEDED,
            started_at=datetime.now(timezone.utc),
            input=actor_input,
            result_set_id=dataset_id,
        )

    def list_runs(self, actor_id, limit, status="SUCCEEDED"):
        return self.runs[:limit]

    def get_run(self, run_id):
        return self.details[run_id]

    def get_dataset_items(self, dataset_id):
        return list(self.datasets.get(dataset_id, []))


def make_postings(prefix, count, company="Globex", location="Remote"):
    """Distinct postings with stable job URLs, published yesterday (date only)."""
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).date().isoformat()
    return [
        {
            "title": f"{prefix} {i}",
            "companyName": company,
            "location": location,
            "jobUrl": f"https://www.linkedin.com/jobs/view/{prefix.lower()}-{i}?refId=abc",
            "description": "Key responsibilities: they will own the monthly close and the money flows.",
            "publishedAt": yesterday,
        }
        for i in range(count)
    ]


@pytest.fixture
def fake_client_factory():
    return FakeProviderClient
