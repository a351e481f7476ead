# ---------- TESTS FOR SEARCHER SERVICE ----------

import asyncio

import pytest

from conftest import FakeProviderClient, make_postings
from jobsweep.agents.searcher import (
    SearcherService,
    build_search_space,
    make_request_builder,
    partition,
)
from jobsweep.config.models import Budget, ExternalRun, FilterSpec, RunStatus, SearchUnit
from jobsweep.utils.provider.runner import ExternalJobRunner


def make_service(client, budget, filter_spec=None, cache=None, rows=50):
    runner = ExternalJobRunner(client, "bebity/linkedin-jobs-scraper", stagger=(0, 0))
    return SearcherService(
        runner,
        cache,
        budget,
        filter_spec or FilterSpec(),
        make_request_builder(rows, 24),
        batch_delay=0,
    )


# ----------------------------
# Search space
# ----------------------------
def test_search_space_is_row_major_cross_product():
    units = build_search_space(["Engineer", "Analyst"], ["Ghent", "Leuven", "Remote"])

    assert len(units) == 6
    assert units[0] == SearchUnit("Engineer", "Ghent")
    assert units[2] == SearchUnit("Engineer", "Remote")
    assert units[3] == SearchUnit("Analyst", "Ghent")
    assert units[-1] == SearchUnit("Analyst", "Remote")


def test_search_space_keeps_duplicate_entries():
    units = build_search_space(["Engineer", "Engineer"], ["Remote"])
    assert units == [SearchUnit("Engineer", "Remote"), SearchUnit("Engineer", "Remote")]


@pytest.mark.parametrize("titles,locations", [([], ["Remote"]), (["Engineer"], None)])
def test_search_space_empty_when_either_side_is_empty(titles, locations):
    assert build_search_space(titles, locations) == []


def test_partition_keeps_order_and_sizes():
    units = build_search_space(["A", "B", "C", "D", "E"], ["X"])
    batches = partition(units, 2)

    assert [len(b) for b in batches] == [2, 2, 1]
    assert [u for b in batches for u in b] == units


def test_request_builder_uses_fixed_quota():
    build = make_request_builder(25, 48)
    request = build(SearchUnit("Engineer", "Remote"))

    assert request.to_actor_input() == {
        "title": "Engineer",
        "location": "Remote",
        "rows": 25,
        "publishedAt": "r172800",
    }


# ----------------------------
# Budget
# ----------------------------
def test_budget_stops_single_unit_early():
    client = FakeProviderClient(postings={("Engineer", "Remote"): make_postings("Dev", 3)})
    service = make_service(client, Budget(total_jobs_to_fetch=2, max_concurrent=1))

    jobs = asyncio.run(service.search_jobs(build_search_space(["Engineer"], ["Remote"])))

    assert len(jobs) == 2
    assert [job["title"] for job in jobs] == ["Dev 0", "Dev 1"]


def test_concurrent_batch_overshoots_by_at_most_concurrency_minus_one():
    postings = {
        ("Engineer", loc): make_postings(f"Dev{loc}", 5, location=loc)
        for loc in ("Ghent", "Leuven", "Remote")
    }
    client = FakeProviderClient(postings=postings)
    service = make_service(client, Budget(total_jobs_to_fetch=2, max_concurrent=3))

    jobs = asyncio.run(
        service.search_jobs(build_search_space(["Engineer"], ["Ghent", "Leuven", "Remote"]))
    )

    # First finisher takes the budget; each task resuming later admits one more
    assert len(jobs) == 4
    assert len(jobs) <= 2 + 3 - 1
    assert service.fetched == 4


def test_no_batch_starts_after_budget_is_reached():
    locations = ["Ghent", "Leuven", "Remote", "Mons", "Namur", "Liege"]
    postings = {
        ("Engineer", loc): make_postings(f"Dev{loc}", 5, location=loc) for loc in locations
    }
    client = FakeProviderClient(postings=postings)
    service = make_service(client, Budget(total_jobs_to_fetch=2, max_concurrent=3))

    asyncio.run(service.search_jobs(build_search_space(["Engineer"], locations)))

    assert service.batches_started == 1
    assert len(client.started) == 3


def test_results_follow_unit_order():
    postings = {
        ("Engineer", "Ghent"): make_postings("Ghent", 2, location="Ghent"),
        ("Engineer", "Leuven"): make_postings("Leuven", 2, location="Leuven"),
    }
    client = FakeProviderClient(postings=postings)
    service = make_service(client, Budget(total_jobs_to_fetch=100, max_concurrent=2))

    jobs = asyncio.run(
        service.search_jobs(build_search_space(["Engineer"], ["Ghent", "Leuven"]))
    )

    assert [job["title"] for job in jobs] == ["Ghent 0", "Ghent 1", "Leuven 0", "Leuven 1"]


# ----------------------------
# Deduplication and failures
# ----------------------------
@pytest.mark.parametrize("max_concurrent", [1, 2])
def test_equivalent_units_yield_union_without_duplicates(max_concurrent):
    client = FakeProviderClient(postings={("Engineer", "Remote"): make_postings("Dev", 3)})
    service = make_service(client, Budget(total_jobs_to_fetch=100, max_concurrent=max_concurrent))

    jobs = asyncio.run(
        service.search_jobs(build_search_space(["Engineer", "Engineer"], ["Remote"]))
    )

    keys = [job["jobUrl"].split("?")[0] for job in jobs]
    assert len(jobs) == 3
    assert len(set(keys)) == len(keys)


def test_failed_run_contributes_nothing():
    client = FakeProviderClient(
        postings={("Engineer", "Leuven"): make_postings("Dev", 2, location="Leuven")},
        failing={("Engineer", "Ghent")},
    )
    service = make_service(client, Budget(total_jobs_to_fetch=100, max_concurrent=2))

    jobs = asyncio.run(
        service.search_jobs(build_search_space(["Engineer"], ["Ghent", "Leuven"]))
    )

    assert len(jobs) == 2
    assert all(job["location"] == "Leuven" for job in jobs)


def test_filtered_postings_do_not_use_budget():
    postings = make_postings("Dev", 2, company="Acme Consulting") + make_postings(
        "Ops", 2, company="Globex"
    )
    client = FakeProviderClient(postings={("Engineer", "Remote"): postings})
    service = make_service(
        client,
        Budget(total_jobs_to_fetch=2, max_concurrent=1),
        filter_spec=FilterSpec(excluded_companies=("Acme",)),
    )

    jobs = asyncio.run(service.search_jobs(build_search_space(["Engineer"], ["Remote"])))

    assert [job["companyName"] for job in jobs] == ["Globex", "Globex"]
    assert len(service.deduplicator) == 2


def test_cache_hit_skips_new_run():
    class StubCache:
        def __init__(self, run):
            self.run = run
            self.requests = []

        async def find(self, request):
            self.requests.append(request)
            return self.run

    reused = ExternalRun(id="old", status=RunStatus.SUCCEEDED, result_set_id="ds-old")
    client = FakeProviderClient(datasets={"ds-old": make_postings("Cached", 2)})
    cache = StubCache(reused)
    service = make_service(client, Budget(total_jobs_to_fetch=10, max_concurrent=1), cache=cache)

    jobs = asyncio.run(service.search_jobs(build_search_space(["Engineer"], ["Remote"])))

    assert [job["title"] for job in jobs] == ["Cached 0", "Cached 1"]
    assert client.started == []
    assert cache.requests[0].title == "Engineer"
