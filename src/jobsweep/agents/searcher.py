"""
Searcher Service - Batched Provider Searches.

This module contains the SearcherService class, which runs one provider
search per (job title, location) pair and merges the results into a single
filtered, deduplicated list bounded by a global budget.

The service:
1. Splits the search units into batches of at most max_concurrent units
2. Runs the batches one after another, the units of a batch concurrently
3. Reuses a recent equivalent provider run when one exists
4. Filters and deduplicates each unit's postings as they arrive
5. Stops starting new batches once the budget is reached

Concurrency:
    All tasks share one asyncio event loop. The fetched counter and the
    seen-key set are only touched between awaits, so no lock is needed.
    The budget check happens after a posting is admitted, which lets every
    task that resumes after the budget was reached admit one more posting:
    the aggregate can exceed the budget by up to max_concurrent - 1.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence

from jobsweep.agents.deduplicator import Deduplicator
from jobsweep.agents.filterer import passes_filters
from jobsweep.config import settings
from jobsweep.config.models import Budget, ExecutionRequest, FilterSpec, SearchUnit
from jobsweep.utils.logger import get_logger

logger = get_logger(__name__)

RequestBuilder = Callable[[SearchUnit], ExecutionRequest]


def build_search_space(
    titles: Optional[Sequence[str]], locations: Optional[Sequence[str]]
) -> List[SearchUnit]:
    """Cross product of titles and locations, titles outer, locations inner.

    Duplicate entries produce duplicate units. Either list empty or None
    yields an empty list; the caller decides that this is fatal.
    """
    if not titles or not locations:
        return []
    return [SearchUnit(title, location) for title in titles for location in locations]


def make_request_builder(result_limit: int, recency_window_hours: int) -> RequestBuilder:
    """Build ExecutionRequests with the same per-unit quota for every unit.

    The quota does not shrink with the remaining budget, so that identical
    searches keep producing identical provider inputs and stay reusable.
    """

    def build(unit: SearchUnit) -> ExecutionRequest:
        return ExecutionRequest(
            title=unit.title,
            location=unit.location,
            result_limit=result_limit,
            recency_window_hours=recency_window_hours,
        )

    return build


def partition(units: Sequence[SearchUnit], size: int) -> List[List[SearchUnit]]:
    """Split units into contiguous batches of at most `size`, in order."""
    return [list(units[i : i + size]) for i in range(0, len(units), size)]


class SearcherService:
    """Runs provider searches in budgeted batches and merges the results.

    Args:
        runner: ExternalJobRunner (or anything with an async run(request, reused)).
        cache: RunReuseCache, or None to always start new runs.
        budget (Budget): Global posting budget and batch size.
        filter_spec (FilterSpec): Filters applied before deduplication.
        request_builder (Callable): Turns a SearchUnit into an ExecutionRequest.
        batch_delay (float): Pause between batches, in seconds.
    """

    def __init__(
        self,
        runner,
        cache,
        budget: Budget,
        filter_spec: FilterSpec,
        request_builder: RequestBuilder,
        batch_delay: float = settings.BATCH_DELAY_SECS,
    ) -> None:
        self.runner = runner
        self.cache = cache
        self.budget = budget
        self.filter_spec = filter_spec
        self.request_builder = request_builder
        self.batch_delay = batch_delay

        self.deduplicator = Deduplicator()
        self.fetched = 0
        self.batches_started = 0

    # ------------------------------
    # Public interface
    # ------------------------------
    async def search_jobs(self, units: Sequence[SearchUnit]) -> List[Dict[str, Any]]:
        """Search every unit until the budget is reached.

        Args:
            units (Sequence[SearchUnit]): Search units in their final order.

        Returns:
            List[Dict]: Admitted postings, in unit order and, within a unit,
                in provider order.

        Raises:
            ProviderListError: If the run reuse lookup cannot list runs.
        """
        batches = partition(units, self.budget.max_concurrent)
        all_jobs: List[Dict[str, Any]] = []

        logger.info(
            "Searching",
            extra={
                "extra_fields": {
                    "search_units": len(units),
                    "batches": len(batches),
                    "budget": self.budget.total_jobs_to_fetch,
                    "max_concurrent": self.budget.max_concurrent,
                }
            },
        )

        for index, batch in enumerate(batches):
            if self._budget_reached():
                logger.info(
                    "Job limit reached, halting further searches",
                    extra={
                        "extra_fields": {
                            "budget": self.budget.total_jobs_to_fetch,
                            "skipped_batches": len(batches) - index,
                        }
                    },
                )
                break

            if index > 0 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

            self.batches_started += 1
            logger.info(
                "Processing batch",
                extra={"extra_fields": {"batch": index + 1, "tasks": len(batch)}},
            )

            # gather keeps start order regardless of completion order
            batch_results = await asyncio.gather(
                *(self._search_unit(unit) for unit in batch)
            )
            for jobs in batch_results:
                all_jobs.extend(jobs)

            logger.info(
                "Batch finished",
                extra={
                    "extra_fields": {
                        "batch": index + 1,
                        "unique_jobs_so_far": len(all_jobs),
                    }
                },
            )

        return all_jobs

    # ------------------------------
    # Internal functions
    # ------------------------------
    def _budget_reached(self) -> bool:
        return self.fetched >= self.budget.total_jobs_to_fetch

    async def _search_unit(self, unit: SearchUnit) -> List[Dict[str, Any]]:
        """Run one unit and keep its new, filtered postings."""
        if self._budget_reached():
            return []

        request = self.request_builder(unit)
        reused = await self.cache.find(request) if self.cache is not None else None
        postings = await self.runner.run(request, reused)

        # No awaits below: admission and counting are atomic for this task
        new_jobs: List[Dict[str, Any]] = []
        rejected = 0
        duplicates = 0
        for posting in postings:
            if not passes_filters(posting, self.filter_spec):
                rejected += 1
                continue
            if not self.deduplicator.admit(posting):
                duplicates += 1
                continue
            new_jobs.append(posting)
            self.fetched += 1
            if self._budget_reached():
                break

        logger.info(
            "Search unit finished",
            extra={
                "extra_fields": {
                    "title": unit.title,
                    "location": unit.location,
                    "found": len(postings),
                    "admitted": len(new_jobs),
                    "rejected": rejected,
                    "duplicates": duplicates,
                }
            },
        )
        return new_jobs
