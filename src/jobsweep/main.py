"""
jobsweep Pipeline Orchestration.

This module is the entry point of a jobsweep invocation. It runs the
complete workflow from filter values to stored postings:

1. Filter values: job titles, locations and excluded companies
   (run input, then DataGOL, then built-in defaults)
2. Search space: every (job title, location) pair
3. Search: budgeted batches of provider runs, filtered and deduplicated
4. Delivery: admitted postings written to DataGOL (skipped on a dry run)

The pipeline uses a decorator-based approach for consistent error handling
and logging across all steps.
"""

import argparse
import asyncio
import inspect
import os
import sys
import uuid
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, List, Optional

from jobsweep.agents import SearcherService
from jobsweep.agents.searcher import build_search_space, make_request_builder
from jobsweep.config import settings
from jobsweep.config.loader import (
    AppConfig,
    expected_run_seconds,
    get_merged_config,
    load_run_input,
)
from jobsweep.config.models import Budget, parse_timestamp
from jobsweep.utils.exceptions import EmptySearchSpaceError, JobSweepError
from jobsweep.utils.filter_values import FilterValueSource, resolve_filters
from jobsweep.utils.logger import (
    clear_correlation_ids,
    configure_logging,
    get_logger,
    log_performance,
    set_correlation_id,
)
from jobsweep.utils.provider import ExternalJobRunner, ProviderClient, RunReuseCache
from jobsweep.utils.sink import DataGolSink

logger = get_logger(__name__)

TOTAL_STEPS = 4


def pipeline_step(step_name: str, step_number: int, total_steps: int = TOTAL_STEPS):
    """
    Decorator for pipeline steps that provides consistent error handling and logging.

    Works on both plain and async functions. Pipeline errors (JobSweepError)
    propagate unchanged; anything else is re-raised as RuntimeError.

    Args:
        step_name: Human-readable name of the step
        step_number: Step number (1-indexed)
        total_steps: Total number of steps in pipeline
    """

    def _started() -> None:
        logger.info(f"Step {step_number}/{total_steps}: {step_name}...")

    def _completed() -> None:
        logger.info(
            f"Step {step_number}/{total_steps}: {step_name} completed successfully"
        )

    def _failed(e: Exception) -> None:
        error_msg = f"Step {step_number}/{total_steps}: {step_name} failed: {str(e)}"
        logger.error(error_msg)
        if isinstance(e, JobSweepError):
            raise e
        raise RuntimeError(error_msg) from e

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                _started()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _failed(e)
                _completed()
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            _started()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _failed(e)
            _completed()
            return result

        return wrapper

    return decorator


def warn_if_deadline_too_close(
    num_units: int, config: AppConfig, now: Optional[datetime] = None
) -> None:
    """Warn when APIFY_TIMEOUT_AT leaves less time than a worst-case run needs."""
    deadline = parse_timestamp(os.environ.get("APIFY_TIMEOUT_AT"))
    if deadline is None:
        return
    needed = expected_run_seconds(
        num_units, config.scraper.max_concurrent, config.scraper.timeout_secs
    )
    remaining = (deadline - (now or datetime.now(timezone.utc))).total_seconds()
    if remaining < needed:
        logger.warning(
            "Run may be stopped before all searches finish",
            extra={
                "extra_fields": {
                    "remaining_secs": int(remaining),
                    "expected_secs": needed,
                    "search_units": num_units,
                }
            },
        )


async def run_pipeline(
    config: AppConfig,
    client: Optional[ProviderClient] = None,
    filter_source: Optional[FilterValueSource] = None,
    sink: Optional[DataGolSink] = None,
) -> Dict[str, Any]:
    """
    Run the complete jobsweep pipeline once.

    Args:
        config (AppConfig): Merged run configuration.
        client (ProviderClient): Provider client; built from the token if omitted.
        filter_source (FilterValueSource): DataGOL filter source; built from
            the DataGOL configuration if omitted.
        sink (DataGolSink): Posting sink; built from the DataGOL configuration
            if omitted.

    Returns:
        Dict: Dictionary containing:
            - "run_id" (str): Correlation id of this invocation
            - "search_units" (int): Number of (title, location) pairs
            - "admitted" (int): Postings that passed filters and deduplication
            - "delivered" (int): Rows written to the sink

    Raises:
        EmptySearchSpaceError: If no (title, location) pair can be built
        ProviderListError: If recent provider runs cannot be listed
        ConfigurationError: If the provider token is missing
    """
    run_id = uuid.uuid4().hex
    set_correlation_id(run_id=run_id)
    logger.info("Pipeline started", extra={"extra_fields": {"dry_run": config.dry_run}})

    if filter_source is None:
        filter_source = FilterValueSource(config.datagol)

    @pipeline_step("Resolving filter values", 1)
    async def resolve_step():
        return await resolve_filters(config.run_input, filter_source)

    titles, locations, filter_spec = await resolve_step()

    @pipeline_step("Building search space", 2)
    def search_space_step(titles: List[str], locations: List[str]):
        units = build_search_space(titles, locations)
        if not units:
            raise EmptySearchSpaceError(
                "No search units: job titles or locations are empty"
            )
        logger.info(
            "Search space built",
            extra={
                "extra_fields": {
                    "search_units": len(units),
                    "job_titles": len(titles),
                    "locations": len(locations),
                }
            },
        )
        return units

    units = search_space_step(titles, locations)
    warn_if_deadline_too_close(len(units), config)

    @pipeline_step("Searching jobs", 3)
    async def search_step():
        provider = client or ProviderClient(config.scraper.apify_token)
        cache = (
            RunReuseCache(provider, config.scraper.actor_id)
            if config.scraper.reuse_recent_runs
            else None
        )
        runner = ExternalJobRunner(
            provider,
            config.scraper.actor_id,
            memory_mbytes=config.scraper.memory_mbytes,
            timeout_secs=config.scraper.timeout_secs,
            stagger=settings.START_STAGGER_SECS,
        )
        searcher = SearcherService(
            runner,
            cache,
            Budget(config.scraper.total_jobs_to_fetch, config.scraper.max_concurrent),
            filter_spec,
            make_request_builder(config.scraper.rows, config.scraper.posted_in_last_hours),
            batch_delay=settings.BATCH_DELAY_SECS,
        )
        with log_performance("search_jobs", search_units=len(units)):
            return await searcher.search_jobs(units)

    jobs = await search_step()

    delivered = 0
    if config.dry_run:
        logger.info("Dry run: skipping delivery of %d postings", len(jobs))
    else:

        @pipeline_step("Delivering postings", 4)
        async def deliver_step():
            target = sink or DataGolSink(config.datagol)
            with log_performance("emit_rows", postings=len(jobs)):
                return await asyncio.to_thread(target.emit, jobs)

        delivered = await deliver_step()

    summary = {
        "run_id": run_id,
        "search_units": len(units),
        "admitted": len(jobs),
        "delivered": delivered,
    }
    logger.info("Pipeline finished", extra={"extra_fields": summary})
    return summary


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jobsweep",
        description="Search job postings for every job title and location, "
        "filter and deduplicate them, and store them in DataGOL.",
    )
    parser.add_argument(
        "--input",
        help="Path of the run input JSON file "
        "(default: $JOBSWEEP_INPUT, then the local Apify storage INPUT.json)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Search and filter, but do not write postings to DataGOL",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point. Returns the process exit code."""
    args = parse_args(argv)
    configure_logging()

    try:
        raw_input = load_run_input(args.input)
        if args.dry_run:
            raw_input = {**raw_input, "dryRun": True}
        config = get_merged_config(raw_input)
        summary = asyncio.run(run_pipeline(config))
    except (JobSweepError, RuntimeError) as e:
        logger.error(
            "Pipeline failed",
            extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            exc_info=True,
        )
        return 1
    finally:
        clear_correlation_ids()

    print(
        f"Admitted {summary['admitted']} postings from {summary['search_units']} "
        f"searches, delivered {summary['delivered']}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
