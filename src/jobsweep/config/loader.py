"""
Run configuration loading.

Merges the validated run input with secrets and workspace identifiers taken
from environment variables (optionally loaded from a .env file).

Environment Variables:
    APIFY_TOKEN: Apify API token used to start and inspect provider runs
    DATAGOL_WORKSPACE_ID: DataGOL workspace holding the filter and posting tables
    DATAGOL_WRITE_TOKEN: DataGOL token used for both reads and writes
    JOBSWEEP_INPUT: Path of the run input JSON file (optional)
    APIFY_TIMEOUT_AT: ISO timestamp at which the hosting platform stops the run
"""

import json
import os
from dataclasses import dataclass
from math import ceil
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import ValidationError

from jobsweep.config import paths, settings
from jobsweep.config.request_schemas import RunInput
from jobsweep.utils.exceptions import ConfigurationError
from jobsweep.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DatagolConfig:
    base_url: str
    workspace_id: Optional[str]
    write_token: Optional[str]
    job_titles_table_id: str
    locations_table_id: str
    excluded_companies_table_id: str
    job_postings_table_id: str


@dataclass(frozen=True)
class ScraperConfig:
    actor_id: str
    apify_token: Optional[str]
    total_jobs_to_fetch: int
    max_concurrent: int
    timeout_secs: int
    memory_mbytes: int
    rows: int
    posted_in_last_hours: int
    reuse_recent_runs: bool


@dataclass(frozen=True)
class AppConfig:
    run_input: RunInput
    datagol: DatagolConfig
    scraper: ScraperConfig
    dry_run: bool = False


def load_run_input(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Read the raw run input.

    Resolution order: explicit path, JOBSWEEP_INPUT, the local Apify storage
    record. Returns an empty dict when none of them exists.

    Raises:
        ConfigurationError: If the file exists but is not a JSON object.
    """
    candidate = path or os.environ.get("JOBSWEEP_INPUT")
    if candidate is None:
        if not paths.DEFAULT_INPUT_PATH.exists():
            logger.info("No run input found, using defaults")
            return {}
        candidate = paths.DEFAULT_INPUT_PATH

    try:
        with open(candidate, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read run input {candidate}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Run input {candidate} must be a JSON object")

    logger.info("Loaded run input from %s", candidate)
    return data


def get_merged_config(raw_input: Optional[Dict[str, Any]] = None) -> AppConfig:
    """Merge the run input with defaults and environment variables.

    Args:
        raw_input: The run input as a dict (camelCase keys).

    Returns:
        AppConfig: The merged configuration.

    Raises:
        ConfigurationError: If the run input fails validation.
    """
    load_dotenv()

    try:
        run_input = RunInput.model_validate(raw_input or {})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid run input: {e}") from e

    datagol = DatagolConfig(
        base_url=run_input.datagol_api_base_url.rstrip("/"),
        workspace_id=os.environ.get("DATAGOL_WORKSPACE_ID"),
        write_token=os.environ.get("DATAGOL_WRITE_TOKEN"),
        job_titles_table_id=run_input.job_titles_table_id,
        locations_table_id=run_input.locations_table_id,
        excluded_companies_table_id=run_input.excluded_companies_table_id,
        job_postings_table_id=run_input.job_postings_table_id,
    )
    scraper = ScraperConfig(
        actor_id=settings.ACTOR_ID,
        apify_token=os.environ.get("APIFY_TOKEN"),
        total_jobs_to_fetch=run_input.total_jobs_to_fetch,
        max_concurrent=run_input.max_concurrent_scrapers,
        timeout_secs=run_input.scraper_timeout_secs,
        memory_mbytes=run_input.scraper_memory,
        rows=run_input.rows or run_input.total_jobs_to_fetch,
        posted_in_last_hours=run_input.posted_in_last_hours,
        reuse_recent_runs=run_input.reuse_recent_runs,
    )
    config = AppConfig(
        run_input=run_input, datagol=datagol, scraper=scraper, dry_run=run_input.dry_run
    )

    # Log the configuration, hiding secrets
    logger.info(
        "Configuration loaded",
        extra={
            "extra_fields": {
                "datagol_base_url": datagol.base_url,
                "datagol_workspace_id": "Provided" if datagol.workspace_id else "Missing",
                "datagol_write_token": "Provided" if datagol.write_token else "Missing",
                "apify_token": "Provided" if scraper.apify_token else "Missing",
                "actor_id": scraper.actor_id,
                "total_jobs_to_fetch": scraper.total_jobs_to_fetch,
                "max_concurrent": scraper.max_concurrent,
                "timeout_secs": scraper.timeout_secs,
                "rows": scraper.rows,
                "dry_run": config.dry_run,
            }
        },
    )
    return config


def expected_run_seconds(num_units: int, max_concurrent: int, timeout_secs: int) -> int:
    """Worst-case wall time of a run: every batch hits the provider timeout."""
    batches = ceil(num_units / max_concurrent) if num_units else 0
    return batches * timeout_secs + settings.RUN_DURATION_SLACK_SECS
