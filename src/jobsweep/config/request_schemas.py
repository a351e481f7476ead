"""
Request Schemas for Run Input Validation.

This module defines the Pydantic model that validates the run input handed to
the pipeline (an Apify actor input, or a local JSON file). It handles the
conversion between the camelCase keys of the input and backend snake_case,
and validates data types and constraints.

Key Models:
    - RunInput: Main model for validating a complete run input

Note:
    Every field is optional. Missing values fall back to the defaults in
    jobsweep.config.settings and jobsweep.config.paths. Unknown keys are
    ignored so that older inputs keep working.
"""

from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    ConfigDict,
)

from jobsweep.config import paths, settings
from jobsweep.config.validation_constants import (
    VALID_TOTAL_JOBS_RANGE,
    VALID_MAX_CONCURRENT_RANGE,
    VALID_SCRAPER_MEMORY_MBYTES,
    VALID_POSTED_IN_LAST_HOURS_RANGE,
)


class RunInput(BaseModel):
    """
    Validates the run input.

    Examples:
        {"jobTitles": ["Accountant"], "locations": ["Brussels"], "totalJobsToFetch": 20}
        {"maxConcurrentScrapers": 4, "dryRun": true}
    """

    job_titles: Optional[List[str]] = Field(default=None, alias="jobTitles")
    locations: Optional[List[str]] = Field(default=None, alias="locations")
    rows: Optional[int] = Field(default=None, alias="rows", ge=1)

    total_jobs_to_fetch: int = Field(
        default=settings.TOTAL_JOBS_TO_FETCH, alias="totalJobsToFetch"
    )
    max_concurrent_scrapers: int = Field(
        default=settings.MAX_CONCURRENT_SCRAPERS, alias="maxConcurrentScrapers"
    )
    scraper_timeout_secs: int = Field(
        default=settings.SCRAPER_TIMEOUT_SECS, alias="scraperTimeoutSecs", ge=1
    )
    scraper_memory: int = Field(
        default=settings.SCRAPER_MEMORY_MBYTES, alias="scraperMemory"
    )
    posted_in_last_hours: int = Field(
        default=settings.POSTED_IN_LAST_HOURS, alias="postedInLastHours"
    )
    reuse_recent_runs: bool = Field(default=True, alias="reuseRecentRuns")
    dry_run: bool = Field(default=False, alias="dryRun")

    datagol_api_base_url: str = Field(
        default=paths.DATAGOL_API_BASE_URL, alias="datagolApiBaseUrl"
    )
    job_titles_table_id: str = Field(
        default=paths.JOB_TITLES_TABLE_ID, alias="jobTitlesTableId"
    )
    locations_table_id: str = Field(
        default=paths.LOCATIONS_TABLE_ID, alias="locationsTableId"
    )
    excluded_companies_table_id: str = Field(
        default=paths.EXCLUDED_COMPANIES_TABLE_ID, alias="excludedCompaniesTableId"
    )
    job_postings_table_id: str = Field(
        default=paths.JOB_POSTINGS_TABLE_ID, alias="jobPostingsTableId"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @field_validator("job_titles", "locations", mode="before")
    @classmethod
    def clean_string_list(cls, v: Any) -> Optional[List[str]]:
        """Strip entries and drop blanks; an empty result means "not provided"."""
        if v is None:
            return None
        if not isinstance(v, list):
            raise ValueError("must be an array of strings")
        cleaned = [item.strip() for item in v if isinstance(item, str) and item.strip()]
        return cleaned or None

    @field_validator("total_jobs_to_fetch")
    @classmethod
    def validate_total_jobs(cls, v: int) -> int:
        if v not in VALID_TOTAL_JOBS_RANGE:
            raise ValueError(
                f"totalJobsToFetch must be between {VALID_TOTAL_JOBS_RANGE.start} "
                f"and {VALID_TOTAL_JOBS_RANGE.stop - 1}, got {v}"
            )
        return v

    @field_validator("max_concurrent_scrapers")
    @classmethod
    def validate_max_concurrent(cls, v: int) -> int:
        if v not in VALID_MAX_CONCURRENT_RANGE:
            raise ValueError(
                f"maxConcurrentScrapers must be between {VALID_MAX_CONCURRENT_RANGE.start} "
                f"and {VALID_MAX_CONCURRENT_RANGE.stop - 1}, got {v}"
            )
        return v

    @field_validator("scraper_timeout_secs")
    @classmethod
    def clamp_timeout(cls, v: int) -> int:
        # Longer runs are capped rather than rejected
        return min(v, settings.MAX_SCRAPER_TIMEOUT_SECS)

    @field_validator("scraper_memory")
    @classmethod
    def validate_memory(cls, v: int) -> int:
        if v not in VALID_SCRAPER_MEMORY_MBYTES:
            raise ValueError(
                f"scraperMemory must be a power of two between 128 and 32768, got {v}"
            )
        return v

    @field_validator("posted_in_last_hours")
    @classmethod
    def validate_posted_in_last_hours(cls, v: int) -> int:
        if v not in VALID_POSTED_IN_LAST_HOURS_RANGE:
            raise ValueError(
                f"postedInLastHours must be between {VALID_POSTED_IN_LAST_HOURS_RANGE.start} "
                f"and {VALID_POSTED_IN_LAST_HOURS_RANGE.stop - 1}, got {v}"
            )
        return v
