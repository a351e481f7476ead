"""
Filter-value source.

Reads the job titles, locations and excluded companies maintained in DataGOL
tables. Any failure (missing configuration, HTTP error, unexpected payload)
yields an empty list, which callers treat as "use the defaults".

Field fallbacks per kind (first non-empty wins):
    job_titles:          "Job Title", "title", "name", "jobTitle"
    locations:           "City", "location", "city", "name"
    excluded_companies:  "name", "company", "companyName"
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import requests

from jobsweep.config import settings
from jobsweep.config.headers import datagol_headers
from jobsweep.config.loader import DatagolConfig
from jobsweep.config.models import FilterSpec
from jobsweep.config.paths import DATAGOL_READ_URL_TEMPLATE
from jobsweep.config.request_schemas import RunInput
from jobsweep.config.validation_constants import VALID_FILTER_KINDS
from jobsweep.utils.logger import get_logger

logger = get_logger(__name__)

FIELD_FALLBACKS: Dict[str, Tuple[str, ...]] = {
    "job_titles": ("Job Title", "title", "name", "jobTitle"),
    "locations": ("City", "location", "city", "name"),
    "excluded_companies": ("name", "company", "companyName"),
}


def _extract_rows(body: Any) -> List[Any]:
    """Find the row list in a DataGOL response body."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for key in ("data", "list", "items"):
            if isinstance(body.get(key), list):
                return body[key]
    return []


def extract_values(rows: List[Any], kind: str) -> List[str]:
    """Pick the value of each row, trimmed, blanks dropped, order-preserving unique."""
    values: List[str] = []
    seen = set()
    for row in rows:
        if not isinstance(row, dict):
            continue
        for field_name in FIELD_FALLBACKS[kind]:
            value = row.get(field_name)
            if isinstance(value, str) and value.strip():
                value = value.strip()
                if value not in seen:
                    seen.add(value)
                    values.append(value)
                break
    return values


class FilterValueSource:
    """Fetches filter values from DataGOL tables.

    Args:
        config (DatagolConfig): Base URL, workspace, token and table ids.
        session (requests.Session): Optional session to reuse connections.
    """

    def __init__(
        self, config: DatagolConfig, session: Optional[requests.Session] = None
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _table_id(self, kind: str) -> Optional[str]:
        return {
            "job_titles": self.config.job_titles_table_id,
            "locations": self.config.locations_table_id,
            "excluded_companies": self.config.excluded_companies_table_id,
        }.get(kind)

    def get_filter_values(self, kind: str) -> List[str]:
        """Return the values of one kind, or [] on any failure.

        Args:
            kind (str): One of "job_titles", "locations", "excluded_companies".
        """
        if kind not in VALID_FILTER_KINDS:
            raise ValueError(
                f"Invalid filter kind: {kind}. Valid kinds: {sorted(VALID_FILTER_KINDS)}"
            )

        table_id = self._table_id(kind)
        if not table_id:
            logger.warning("No table id configured", extra={"extra_fields": {"kind": kind}})
            return []
        if not self.config.workspace_id or not self.config.write_token:
            logger.warning(
                "Missing DataGOL workspace id or token",
                extra={"extra_fields": {"kind": kind}},
            )
            return []

        url = DATAGOL_READ_URL_TEMPLATE.format(
            base_url=self.config.base_url,
            workspace_id=self.config.workspace_id,
            table_id=table_id,
        )
        try:
            logger.info("Fetching %s from DataGOL", kind)
            response = self.session.post(
                url,
                headers=datagol_headers(self.config.write_token),
                json={
                    "requestPageDetails": {
                        "pageNumber": 1,
                        "pageSize": settings.FILTER_VALUES_PAGE_SIZE,
                    }
                },
                timeout=settings.FILTER_VALUES_TIMEOUT_SECS,
            )
            if response.status_code != 200:
                logger.warning(
                    "Unexpected DataGOL response",
                    extra={
                        "extra_fields": {
                            "kind": kind,
                            "status_code": response.status_code,
                            "response_preview": (
                                response.text[:500] if response.text else None
                            ),
                        }
                    },
                )
                return []
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(
                "Failed to fetch filter values",
                extra={
                    "extra_fields": {
                        "kind": kind,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                },
            )
            return []

        values = extract_values(_extract_rows(body), kind)
        if not values:
            logger.warning("No values found", extra={"extra_fields": {"kind": kind}})
        else:
            logger.info("Fetched %d %s from DataGOL", len(values), kind)
        return values


async def resolve_filters(
    run_input: RunInput, source: Optional[FilterValueSource]
) -> Tuple[List[str], List[str], FilterSpec]:
    """Resolve titles, locations and the filter spec for a run.

    Precedence per kind: explicit run input, then DataGOL, then defaults.
    Excluded companies are never taken from the run input.

    Returns:
        Tuple: (titles, locations, filter_spec)
    """
    if source is not None:
        fetched_titles, fetched_locations, fetched_companies = await asyncio.gather(
            asyncio.to_thread(source.get_filter_values, "job_titles"),
            asyncio.to_thread(source.get_filter_values, "locations"),
            asyncio.to_thread(source.get_filter_values, "excluded_companies"),
        )
    else:
        fetched_titles, fetched_locations, fetched_companies = [], [], []

    titles = run_input.job_titles or fetched_titles or list(settings.DEFAULT_JOB_TITLES)
    locations = (
        run_input.locations or fetched_locations or list(settings.DEFAULT_LOCATIONS)
    )
    excluded = fetched_companies or list(settings.DEFAULT_EXCLUDED_COMPANIES)

    filter_spec = FilterSpec(
        excluded_companies=tuple(excluded),
        allowed_locations=tuple(locations),
        posted_in_last_hours=run_input.posted_in_last_hours,
    )
    logger.info(
        "Filters resolved",
        extra={
            "extra_fields": {
                "job_titles": len(titles),
                "locations": len(locations),
                "excluded_companies": len(excluded),
                "titles_from": "input" if run_input.job_titles else (
                    "datagol" if fetched_titles else "defaults"
                ),
            }
        },
    )
    return titles, locations, filter_spec
