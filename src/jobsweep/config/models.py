"""
Core data types shared by the search pipeline.

A RawPosting is not modelled: postings stay plain dicts exactly as the
provider returned them, so that every provider-defined field reaches the sink.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SearchUnit:
    """One (job title, location) pair to be searched."""

    title: str
    location: str


@dataclass(frozen=True)
class ExecutionRequest:
    """Canonical input of one provider run."""

    title: str
    location: str
    result_limit: int
    recency_window_hours: int

    @property
    def recency_window(self) -> str:
        # LinkedIn "posted within" filter, e.g. "r86400" for the last 24 hours
        return f"r{self.recency_window_hours * 3600}"

    def to_actor_input(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "location": self.location,
            "rows": self.result_limit,
            "publishedAt": self.recency_window,
        }


@dataclass(frozen=True)
class FilterSpec:
    """Posting filters applied before deduplication. Immutable per run."""

    excluded_companies: Tuple[str, ...] = ()
    allowed_locations: Tuple[str, ...] = ()
    posted_in_last_hours: int = 24


@dataclass(frozen=True)
class Budget:
    """Global cap on admitted postings and the per-batch concurrency ceiling."""

    total_jobs_to_fetch: int
    max_concurrent: int


class RunStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @classmethod
    def from_provider(cls, status: Optional[str]) -> "RunStatus":
        """Map an Apify run status onto the four states the pipeline cares about."""
        status = (status or "").upper()
        if status == "READY":
            return cls.QUEUED
        if status == "RUNNING":
            return cls.RUNNING
        if status == "SUCCEEDED":
            return cls.SUCCEEDED
        # FAILED, TIMED-OUT, ABORTED and the transitional TIMING-OUT / ABORTING
        return cls.FAILED


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into an aware datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class ExternalRun:
    """A provider execution. Owned by the provider; only read here."""

    id: str
    status: RunStatus
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    input: Optional[Dict[str, Any]] = None
    result_set_id: Optional[str] = None
    provider_status: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_api(
        cls, data: Dict[str, Any], run_input: Optional[Dict[str, Any]] = None
    ) -> "ExternalRun":
        """Build a run from an Apify run object."""
        return cls(
            id=data.get("id", ""),
            status=RunStatus.from_provider(data.get("status")),
            started_at=parse_timestamp(data.get("startedAt")),
            finished_at=parse_timestamp(data.get("finishedAt")),
            input=run_input if run_input is not None else data.get("input"),
            result_set_id=data.get("defaultDatasetId"),
            provider_status=data.get("status"),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in (RunStatus.SUCCEEDED, RunStatus.FAILED)
