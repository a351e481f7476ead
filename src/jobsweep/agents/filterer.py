"""
Posting filter pipeline.

FUNCTIONS:
    1. passes_filters     (public use)
    2. posting_date       (internal use)

Rules, applied in order and short-circuiting on the first failure:
    1. the posting must name a company
    2. the company must not contain an excluded company (case-insensitive substring)
    3. title + description must not mention an excluded company as a whole word
    4. with allowed locations, the location must contain one of them
    5. a parseable posting date must fall inside the recency window
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jobsweep.config.models import FilterSpec, parse_timestamp

# Posting fields that may carry the publication date, in order of preference
DATE_FIELDS = ("publishedAt", "postedDate")

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def posting_date(posting: Dict[str, Any]) -> Optional[datetime]:
    """Return the latest moment the posting can have been published, or None.

    A date without a time ("2026-10-18") stands for the whole day, so it
    resolves to the end of that day (UTC).
    """
    for name in DATE_FIELDS:
        value = posting.get(name)
        parsed = parse_timestamp(value)
        if parsed is None:
            continue
        if isinstance(value, str) and DATE_ONLY.match(value.strip()):
            return parsed + timedelta(days=1)
        return parsed
    return None


def _mentions(text: str, name: str) -> bool:
    """Whole-word match, so "ey" does not match "they"."""
    return re.search(rf"(?<!\w){re.escape(name)}(?!\w)", text) is not None


def passes_filters(
    posting: Dict[str, Any], spec: FilterSpec, now: Optional[datetime] = None
) -> bool:
    """Decide whether a posting is kept.

    Args:
        posting (Dict): Raw posting from the provider.
        spec (FilterSpec): Exclusions, allowed locations and recency window.
        now (datetime): Reference time of the recency check (defaults to now, UTC).

    Returns:
        bool: True if the posting passes every rule.
    """
    company = (posting.get("companyName") or "").strip()
    if not company:
        return False

    excluded = [c.strip().lower() for c in spec.excluded_companies if c and c.strip()]

    company_lower = company.lower()
    if any(name in company_lower for name in excluded):
        return False

    # The exclusion list doubles as a keyword blocklist
    text = f"{posting.get('title') or ''} {posting.get('description') or ''}".lower()
    if any(_mentions(text, name) for name in excluded):
        return False

    allowed = [loc.lower() for loc in spec.allowed_locations if loc and loc.strip()]
    if allowed:
        location = (posting.get("location") or "").lower()
        if not any(loc in location for loc in allowed):
            return False

    published = posting_date(posting)
    if published is not None:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(
            hours=spec.posted_in_last_hours
        )
        if published < cutoff:
            return False

    return True
