"""
Posting deduplication.

A posting's identity is its job URL without the query string (tracking
parameters differ between searches for the same job). Postings without a URL
fall back to a lower-cased "title|company|location" composite.
"""

from typing import Any, Dict, Set


def posting_key(posting: Dict[str, Any]) -> str:
    """Build the deduplication key of a posting."""
    url = (posting.get("jobUrl") or "").strip()
    if url:
        return url.split("?", 1)[0]

    title = posting.get("title") or ""
    company = posting.get("companyName") or ""
    location = posting.get("location") or ""
    return f"{title}|{company}|{location}".lower()


class Deduplicator:
    """Per-invocation set of seen posting keys.

    admit() must never await between the membership check and the insert;
    tasks sharing one event loop then cannot interleave inside it.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def admit(self, posting: Dict[str, Any]) -> bool:
        """Record the posting and return True if its key was unseen."""
        key = posting_key(posting)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __len__(self) -> int:
        return len(self._seen)
