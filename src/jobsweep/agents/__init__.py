"""
Agents Module for jobsweep.

- searcher.py: SearcherService, batched provider searches under a global budget
- filterer.py: posting filter rules
- deduplicator.py: per-invocation posting identity
"""

from jobsweep.agents.deduplicator import Deduplicator, posting_key
from jobsweep.agents.filterer import passes_filters
from jobsweep.agents.searcher import SearcherService, build_search_space

__all__ = [
    "SearcherService",
    "build_search_space",
    "passes_filters",
    "Deduplicator",
    "posting_key",
]
