"""
Validation Constants for Run Input Validation.

This module contains the constants used when validating the run input.
These constants define valid kinds, ranges, and constraints for input fields.
"""

# Kinds of values served by the filter-value source
VALID_FILTER_KINDS = {"job_titles", "locations", "excluded_companies"}

# Budget of admitted postings (inclusive range)
VALID_TOTAL_JOBS_RANGE = range(1, 10_001)

# Concurrency ceiling per batch (inclusive range)
VALID_MAX_CONCURRENT_RANGE = range(1, 101)

# Provider memory options accepted by Apify, in megabytes
VALID_SCRAPER_MEMORY_MBYTES = {128, 256, 512, 1024, 2048, 4096, 8192, 16384, 32768}

# Recency window bounds, in hours (one hour to thirty days)
VALID_POSTED_IN_LAST_HOURS_RANGE = range(1, 721)
