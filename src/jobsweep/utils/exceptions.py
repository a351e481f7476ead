"""
Custom exceptions for the jobsweep pipeline.
"""

from typing import Optional


class JobSweepError(Exception):
    """Base class for all pipeline errors."""

    pass


class ConfigurationError(JobSweepError):
    """Raised when the run input or environment is not usable."""

    pass


class EmptySearchSpaceError(JobSweepError):
    """Raised when there are no title/location combinations to search."""

    pass


class ProviderListError(JobSweepError):
    """Raised when recent provider runs cannot be listed. Not retried."""

    pass


class ProviderDetailError(JobSweepError):
    """Raised when the detail of a single provider run cannot be fetched."""

    pass


class ExecutionFailure(JobSweepError):
    """Raised when a provider run terminates without succeeding."""

    def __init__(self, run_id: Optional[str], status: Optional[str]):
        self.run_id = run_id
        self.status = status
        super().__init__(f"Provider run {run_id} finished with status {status}")


class SinkEmissionError(JobSweepError):
    """Raised when a single posting cannot be delivered to the sink."""

    pass
