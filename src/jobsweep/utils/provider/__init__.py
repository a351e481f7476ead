"""
Provider access: the Apify client, the run reuse cache and the job runner.
"""

from jobsweep.utils.provider.cache import RunReuseCache
from jobsweep.utils.provider.client import ProviderClient
from jobsweep.utils.provider.runner import ExternalJobRunner

__all__ = ["ProviderClient", "RunReuseCache", "ExternalJobRunner"]
