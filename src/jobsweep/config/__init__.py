"""
Configuration Module for jobsweep.

This module re-exports the run input schema, the core data types and the
configuration loader:

- request_schemas.py: RunInput validation model
- models.py: SearchUnit, ExecutionRequest, FilterSpec, Budget, ExternalRun
- loader.py: get_merged_config and run input loading
- settings.py / paths.py / headers.py: constants

For new code, import directly from the focused modules:
    from jobsweep.config.models import SearchUnit
    from jobsweep.config.loader import get_merged_config
"""

from jobsweep.config.models import (
    SearchUnit,
    ExecutionRequest,
    FilterSpec,
    Budget,
    RunStatus,
    ExternalRun,
)

from jobsweep.config.request_schemas import RunInput

from jobsweep.config.loader import (
    AppConfig,
    DatagolConfig,
    ScraperConfig,
    get_merged_config,
    load_run_input,
)

__all__ = [
    # Core data types
    "SearchUnit",
    "ExecutionRequest",
    "FilterSpec",
    "Budget",
    "RunStatus",
    "ExternalRun",
    # Request schemas
    "RunInput",
    # Loader
    "AppConfig",
    "DatagolConfig",
    "ScraperConfig",
    "get_merged_config",
    "load_run_input",
]
