"""
Run Reuse Cache.

Before a new provider run is started, the most recent successful runs of the
same actor are inspected. A run started inside the lookback window whose
input is equivalent to the current request is reused instead of paying for a
new one.

Equivalence is exact equality on title, location and rows. A different
"rows" value therefore prevents reuse even when the search is otherwise the
same.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import requests

from jobsweep.config import settings
from jobsweep.config.models import ExecutionRequest, ExternalRun
from jobsweep.utils.exceptions import ProviderDetailError, ProviderListError
from jobsweep.utils.logger import get_logger

logger = get_logger(__name__)

EQUIVALENCE_FIELDS = ("title", "location", "rows")


def is_equivalent_input(current: Dict[str, Any], recorded: Dict[str, Any]) -> bool:
    """Exact field equality on the fields that define a search."""
    return all(current.get(name) == recorded.get(name) for name in EQUIVALENCE_FIELDS)


class RunReuseCache:
    """Looks up a recent, input-equivalent successful provider run.

    Args:
        client: Provider client exposing list_runs and get_run.
        actor_id (str): The provider actor whose runs are inspected.
        lookback (timedelta): Age limit of a reusable run.
        list_limit (int): How many recent runs are listed.
    """

    def __init__(
        self,
        client,
        actor_id: str,
        lookback: timedelta = timedelta(hours=settings.RUN_REUSE_LOOKBACK_HOURS),
        list_limit: int = settings.RUN_REUSE_LIST_LIMIT,
    ) -> None:
        self.client = client
        self.actor_id = actor_id
        self.lookback = lookback
        self.list_limit = list_limit

    async def find(
        self, request: ExecutionRequest, now: Optional[datetime] = None
    ) -> Optional[ExternalRun]:
        """Return the newest equivalent successful run inside the window, or None.

        Raises:
            ProviderListError: If recent runs cannot be listed.
        """
        cutoff = (now or datetime.now(timezone.utc)) - self.lookback
        current_input = request.to_actor_input()

        try:
            runs = await asyncio.to_thread(
                self.client.list_runs, self.actor_id, self.list_limit, "SUCCEEDED"
            )
        except ProviderListError:
            logger.error(
                "Failed to list recent runs, not retrying",
                extra={"extra_fields": {"actor_id": self.actor_id}},
            )
            raise
        except requests.RequestException as e:
            logger.error(
                "Failed to list recent runs, not retrying",
                extra={"extra_fields": {"actor_id": self.actor_id, "error": str(e)}},
            )
            raise ProviderListError(
                f"Failed to list runs for actor {self.actor_id}: {e}"
            ) from e

        # Runs arrive newest first, so the first match is the newest one
        for run in runs:
            if run.started_at is None:
                logger.warning(
                    "Run has no usable start timestamp, skipping",
                    extra={"extra_fields": {"run_id": run.id}},
                )
                continue

            if run.started_at < cutoff:
                logger.info(
                    "Remaining runs are older than the lookback window",
                    extra={
                        "extra_fields": {
                            "run_id": run.id,
                            "started_at": run.started_at.isoformat(),
                        }
                    },
                )
                break

            try:
                detail = await asyncio.to_thread(self.client.get_run, run.id)
            except (ProviderDetailError, requests.RequestException) as e:
                logger.error(
                    "Failed to fetch run detail, skipping",
                    extra={"extra_fields": {"run_id": run.id, "error": str(e)}},
                )
                continue

            if not detail or not detail.input:
                logger.warning(
                    "Run detail has no input, skipping",
                    extra={"extra_fields": {"run_id": run.id}},
                )
                continue

            if is_equivalent_input(current_input, detail.input):
                logger.info(
                    "Reusing recent run",
                    extra={
                        "extra_fields": {
                            "run_id": run.id,
                            "title": request.title,
                            "location": request.location,
                        }
                    },
                )
                return detail

        logger.info(
            "No reusable run found",
            extra={
                "extra_fields": {
                    "actor_id": self.actor_id,
                    "title": request.title,
                    "location": request.location,
                }
            },
        )
        return None
