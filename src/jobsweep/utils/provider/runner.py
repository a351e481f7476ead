"""
External Job Runner.

Issues one provider run for an ExecutionRequest (or reads the dataset of a
reused run) and returns the raw postings.

DESCRIPTION:
    1. A reused run is trusted as is; its dataset is read without re-checking age
    2. A new run is preceded by a small random delay to avoid request bursts
    3. A run that ends unsuccessfully yields no postings instead of an error
"""

import asyncio
import random
from typing import Any, Dict, List, Optional, Tuple

import requests

from jobsweep.config import settings
from jobsweep.config.models import ExecutionRequest, ExternalRun
from jobsweep.utils.exceptions import ExecutionFailure
from jobsweep.utils.logger import get_logger

logger = get_logger(__name__)


class ExternalJobRunner:
    """Runs one search on the provider.

    Args:
        client: Provider client exposing start_run and get_dataset_items.
        actor_id (str): The provider actor to start.
        memory_mbytes (int): Memory passed through to each run.
        timeout_secs (int): Timeout passed through to each run.
        stagger (Tuple[float, float]): Range of the random delay before a new run.
    """

    def __init__(
        self,
        client,
        actor_id: str,
        memory_mbytes: int = settings.SCRAPER_MEMORY_MBYTES,
        timeout_secs: int = settings.SCRAPER_TIMEOUT_SECS,
        stagger: Tuple[float, float] = settings.START_STAGGER_SECS,
    ) -> None:
        self.client = client
        self.actor_id = actor_id
        self.memory_mbytes = memory_mbytes
        self.timeout_secs = timeout_secs
        self.stagger = stagger

    async def run(
        self, request: ExecutionRequest, reused: Optional[ExternalRun] = None
    ) -> List[Dict[str, Any]]:
        """Return the postings for one request.

        Args:
            request: The search to run.
            reused: A recent equivalent run whose results are read instead.

        Returns:
            List[Dict]: Raw postings in provider order; empty if the run failed.
        """
        actor_input = request.to_actor_input()

        if reused is not None:
            logger.info(
                "Reusing results from recent run",
                extra={"extra_fields": {"run_id": reused.id, "input": actor_input}},
            )
            return await self._read_results(reused)

        delay = random.uniform(*self.stagger)
        if delay > 0:
            await asyncio.sleep(delay)

        logger.info(
            "Starting new provider run",
            extra={"extra_fields": {"actor_id": self.actor_id, "input": actor_input}},
        )
        try:
            run = await asyncio.to_thread(
                self.client.start_run,
                self.actor_id,
                actor_input,
                self.memory_mbytes,
                self.timeout_secs,
            )
        except ExecutionFailure as e:
            logger.error(
                "Provider run did not succeed, counting 0 postings",
                extra={
                    "extra_fields": {
                        "run_id": e.run_id,
                        "status": e.status,
                        "input": actor_input,
                    }
                },
            )
            return []
        except requests.RequestException as e:
            logger.error(
                "Provider unreachable, counting 0 postings",
                extra={"extra_fields": {"error": str(e), "input": actor_input}},
            )
            return []

        logger.info(
            "Provider run finished successfully",
            extra={"extra_fields": {"run_id": run.id}},
        )
        return await self._read_results(run)

    async def _read_results(self, run: ExternalRun) -> List[Dict[str, Any]]:
        if not run.result_set_id:
            logger.warning(
                "Run has no dataset",
                extra={"extra_fields": {"run_id": run.id}},
            )
            return []
        try:
            items = await asyncio.to_thread(
                self.client.get_dataset_items, run.result_set_id
            )
        except requests.RequestException as e:
            logger.error(
                "Failed to read run dataset, counting 0 postings",
                extra={
                    "extra_fields": {
                        "run_id": run.id,
                        "dataset_id": run.result_set_id,
                        "error": str(e),
                    }
                },
            )
            return []
        return list(items or [])
