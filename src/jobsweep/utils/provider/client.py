"""
Apify Provider Client.

This module wraps the parts of the Apify REST API v2 the pipeline needs:
starting an actor run and waiting for it, listing recent runs, reading one
run together with its input, and reading the items of a dataset.

The client is synchronous (requests). The async pipeline calls it through
asyncio.to_thread so that the event loop is never blocked.

ENDPOINTS:
    Start run:        POST /acts/{actor}/runs?memory=..&timeout=..
    Wait for run:     GET  /actor-runs/{run_id}?waitForFinish=60
    List runs:        GET  /acts/{actor}/runs?limit=..&desc=1&status=..
    Run input:        GET  /key-value-stores/{store_id}/records/INPUT
    Dataset items:    GET  /datasets/{dataset_id}/items?clean=1&format=json
"""

import time
from typing import Any, Dict, List, Optional

import requests

from jobsweep.config import settings
from jobsweep.config.headers import apify_headers
from jobsweep.config.models import ExternalRun, RunStatus
from jobsweep.config.paths import APIFY_API_BASE_URL
from jobsweep.utils.exceptions import (
    ConfigurationError,
    ExecutionFailure,
    ProviderDetailError,
    ProviderListError,
)
from jobsweep.utils.logger import get_logger

logger = get_logger(__name__)

# Longest server-side wait Apify grants per request, in seconds
WAIT_FOR_FINISH_SECS = 60


def _actor_path(actor_id: str) -> str:
    """Apify expects "user~name" in URL paths instead of "user/name"."""
    return actor_id.replace("/", "~")


class ProviderClient:
    """Thin client for the Apify REST API.

    Args:
        token (str): Apify API token.
        base_url (str): API base URL (overridable for tests).
        session (requests.Session): Optional session to reuse connections.
        retries (int): Attempts per request on connection errors, 429 and 5xx.
        backoff (float): Backoff multiplier between attempts, in seconds.
    """

    def __init__(
        self,
        token: Optional[str],
        base_url: str = APIFY_API_BASE_URL,
        session: Optional[requests.Session] = None,
        retries: int = 3,
        backoff: float = 1.0,
    ) -> None:
        if not token:
            raise ConfigurationError("APIFY_TOKEN is not set")
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(apify_headers(token))
        self.retries = retries
        self.backoff = backoff

    # ------------------------------
    # Public interface
    # ------------------------------
    def start_run(
        self,
        actor_id: str,
        actor_input: Dict[str, Any],
        memory_mbytes: int,
        timeout_secs: int,
    ) -> ExternalRun:
        """Start an actor run and block until it reaches a terminal status.

        The timeout is enforced by the provider; this method only polls.

        Raises:
            ExecutionFailure: If the run ends in any status but SUCCEEDED.
            requests.RequestException: If the provider cannot be reached.
        """
        data = self._request(
            "POST",
            f"/acts/{_actor_path(actor_id)}/runs",
            params={"memory": memory_mbytes, "timeout": timeout_secs},
            json=actor_input,
        )
        run = ExternalRun.from_api(data, run_input=actor_input)
        logger.info(
            "Provider run started",
            extra={"extra_fields": {"run_id": run.id, "actor_id": actor_id}},
        )

        while not run.is_terminal:
            data = self._request(
                "GET",
                f"/actor-runs/{run.id}",
                params={"waitForFinish": WAIT_FOR_FINISH_SECS},
            )
            run = ExternalRun.from_api(data, run_input=actor_input)

        if run.status != RunStatus.SUCCEEDED:
            raise ExecutionFailure(run.id, run.provider_status)
        return run

    def list_runs(
        self, actor_id: str, limit: int, status: Optional[str] = "SUCCEEDED"
    ) -> List[ExternalRun]:
        """List the most recent runs of an actor, newest first.

        Raises:
            ProviderListError: If the runs cannot be listed.
        """
        params: Dict[str, Any] = {"limit": limit, "desc": 1}
        if status:
            params["status"] = status
        try:
            data = self._request("GET", f"/acts/{_actor_path(actor_id)}/runs", params=params)
        except requests.RequestException as e:
            raise ProviderListError(
                f"Failed to list runs for actor {actor_id}: {e}"
            ) from e
        return [ExternalRun.from_api(item) for item in data.get("items", [])]

    def get_run(self, run_id: str) -> ExternalRun:
        """Fetch one run together with the input it was started with.

        Raises:
            ProviderDetailError: If the run or its input cannot be fetched.
        """
        try:
            data = self._request("GET", f"/actor-runs/{run_id}")
            run_input = None
            store_id = data.get("defaultKeyValueStoreId")
            if store_id:
                run_input = self._request(
                    "GET",
                    f"/key-value-stores/{store_id}/records/INPUT",
                    unwrap=False,
                )
        except requests.RequestException as e:
            raise ProviderDetailError(f"Failed to fetch run {run_id}: {e}") from e
        return ExternalRun.from_api(data, run_input=run_input)

    def get_dataset_items(self, dataset_id: str) -> List[Dict[str, Any]]:
        """Read every item of a dataset."""
        items = self._request(
            "GET",
            f"/datasets/{dataset_id}/items",
            params={"clean": 1, "format": "json"},
            unwrap=False,
        )
        if not isinstance(items, list):
            logger.warning(
                "Unexpected dataset payload",
                extra={
                    "extra_fields": {
                        "dataset_id": dataset_id,
                        "payload_type": type(items).__name__,
                    }
                },
            )
            return []
        logger.info(
            "Dataset read",
            extra={"extra_fields": {"dataset_id": dataset_id, "items": len(items)}},
        )
        return items

    # ------------------------------
    # Internal functions
    # ------------------------------
    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        unwrap: bool = True,
    ) -> Any:
        """Send one request with retry logic and return the decoded body.

        Apify wraps most objects in {"data": ...}; unwrap removes that envelope.

        Raises:
            requests.RequestException: After the last failed attempt.
        """
        url = f"{self.base_url}{path}"
        for attempt in range(1, self.retries + 1):
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    timeout=settings.PROVIDER_TIMEOUT_SECS,
                )
                if response.status_code == 429 or response.status_code >= 500:
                    logger.warning(
                        "Rate-limited or provider unavailable (status %s) for %s. Backing off",
                        response.status_code,
                        path,
                        extra={
                            "extra_fields": {
                                "status_code": response.status_code,
                                "attempt": attempt,
                            }
                        },
                    )
                    if attempt < self.retries:
                        time.sleep(self.backoff * attempt)
                        continue
                response.raise_for_status()
                body = response.json()
                return body.get("data", body) if unwrap and isinstance(body, dict) else body
            except (requests.ConnectionError, requests.Timeout) as e:
                logger.warning(
                    "Request failed (attempt %s/%s) for %s: %s",
                    attempt,
                    self.retries,
                    path,
                    str(e),
                    extra={
                        "extra_fields": {
                            "attempt": attempt,
                            "max_retries": self.retries,
                            "error_type": type(e).__name__,
                        }
                    },
                )
                if attempt >= self.retries:
                    raise
                time.sleep(self.backoff * attempt)
        # Unreachable: the last attempt either returns or raises
        raise requests.RequestException(f"No response for {method} {path}")
