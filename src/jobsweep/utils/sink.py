"""
DataGOL Sink.

Writes admitted postings to the DataGOL job postings table, one row per
request. A failed row is logged and skipped; the remaining rows are still
written.
"""

from typing import Any, Dict, Iterable, Optional

import requests

from jobsweep.config import settings
from jobsweep.config.headers import datagol_headers
from jobsweep.config.loader import DatagolConfig
from jobsweep.config.paths import DATAGOL_WRITE_URL_TEMPLATE
from jobsweep.utils.exceptions import SinkEmissionError
from jobsweep.utils.logger import get_logger
from jobsweep.utils.report_rows import build_report_row

logger = get_logger(__name__)


class DataGolSink:
    """Delivers postings to DataGOL.

    Args:
        config (DatagolConfig): Base URL, workspace, token and table ids.
        session (requests.Session): Optional session to reuse connections.
    """

    def __init__(
        self, config: DatagolConfig, session: Optional[requests.Session] = None
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    # ------------------------------
    # Public interface
    # ------------------------------
    def emit(self, postings: Iterable[Dict[str, Any]]) -> int:
        """Write every posting and return the number of rows delivered."""
        if not (
            self.config.workspace_id
            and self.config.write_token
            and self.config.job_postings_table_id
        ):
            logger.error(
                "DataGOL workspace id, write token or table id missing, nothing delivered"
            )
            return 0

        url = DATAGOL_WRITE_URL_TEMPLATE.format(
            base_url=self.config.base_url,
            workspace_id=self.config.workspace_id,
            table_id=self.config.job_postings_table_id,
        )
        headers = datagol_headers(self.config.write_token)

        delivered = 0
        failed = 0
        for posting in postings:
            row = build_report_row(posting)
            if row is None:
                logger.warning(
                    "Posting has no data to save, skipping",
                    extra={"extra_fields": {"job_url": posting.get("jobUrl")}},
                )
                continue
            try:
                self._post_row(url, headers, row, posting)
            except SinkEmissionError as e:
                failed += 1
                logger.error(
                    "Failed to save posting",
                    extra={
                        "extra_fields": {
                            "error": str(e),
                            "title": posting.get("title"),
                            "company": posting.get("companyName"),
                        }
                    },
                )
                continue
            delivered += 1

        logger.info(
            "Postings delivered",
            extra={"extra_fields": {"delivered": delivered, "failed": failed}},
        )
        return delivered

    # ------------------------------
    # Internal functions
    # ------------------------------
    def _post_row(
        self,
        url: str,
        headers: Dict[str, str],
        row: Dict[str, Any],
        posting: Dict[str, Any],
    ) -> None:
        """Send one row.

        Raises:
            SinkEmissionError: On a transport error or a non-2xx status.
        """
        try:
            response = self.session.post(
                url, headers=headers, json=row, timeout=settings.SINK_TIMEOUT_SECS
            )
        except requests.RequestException as e:
            raise SinkEmissionError(
                f"Request failed for {posting.get('jobUrl')}: {e}"
            ) from e

        if not 200 <= response.status_code < 300:
            preview = response.text[:500] if response.text else ""
            raise SinkEmissionError(
                f"DataGOL responded {response.status_code}: {preview}"
            )
