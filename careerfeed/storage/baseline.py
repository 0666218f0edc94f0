"""Baseline summary dataset loader.

The baseline is the immutable seed of the master store: a CSV of summary rows
shipped with the app. Sources are tried in order and the first one that loads
wins. A source is either a local path or an http(s) URL.
"""

import io
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
import pandas as pd
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from careerfeed.models.user import UserSummaryRecord, migrate_legacy_row
from careerfeed.utils.logger import get_logger

logger: Any = get_logger(
    correlation_id="baseline-loader",
    phase="storage",
    component="baseline_loader",
)


class BaselineUnavailableError(Exception):
    """Raised when no baseline source could be loaded."""

    pass


def parse_baseline_csv(source: Any) -> list[UserSummaryRecord]:
    """Parse baseline CSV content into summary records.

    Every column is read as text and blank cells stay empty strings. Rows with
    neither an ``email`` nor an ``email_address`` are dropped, and legacy
    column names are migrated to the canonical schema.

    Args:
        source: Path or file-like object accepted by ``pandas.read_csv``

    Returns:
        List of UserSummaryRecord in file order
    """
    frame = pd.read_csv(source, dtype=str, keep_default_na=False, skipinitialspace=True)
    frame.columns = [str(column).strip() for column in frame.columns]

    records = []
    for row in frame.to_dict(orient="records"):
        cleaned = {key: str(value).strip() for key, value in row.items()}
        migrated = migrate_legacy_row(cleaned)
        if not migrated.get("email_address"):
            continue
        records.append(UserSummaryRecord.model_validate(migrated))

    return records


class BaselineLoader:
    """Loads the baseline dataset from the first reachable source."""

    def __init__(
        self,
        sources: list[str],
        timeout: int = 10,
        retry_attempts: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize baseline loader.

        Args:
            sources: Local CSV paths or http(s) URLs, in priority order
            timeout: HTTP timeout in seconds
            retry_attempts: Attempts per URL on timeouts and network errors
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.sources = list(sources)
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.transport = transport

    async def load(self) -> list[UserSummaryRecord]:
        """
        Load the baseline rows.

        Returns:
            Rows from the first source that could be read and parsed

        Raises:
            BaselineUnavailableError: If every source failed (or none configured)
        """
        errors = []
        for source in self.sources:
            try:
                if self._is_url(source):
                    text = await self._fetch(source)
                    records = parse_baseline_csv(io.StringIO(text))
                else:
                    records = parse_baseline_csv(self._local_path(source))
            except (httpx.HTTPError, OSError, ValueError, pd.errors.ParserError) as e:
                logger.warning("baseline_source_failed", source=source, error=str(e))
                errors.append(f"{source}: {e}")
                continue

            logger.debug("baseline_loaded", source=source, row_count=len(records))
            return records

        raise BaselineUnavailableError(
            "No baseline source could be loaded"
            + (f" ({'; '.join(errors)})" if errors else "")
        )

    async def _fetch(self, url: str) -> str:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.get(url)
                    response.raise_for_status()
                    return response.text
        raise BaselineUnavailableError(f"No response from {url}")

    @staticmethod
    def _is_url(source: str) -> bool:
        return urlparse(source).scheme in ("http", "https")

    @staticmethod
    def _local_path(source: str) -> Path:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Baseline file not found: {path}")
        return path
