"""Remote specification-file retrieval over HTTP(S)."""

from __future__ import annotations

import time
from typing import Protocol

import httpx
import structlog

from sitewarden.core.config import DEFAULT_FETCH_TIMEOUT
from sitewarden.exceptions import FetchError
from sitewarden.normalize import strip_credentials

log = structlog.get_logger("sitewarden.engine")

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 0.5  # seconds


class Fetcher(Protocol):
    """Return the text of a remote specification file or raise :class:`FetchError`."""

    def fetch(self, url: str) -> str: ...


class HttpFetcher:
    """Blocking httpx wrapper with a caller-set timeout and retries on 5xx."""

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        *,
        transport: httpx.BaseTransport | None = None,
        retry_delay: float = _RETRY_BASE_DELAY,
    ) -> None:
        self._retry_delay = retry_delay
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={"Accept": "text/plain, */*"},
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── public ─────────────────────────────────────────────────────────────

    def fetch(self, url: str) -> str:
        """GET *url* and return its body text.

        Timeouts, transport errors and non-2xx responses all surface as
        :class:`FetchError`; the message never contains URL credentials.
        """
        safe_url = strip_credentials(url)
        for attempt in range(_MAX_RETRIES):
            try:
                resp = self._client.get(url)
            except httpx.TimeoutException as exc:
                log.warning("fetcher.timeout", url=safe_url, attempt=attempt + 1)
                raise FetchError(f"timed out fetching {safe_url}") from exc
            except httpx.HTTPError as exc:
                raise FetchError(f"cannot fetch {safe_url}: {type(exc).__name__}") from exc

            if resp.status_code < 500:
                if resp.is_error:
                    raise FetchError(f"cannot fetch {safe_url}: HTTP {resp.status_code}")
                return resp.text

            # 5xx: retry
            log.warning(
                "fetcher.server_error",
                url=safe_url,
                status=resp.status_code,
                attempt=attempt + 1,
                max_retries=_MAX_RETRIES,
            )
            if attempt < _MAX_RETRIES - 1:
                time.sleep(self._retry_delay * (2**attempt))

        raise FetchError(f"cannot fetch {safe_url}: HTTP {resp.status_code}")
