"""VMetrics — RedTrack API Client.

Handles API-key authentication, retries with exponential backoff on rate
limits, server and transport errors, and response unwrapping.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from vmetrics.config import settings
from vmetrics.core.logging import get_logger

logger = get_logger("redtrack.client")

USER_AGENT = "VMetrics-Dashboard/1.0"


class RedTrackAPIError(Exception):
    """Raised when the RedTrack API call fails for good."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


def extract_items(payload: Any) -> List[Dict[str, Any]]:
    """Rows from a response body: a bare list, or {"items": [...]} / {"data": [...]}."""
    if isinstance(payload, list):
        return [row for row in payload if isinstance(row, dict)]
    if isinstance(payload, dict):
        for key in ("items", "data", "rows"):
            rows = payload.get(key)
            if isinstance(rows, list):
                return [row for row in rows if isinstance(row, dict)]
    return []


class RedTrackClient:
    """Async HTTP client for the RedTrack API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or settings.redtrack_api_key or ""
        self.base_url = (base_url or settings.redtrack_base_url).rstrip("/")
        self.max_retries = max_retries or settings.max_retries
        self.retry_base_delay = (
            settings.retry_base_delay if retry_base_delay is None else retry_base_delay
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=settings.request_timeout,
                transport=self._transport,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _backoff(self, attempt: int) -> float:
        return self.retry_base_delay * (2 ** (attempt - 1))

    # ── Core Request Method ──

    async def get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        """GET a path with retry + rate-limit handling. Returns decoded JSON."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        query["api_key"] = self.api_key

        client = await self._get_client()

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.get(url, params=query)

                if resp.status_code == 429:
                    if attempt < self.max_retries:
                        wait = self._backoff(attempt)
                        logger.warning(
                            f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{self.max_retries})",
                            extra={"endpoint": path, "status_code": 429},
                        )
                        await asyncio.sleep(wait)
                        continue
                    raise RedTrackAPIError("Rate limit exceeded", 429)

                resp.raise_for_status()
                return resp.json()

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if attempt < self.max_retries and status >= 500:
                    wait = self._backoff(attempt)
                    logger.warning(
                        f"Server error {status}. Retrying in {wait}s",
                        extra={"endpoint": path, "status_code": status},
                    )
                    await asyncio.sleep(wait)
                    continue
                raise RedTrackAPIError(_error_message(e.response), status) from e

            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    wait = self._backoff(attempt)
                    logger.warning(
                        f"Request error: {e}. Retrying in {wait}s",
                        extra={"endpoint": path},
                    )
                    await asyncio.sleep(wait)
                    continue
                raise RedTrackAPIError(
                    f"Connection failed after {self.max_retries} retries: {e}"
                ) from e

            except ValueError as e:
                raise RedTrackAPIError(f"Invalid JSON from {path}: {e}") from e

        raise RedTrackAPIError("Max retries exhausted")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"RedTrack API error {response.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        if error:
            return str(error)
    return f"RedTrack API error {response.status_code}"
