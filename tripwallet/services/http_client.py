from __future__ import annotations

"""Async HTTP helper with limited retries for JSON GET requests.

Only transport errors and 5xx answers are retried; a 4xx answer is final.
Callers that must not retry (credential checks) pass ``retries=0``.
"""
import asyncio
from typing import Any, Dict, Mapping, Optional

import httpx


class HttpError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


async def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, str]] = None,
    timeout: float = 5.0,
    retries: int = 2,
    backoff: float = 0.5,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    last_err: Optional[HttpError] = None
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        for attempt in range(retries + 1):
            try:
                resp = await client.get(url, params=params)
                if resp.status_code >= 400:
                    raise HttpError(
                        f"HTTP {resp.status_code} for {url}", status_code=resp.status_code
                    )
                data = resp.json()
                if not isinstance(data, dict):
                    raise HttpError(f"unexpected JSON payload from {url}")
                return data
            except HttpError as e:
                last_err = e
                if e.status_code is not None and e.status_code < 500:
                    break
            except (httpx.HTTPError, ValueError) as e:  # ValueError for JSON decode
                last_err = HttpError(f"{type(e).__name__}: {e}")
            if attempt == retries:
                break
            await asyncio.sleep(backoff * (2**attempt))
    status_code = last_err.status_code if last_err else None
    raise HttpError(f"Failed to fetch JSON from {url}: {last_err}", status_code=status_code)
