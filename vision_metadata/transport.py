"""HTTP transport for provider calls with timeout, retry and backoff."""

import asyncio
import contextlib
import json
import logging
from typing import Any

import httpx

from vision_metadata.config import Configuration
from vision_metadata.errors import (
    ConfigurationIncomplete,
    HttpStatusError,
    NetworkOrTimeoutError,
    TransportError,
)

logger = logging.getLogger(__name__)

BACKOFF_BASE_SECONDS = 1.0
# Inline image data longer than this is shortened in logged curl commands
MAX_LOGGED_URL_LENGTH = 100


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed ``attempt`` (1-based): 1, 2, 4, ..."""
    return BACKOFF_BASE_SECONDS * 2 ** (attempt - 1)


async def wait(seconds: float) -> None:
    """Suspend the current task without blocking the event loop."""
    await asyncio.sleep(seconds)


def build_headers(api_key: str) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _shorten_image_urls(body: Any) -> Any:
    if isinstance(body, dict):
        shortened = {}
        for key, value in body.items():
            if key == "url" and isinstance(value, str) and len(value) > MAX_LOGGED_URL_LENGTH:
                shortened[key] = f"{value[:MAX_LOGGED_URL_LENGTH]}...({len(value)} chars)"
            else:
                shortened[key] = _shorten_image_urls(value)
        return shortened
    if isinstance(body, list):
        return [_shorten_image_urls(item) for item in body]
    return body


def format_curl_command(url: str, body: dict, api_key: str = "") -> str:
    """Equivalent curl command for a request, with the key redacted."""
    headers = ['-H "Content-Type: application/json"']
    if api_key:
        headers.append(f'-H "Authorization: Bearer {api_key[:8]}..."')
    payload = json.dumps(_shorten_image_urls(body), indent=2)
    header_lines = " \\\n    ".join(headers)
    return f"curl -X POST \"{url}\" \\\n    {header_lines} \\\n    -d '{payload}'"


async def post_once(
    client: httpx.AsyncClient,
    url: str,
    body: dict,
    headers: dict[str, str],
    timeout: float,
) -> dict[str, Any]:
    """Issue a single POST under a hard timeout.

    Args:
        client: httpx async client
        url: Endpoint URL
        body: JSON request body
        headers: Request headers
        timeout: Seconds before the in-flight request is cancelled

    Returns:
        Decoded JSON body, or ``{"text": ...}`` when a 2xx body is not JSON

    Raises:
        NetworkOrTimeoutError: Connection failure, timeout or malformed URL
        HttpStatusError: Non-2xx response
    """
    try:
        response = await asyncio.wait_for(
            client.post(url, json=body, headers=headers), timeout=timeout
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise NetworkOrTimeoutError(
            f"Request timed out after {int(timeout * 1000)} ms"
        ) from e
    except httpx.HTTPError as e:
        raise NetworkOrTimeoutError(f"Network error: {e}") from e
    except httpx.InvalidURL as e:
        raise NetworkOrTimeoutError(f"Invalid endpoint URL {url!r}: {e}") from e

    if not 200 <= response.status_code < 300:
        raise HttpStatusError(
            f"HTTP {response.status_code}: {response.reason_phrase} - {response.text}",
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError:
        logger.warning(f"Response from {url} is not JSON; passing body through as text")
        return {"text": response.text}


async def send(
    url: str,
    body: dict,
    config: Configuration,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """POST ``body`` to ``url`` with retry and exponential backoff.

    Args:
        url: Endpoint URL; empty means the provider is not configured
        body: JSON request body
        config: Configuration snapshot for this call
        client: Optional shared client; a per-call client is used otherwise

    Returns:
        Decoded response body

    Raises:
        ConfigurationIncomplete: No URL; nothing is sent
        TransportError: Every attempt failed; carries the last error
    """
    if not url:
        raise ConfigurationIncomplete("Endpoint URL is not configured")

    headers = build_headers(config.api_key)
    attempts = config.retry_attempts
    timeout = config.timeout_seconds
    last_error: TransportError | None = None

    scope = (
        contextlib.nullcontext(client)
        if client is not None
        else httpx.AsyncClient(timeout=httpx.Timeout(timeout))
    )
    async with scope as http:
        for attempt in range(1, attempts + 1):
            logger.info(f"Calling {url} (attempt {attempt}/{attempts})")
            curl = format_curl_command(url, body, config.api_key)
            logger.debug(f"Equivalent curl command:\n{curl}")
            logger.debug(f"Configuration used: {config.summary()}")

            try:
                return await post_once(http, url, body, headers, timeout)
            except TransportError as e:
                e.attempts = attempt
                last_error = e
                logger.warning(f"Attempt {attempt}/{attempts} to {url} failed: {e}")

                if attempt < attempts:
                    await wait(backoff_delay(attempt))

    logger.error(f"Request to {url} failed after {attempts} attempts: {last_error}")
    raise last_error
