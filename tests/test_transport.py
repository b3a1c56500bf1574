"""Tests for the HTTP transport retry loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, call, patch

import httpx
import pytest

from vision_metadata.errors import (
    ConfigurationIncomplete,
    HttpStatusError,
    NetworkOrTimeoutError,
)
from vision_metadata.transport import (
    backoff_delay,
    build_headers,
    format_curl_command,
    post_once,
    send,
)

URL = "https://contoso.openai.azure.com/openai/deployments/gpt4v/chat/completions?api-version=v1"
BODY = {"messages": [], "model": "gpt-4-vision-preview"}


def test_backoff_delay_doubles():
    """Test backoff waits 1s, 2s, 4s between attempts."""
    assert [backoff_delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]


def test_build_headers_with_and_without_key():
    """Test Authorization header only appears when a key is set."""
    assert build_headers("") == {"Content-Type": "application/json"}
    assert build_headers("abc")["Authorization"] == "Bearer abc"


def test_format_curl_command_redacts_key_and_image():
    """Test curl reconstruction hides secrets and long inline images."""
    body = {
        "messages": [
            {
                "role": "user",
                "content": [{"type": "image_url", "image_url": {"url": "data:image/png;base64," + "A" * 500}}],
            }
        ]
    }

    command = format_curl_command(URL, body, "sk-test-1234567890")

    assert command.startswith(f'curl -X POST "{URL}"')
    assert "Bearer sk-test-..." in command
    assert "1234567890" not in command
    assert "A" * 500 not in command
    assert "(522 chars)" in command


@pytest.mark.asyncio
async def test_send_success(config, make_response, chat_response):
    """Test a successful first attempt returns the decoded body."""
    body = chat_response("hello")

    with patch("httpx.AsyncClient") as mock_client:
        post = AsyncMock(return_value=make_response(200, body))
        mock_client.return_value.__aenter__.return_value.post = post

        result = await send(URL, BODY, config)

    assert result == body
    post.assert_called_once_with(
        URL,
        json=BODY,
        headers={
            "Content-Type": "application/json",
            "Authorization": "Bearer sk-test-1234567890",
        },
    )


@pytest.mark.asyncio
async def test_send_without_key_omits_authorization(config, make_response):
    """Test no Authorization header is sent without an API key."""
    config = config.merged({"api_key": ""})

    with patch("httpx.AsyncClient") as mock_client:
        post = AsyncMock(return_value=make_response(200, {"ok": True}))
        mock_client.return_value.__aenter__.return_value.post = post

        await send(URL, BODY, config)

    headers = post.call_args[1]["headers"]
    assert "Authorization" not in headers


@pytest.mark.asyncio
async def test_send_retries_with_exponential_backoff(config, make_response):
    """Test a transport that always fails is tried exactly retry_attempts times."""
    config = config.merged({"retry_attempts": 4})

    with (
        patch("httpx.AsyncClient") as mock_client,
        patch("vision_metadata.transport.wait", new_callable=AsyncMock) as mock_wait,
    ):
        post = AsyncMock(return_value=make_response(503, text="busy"))
        mock_client.return_value.__aenter__.return_value.post = post

        with pytest.raises(HttpStatusError) as exc_info:
            await send(URL, BODY, config)

    assert post.call_count == 4
    assert mock_wait.call_args_list == [call(1.0), call(2.0), call(4.0)]
    assert exc_info.value.status_code == 503
    assert exc_info.value.attempts == 4
    assert "busy" in str(exc_info.value)


@pytest.mark.asyncio
async def test_send_recovers_after_failure(config, make_response, chat_response):
    """Test a failed attempt followed by success returns the success."""
    body = chat_response("ok")

    with (
        patch("httpx.AsyncClient") as mock_client,
        patch("vision_metadata.transport.wait", new_callable=AsyncMock) as mock_wait,
    ):
        post = AsyncMock(
            side_effect=[httpx.ConnectError("refused"), make_response(200, body)]
        )
        mock_client.return_value.__aenter__.return_value.post = post

        result = await send(URL, BODY, config)

    assert result == body
    assert post.call_count == 2
    mock_wait.assert_called_once_with(1.0)


@pytest.mark.asyncio
async def test_send_single_attempt_does_not_wait(config):
    """Test no backoff happens after the last attempt."""
    config = config.merged({"retry_attempts": 1})

    with (
        patch("httpx.AsyncClient") as mock_client,
        patch("vision_metadata.transport.wait", new_callable=AsyncMock) as mock_wait,
    ):
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(NetworkOrTimeoutError) as exc_info:
            await send(URL, BODY, config)

    mock_wait.assert_not_called()
    assert exc_info.value.attempts == 1
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_send_empty_url_makes_no_request(config):
    """Test an unconfigured endpoint short-circuits before any I/O."""
    with patch("httpx.AsyncClient") as mock_client:
        with pytest.raises(ConfigurationIncomplete):
            await send("", BODY, config)

    mock_client.assert_not_called()


@pytest.mark.asyncio
async def test_send_uses_injected_client(config, make_response):
    """Test a caller-provided client is used and left open."""
    client = MagicMock(spec=httpx.AsyncClient)
    client.post = AsyncMock(return_value=make_response(200, {"ok": True}))
    client.aclose = AsyncMock()

    with patch("httpx.AsyncClient") as mock_client:
        result = await send(URL, BODY, config, client=client)

    assert result == {"ok": True}
    mock_client.assert_not_called()
    client.aclose.assert_not_called()


@pytest.mark.asyncio
async def test_post_once_times_out():
    """Test a hung request is cancelled and reported as a timeout."""

    async def hang(*args, **kwargs):
        await asyncio.sleep(10)

    client = MagicMock()
    client.post = hang

    with pytest.raises(NetworkOrTimeoutError, match="timed out after 50 ms"):
        await post_once(client, URL, BODY, {}, timeout=0.05)


@pytest.mark.asyncio
async def test_post_once_httpx_timeout():
    """Test httpx timeouts map to the retryable timeout error."""
    client = MagicMock()
    client.post = AsyncMock(side_effect=httpx.ReadTimeout("read timed out"))

    with pytest.raises(NetworkOrTimeoutError):
        await post_once(client, URL, BODY, {}, timeout=1.0)


@pytest.mark.asyncio
async def test_post_once_non_json_body(make_response):
    """Test a 2xx body that is not JSON is passed through as text."""
    client = MagicMock()
    client.post = AsyncMock(return_value=make_response(200, None, text="<html>oops</html>"))

    result = await post_once(client, URL, BODY, {}, timeout=1.0)

    assert result == {"text": "<html>oops</html>"}


@pytest.mark.asyncio
async def test_post_once_invalid_url():
    """Test a malformed endpoint URL surfaces as a transport error."""
    client = MagicMock()
    client.post = AsyncMock(side_effect=httpx.InvalidURL("Invalid port: 'abc'"))

    with pytest.raises(NetworkOrTimeoutError, match="Invalid endpoint URL"):
        await post_once(client, "https://contoso:abc/analyze", BODY, {}, timeout=1.0)
