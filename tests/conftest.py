"""Shared fixtures."""

from unittest.mock import MagicMock

import pytest

from vision_metadata.config import Configuration
from vision_metadata.schemas.image import ImageInfo


@pytest.fixture
def config():
    """Create a fully configured primary endpoint."""
    return Configuration(
        endpoint_base="https://contoso.openai.azure.com",
        deployment_id="gpt4v",
        api_version="2024-02-15-preview",
        api_key="sk-test-1234567890",
        model_name="gpt-4-vision-preview",
        timeout_ms=30000,
        retry_attempts=3,
    )


@pytest.fixture
def image_info():
    """Create a sample image descriptor."""
    return ImageInfo(width=1920, height=1080, format="jpg", size_bytes=245760, filename="sunset.jpg")


def _make_response(status_code=200, json_body=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.reason_phrase = "OK" if status_code < 400 else "Error"
    response.text = text
    if json_body is None:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = json_body
    return response


def _chat_response(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def make_response():
    """Factory for mock httpx responses."""
    return _make_response


@pytest.fixture
def chat_response():
    """Factory for chat-completions bodies."""
    return _chat_response
