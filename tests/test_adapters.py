"""Tests for provider adapters."""

import pytest

from vision_metadata.adapters import get_adapter
from vision_metadata.adapters.azure_openai import AzureOpenAIAdapter
from vision_metadata.adapters.generic import GenericVisionAdapter
from vision_metadata.errors import ConfigurationIncomplete
from vision_metadata.schemas.metadata import Provider


def test_get_adapter_default():
    """Test the factory returns Azure OpenAI by default."""
    assert isinstance(get_adapter(), AzureOpenAIAdapter)
    assert isinstance(get_adapter("primary"), AzureOpenAIAdapter)


def test_get_adapter_secondary():
    """Test the factory returns the generic adapter for the secondary role."""
    assert isinstance(get_adapter("secondary"), GenericVisionAdapter)
    assert isinstance(get_adapter("fallback"), GenericVisionAdapter)


def test_azure_endpoint_url(config):
    """Test the Azure deployment URL layout."""
    config = config.merged({"endpoint_base": "https://contoso.openai.azure.com/"})

    url = AzureOpenAIAdapter().endpoint_url(config)

    assert url == (
        "https://contoso.openai.azure.com/openai/deployments/gpt4v/chat/completions"
        "?api-version=2024-02-15-preview"
    )


def test_azure_endpoint_url_incomplete(config):
    """Test an incomplete configuration is refused."""
    with pytest.raises(ConfigurationIncomplete):
        AzureOpenAIAdapter().endpoint_url(config.merged({"deployment_id": ""}))


def test_azure_build_payload_uses_model(config):
    """Test the adapter passes the configured model name."""
    payload = AzureOpenAIAdapter().build_payload("p", "https://example.com/a.png", config)

    assert payload["model"] == "gpt-4-vision-preview"
    assert payload["messages"][0]["content"][0]["text"] == "p"


def test_azure_parse_tags_primary(chat_response):
    """Test parsed records carry the primary provider tag."""
    record = AzureOpenAIAdapter().parse_response(chat_response('{"Title": "T"}'), [])
    assert record.provider is Provider.PRIMARY


def test_generic_endpoint_url(config):
    """Test the secondary adapter posts to secondary_url."""
    adapter = GenericVisionAdapter()

    with pytest.raises(ConfigurationIncomplete):
        adapter.endpoint_url(config)

    configured = config.merged({"llamaUrl": "https://vision.internal/analyze"})
    assert adapter.endpoint_url(configured) == "https://vision.internal/analyze"


def test_generic_parse_tags_fallback():
    """Test the secondary adapter tags records as fallback."""
    record = GenericVisionAdapter().parse_response({"metadata": {"title": "T"}}, [])
    assert record.provider is Provider.FALLBACK
