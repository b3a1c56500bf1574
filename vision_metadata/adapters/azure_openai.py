"""Azure OpenAI chat-completions adapter (primary provider)."""

from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

from vision_metadata.adapters.base import ProviderAdapter
from vision_metadata.config import Configuration
from vision_metadata.errors import ConfigurationIncomplete
from vision_metadata.parser import parse_response
from vision_metadata.schemas.metadata import MetadataRecord, Provider


class AzureOpenAIAdapter(ProviderAdapter):
    """Vision metadata through an Azure OpenAI deployment."""

    provider = Provider.PRIMARY
    label = "Azure OpenAI"

    def endpoint_url(self, config: Configuration) -> str:
        if not config.is_configured:
            raise ConfigurationIncomplete("Azure OpenAI configuration incomplete")

        base = config.endpoint_base.strip().rstrip("/")
        deployment = quote(config.deployment_id.strip(), safe="")
        api_version = quote(config.api_version.strip(), safe="")
        return (
            f"{base}/openai/deployments/{deployment}/chat/completions"
            f"?api-version={api_version}"
        )

    def parse_response(self, raw: Any, active_properties: Iterable[str]) -> MetadataRecord:
        return parse_response(raw, active_properties, provider=self.provider)
