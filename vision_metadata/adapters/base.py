"""Base adapter interface for vision metadata providers."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from vision_metadata.config import Configuration
from vision_metadata.payload import build_payload
from vision_metadata.schemas.metadata import MetadataRecord, Provider


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters.

    An adapter knows where a provider lives, what body it expects and how to
    read its answer. Network I/O stays in ``vision_metadata.transport``.
    """

    provider: Provider
    label: str

    @abstractmethod
    def endpoint_url(self, config: Configuration) -> str:
        """Build the endpoint URL for this provider.

        Args:
            config: Configuration snapshot

        Returns:
            Full request URL

        Raises:
            ConfigurationIncomplete: The provider is not configured
        """
        pass

    def build_payload(self, prompt_text: str, image_ref: str, config: Configuration) -> dict:
        """Build the request body.

        Args:
            prompt_text: Resolved prompt
            image_ref: Image URL or data URL
            config: Configuration snapshot

        Returns:
            JSON-serializable request body
        """
        return build_payload(prompt_text, image_ref, config.model_name)

    @abstractmethod
    def parse_response(self, raw: Any, active_properties: Iterable[str]) -> MetadataRecord:
        """Normalize a decoded response body.

        Args:
            raw: Decoded response body
            active_properties: Property names to fill on degraded responses

        Returns:
            MetadataRecord
        """
        pass
