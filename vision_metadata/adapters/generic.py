"""Adapter for a generic image-analysis endpoint (secondary provider)."""

from collections.abc import Iterable
from typing import Any

from vision_metadata.adapters.base import ProviderAdapter
from vision_metadata.config import Configuration
from vision_metadata.errors import ConfigurationIncomplete
from vision_metadata.parser import parse_generic_response
from vision_metadata.schemas.metadata import MetadataRecord, Provider


class GenericVisionAdapter(ProviderAdapter):
    """Posts the chat payload to ``secondary_url`` as-is.

    The endpoint may answer in chat-completions form or with a flat
    ``metadata``/``result`` object.
    """

    provider = Provider.FALLBACK
    label = "Secondary"

    def endpoint_url(self, config: Configuration) -> str:
        url = config.secondary_url.strip()
        if not url:
            raise ConfigurationIncomplete("Secondary endpoint not configured")
        return url

    def parse_response(self, raw: Any, active_properties: Iterable[str]) -> MetadataRecord:
        return parse_generic_response(raw, active_properties)
