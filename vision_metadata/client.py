"""Metadata facade: the entry point callers use to describe images."""

import asyncio
import json
import logging
import time

import httpx

from vision_metadata import transport
from vision_metadata.adapters import ProviderAdapter, get_adapter
from vision_metadata.config import Configuration
from vision_metadata.errors import ConfigurationIncomplete, TransportError
from vision_metadata.prompts import resolve_prompt
from vision_metadata.schemas.image import ImageInfo
from vision_metadata.schemas.metadata import CombinedMetadata, MetadataRecord
from vision_metadata.schemas.prompts import BUILTIN_PROMPTS, active_properties
from vision_metadata.storage import InMemoryPromptStore, PromptStore

logger = logging.getLogger(__name__)

TEST_IMAGE_REF = "data:image/jpeg;base64,test"
TEST_IMAGE_INFO = ImageInfo(
    width=800, height=600, format="jpg", size_bytes=150000, filename="test.jpg"
)


class MetadataClient:
    """Generate title, description and keyword metadata for images.

    Every public ``generate_*`` method returns a MetadataRecord, also when the
    provider fails; failures are reported through ``error`` and the ``error``
    provider tag.
    """

    def __init__(
        self,
        config: Configuration | None = None,
        prompt_store: PromptStore | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or Configuration.from_env()
        self.prompt_store = prompt_store or InMemoryPromptStore()
        self.http_client = http_client
        self.primary = get_adapter("primary")
        self.secondary = get_adapter("secondary")

    def update_config(self, overrides: dict) -> Configuration:
        """Merge user overrides into the configuration.

        Calls already in flight keep the snapshot they started with.
        """
        self.config = self.config.merged(overrides)
        return self.config

    async def generate_single(
        self, image_ref: str, image_info: ImageInfo, property: str | None = None
    ) -> MetadataRecord:
        """Generate metadata with the primary provider.

        Args:
            image_ref: Image URL or data URL
            image_info: Image descriptor
            property: Optional single property to generate (title, keywords, ...)

        Returns:
            MetadataRecord
        """
        return await self._generate(self.primary, image_ref, image_info, property)

    async def generate_for_custom_property(
        self, image_ref: str, image_info: ImageInfo, property: str, prompt_override: str
    ) -> MetadataRecord:
        """Generate one property with an explicit prompt.

        Args:
            image_ref: Image URL or data URL
            image_info: Image descriptor
            property: Property name
            prompt_override: Prompt text that takes precedence over stored rules

        Returns:
            MetadataRecord
        """
        return await self._generate(
            self.primary, image_ref, image_info, property, prompt_override
        )

    async def generate_combined(self, image_ref: str, image_info: ImageInfo) -> CombinedMetadata:
        """Query the primary and secondary providers concurrently.

        Both calls run to completion; a failure in one never cancels or
        empties the other. Cancelling this call cancels both branches.
        """
        tasks = {
            "primary": asyncio.create_task(
                self._generate(self.primary, image_ref, image_info)
            ),
            "secondary": asyncio.create_task(
                self._generate(self.secondary, image_ref, image_info)
            ),
        }
        try:
            await asyncio.wait(tasks.values())
        finally:
            pending = [task for task in tasks.values() if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        # Retrieve every branch exception before anything else can raise
        errors = {role: task.exception() for role, task in tasks.items()}

        results = {}
        for role, task in tasks.items():
            error = errors[role]
            if error is None:
                results[role] = task.result()
                continue
            logger.error(f"{role} metadata call failed: {error}", exc_info=error)
            results[role] = MetadataRecord.from_error(
                f"{role.capitalize()} API failed: {error}", self._error_properties()
            )

        return CombinedMetadata(**results)

    def _error_properties(self) -> list[str]:
        """Properties to fill on an error record; empty if the store is unreadable."""
        try:
            return active_properties(self.prompt_store.load())
        except Exception as e:
            logger.warning(f"Could not load prompt rules for error record: {e}")
            return []

    async def test_configuration(self) -> MetadataRecord | None:
        """Run the pipeline once with a synthetic 800x600 image.

        Returns:
            The resulting record, or None on an unexpected internal failure
        """
        logger.info(f"Testing API configuration: {self.config.summary()}")
        try:
            result = await self.generate_single(TEST_IMAGE_REF, TEST_IMAGE_INFO)
        except Exception as e:
            logger.error(f"Configuration test failed: {e}", exc_info=True)
            return None

        logger.info(f"Configuration test result: provider={result.provider.value}")
        return result

    async def _generate(
        self,
        adapter: ProviderAdapter,
        image_ref: str,
        image_info: ImageInfo,
        property: str | None = None,
        prompt_override: str | None = None,
    ) -> MetadataRecord:
        config = self.config
        rules = self.prompt_store.load()
        properties = active_properties(rules)

        try:
            url = adapter.endpoint_url(config)
        except ConfigurationIncomplete as e:
            logger.warning(f"{e}; returning default metadata")
            return MetadataRecord.placeholder()

        prompt = resolve_prompt(
            property, prompt_override, rules, config.fallback_prompt_text, BUILTIN_PROMPTS
        )
        body = adapter.build_payload(prompt, image_ref, config)
        logger.debug(
            f"Requesting {property or 'full'} metadata for {image_info.filename} "
            f"({image_info.width}x{image_info.height} {image_info.format}, "
            f"{image_info.size_bytes} bytes)"
        )

        start_time = time.monotonic()
        try:
            raw = await transport.send(url, body, config, client=self.http_client)
            record = adapter.parse_response(raw, properties)
        except TransportError as e:
            message = f"{adapter.label} API failed: {e}"
            logger.error(f"{message} (attempts={e.attempts}, status={e.status_code})")
            return MetadataRecord.from_error(message, properties)
        except Exception as e:
            logger.error(f"Unexpected error generating metadata: {e}", exc_info=True)
            return MetadataRecord.from_error(
                f"{adapter.label} request failed unexpectedly: {e}", properties
            )

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            json.dumps(
                {
                    "event": "metadata_generated",
                    "provider": record.provider.value,
                    "property": property,
                    "filename": image_info.filename,
                    "elapsed_ms": elapsed_ms,
                }
            )
        )
        return record
