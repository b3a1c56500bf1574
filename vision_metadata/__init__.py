"""Vision-model metadata generation for images."""

from vision_metadata.client import MetadataClient
from vision_metadata.config import Configuration
from vision_metadata.schemas import (
    CombinedMetadata,
    ImageInfo,
    MetadataRecord,
    PromptRule,
    Provider,
)

__all__ = [
    "CombinedMetadata",
    "Configuration",
    "ImageInfo",
    "MetadataClient",
    "MetadataRecord",
    "PromptRule",
    "Provider",
]
