"""Data model shared by the resolver, parser and facade."""

from vision_metadata.schemas.image import ImageInfo
from vision_metadata.schemas.metadata import CombinedMetadata, MetadataRecord, Provider
from vision_metadata.schemas.prompts import (
    BUILTIN_PROMPTS,
    DEFAULT_PROMPT,
    DEFAULT_PROMPT_RULES,
    PromptRule,
    active_properties,
    rules_by_property,
)

__all__ = [
    "BUILTIN_PROMPTS",
    "DEFAULT_PROMPT",
    "DEFAULT_PROMPT_RULES",
    "CombinedMetadata",
    "ImageInfo",
    "MetadataRecord",
    "PromptRule",
    "Provider",
    "active_properties",
    "rules_by_property",
]
