"""Normalized metadata record returned to callers."""

from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

KNOWN_FIELDS = ("title", "description", "tags")


class Provider(str, Enum):
    """Which path produced a record."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    ERROR = "error"
    DEFAULT = "default"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MetadataRecord(BaseModel):
    """Title, description, tags and custom properties for one image."""

    title: str | None = None
    description: str | None = None
    tags: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)
    confidence: float | None = None
    processing_time_ms: float | None = None
    provider: Provider
    generated_at: datetime = Field(default_factory=_now)
    error: str | None = None

    @classmethod
    def from_values(cls, values: dict[str, str], provider: Provider, **extra) -> "MetadataRecord":
        """Build a record from a property -> text mapping.

        Keys matching title, description or tags (any case) fill those fields;
        every other key lands in ``properties``.

        Args:
            values: Property name to text
            provider: Provider tag for the record
            **extra: Additional record fields (error, confidence, ...)

        Returns:
            MetadataRecord
        """
        known: dict[str, str] = {}
        custom: dict[str, str] = {}
        for name, text in values.items():
            key = name.lower()
            if key in KNOWN_FIELDS:
                known[key] = text
            else:
                custom[name] = text
        return cls(**known, properties=custom, provider=provider, **extra)

    @classmethod
    def fill(
        cls, properties: Iterable[str], text: str, provider: Provider, **extra
    ) -> "MetadataRecord":
        """Put the same ``text`` into every property (``description`` if none)."""
        names = list(properties) or ["description"]
        return cls.from_values({name: text for name in names}, provider, **extra)

    @classmethod
    def from_error(cls, message: str, properties: Iterable[str] = ()) -> "MetadataRecord":
        """Error record with a readable placeholder in every expected property."""
        return cls.fill(properties, f"Error: {message}", Provider.ERROR, error=message)

    @classmethod
    def placeholder(cls) -> "MetadataRecord":
        """Sample record returned when no endpoint is configured."""
        return cls(
            title="Sample Title",
            description="This is a sample description generated for testing purposes.",
            tags="sample, test, placeholder, demo",
            provider=Provider.DEFAULT,
        )

    @property
    def failed(self) -> bool:
        return self.provider is Provider.ERROR

    def get(self, name: str) -> str | None:
        """Look up a property by name, known fields first (case-insensitive)."""
        key = name.lower()
        if key in KNOWN_FIELDS:
            return getattr(self, key)
        if name in self.properties:
            return self.properties[name]
        for prop, text in self.properties.items():
            if prop.lower() == key:
                return text
        return None

    def to_dict(self) -> dict:
        """Flat representation for renderers and exporters."""
        result: dict = {}
        for key in KNOWN_FIELDS:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update(self.properties)
        result["confidence"] = self.confidence
        result["processing_time"] = self.processing_time_ms
        result["provider"] = self.provider.value
        result["generated_at"] = self.generated_at.isoformat()
        if self.error is not None:
            result["error"] = self.error
        return result


class CombinedMetadata(BaseModel):
    """Results of the primary and secondary providers for one image."""

    primary: MetadataRecord
    secondary: MetadataRecord
