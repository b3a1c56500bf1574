"""Normalize provider responses into MetadataRecord values."""

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

from vision_metadata.errors import ParseFailure, ResponseShapeError
from vision_metadata.schemas.metadata import MetadataRecord, Provider

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\n?|\n?```", re.IGNORECASE)

# JSON keys accepted for each known field, in priority order
_FIELD_KEYS = {
    "title": ("title",),
    "description": ("description",),
    "tags": ("keywords", "tags"),
}


def sanitize(value: Any) -> str:
    """Trim and collapse internal whitespace. Lists are joined with commas."""
    if isinstance(value, list):
        value = ", ".join(sanitize(item) for item in value if sanitize(item))
    if not isinstance(value, str):
        return ""
    return " ".join(value.split())


def strip_code_fences(content: str) -> str:
    """Remove Markdown code fence markers around model output."""
    return _CODE_FENCE.sub("", content).strip()


def extract_content(raw: Any) -> str:
    """Return ``choices[0].message.content`` from a chat-completions body.

    Raises:
        ResponseShapeError: No non-empty string content in the response
    """
    try:
        content = raw["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ResponseShapeError("No content found in response") from e
    if not isinstance(content, str) or not content.strip():
        raise ResponseShapeError("Response content is empty")
    return content


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse fenced or bare JSON content into an object.

    Raises:
        ParseFailure: Content is not JSON, or not a JSON object
    """
    try:
        parsed = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Content is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ParseFailure(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def _first_value(lowered: dict[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        text = sanitize(lowered.get(key))
        if text:
            return text
    return ""


def map_metadata(data: dict[str, Any], active_properties: Iterable[str]) -> dict[str, str]:
    """Map a JSON object onto title/description/tags and active custom properties.

    Key matching is case-insensitive, so ``Title`` and ``title`` both count.
    """
    lowered = {str(key).lower(): value for key, value in data.items()}
    values = {field: _first_value(lowered, keys) for field, keys in _FIELD_KEYS.items()}

    taken = {key for keys in _FIELD_KEYS.values() for key in keys}
    for name in active_properties:
        key = name.lower()
        if key in taken or key not in lowered:
            continue
        values[name] = sanitize(lowered[key])
    return values


def parse_response(
    raw: Any,
    active_properties: Iterable[str],
    provider: Provider = Provider.PRIMARY,
) -> MetadataRecord:
    """Turn a chat-completions response into a MetadataRecord.

    Handles, in order: a response without usable content (every active
    property shows the raw response), structured JSON content (optionally
    inside a code fence), and free text (every active property gets the
    sanitized text).

    Args:
        raw: Decoded response body
        active_properties: Property names the caller expects to be filled
        provider: Provider tag for the record

    Returns:
        MetadataRecord; never raises for malformed responses
    """
    properties = list(active_properties)

    try:
        content = extract_content(raw)
    except ResponseShapeError as e:
        dumped = json.dumps(raw, indent=2, default=str)
        logger.warning(f"{e}; using full response body")
        logger.debug(f"Full response object: {dumped}")
        return MetadataRecord.fill(properties, f"Raw Response: {dumped}", provider)

    try:
        data = parse_json_object(content)
    except ParseFailure as e:
        logger.info(f"{e}; using raw content as text: {content[:100]}...")
        return MetadataRecord.fill(properties, sanitize(content), provider)

    return MetadataRecord.from_values(map_metadata(data, properties), provider)


def parse_generic_response(raw: Any, active_properties: Iterable[str]) -> MetadataRecord:
    """Parse a response from the secondary analysis endpoint.

    Chat-completions bodies go through ``parse_response``. Otherwise the
    metadata is read from ``metadata``, ``result`` or the top level, which may
    also report ``confidence`` and ``processing_time``.
    """
    properties = list(active_properties)

    if isinstance(raw, dict) and "choices" in raw:
        return parse_response(raw, properties, provider=Provider.FALLBACK)

    metadata = raw
    if isinstance(raw, dict):
        metadata = raw.get("metadata") or raw.get("result") or raw
    if not isinstance(metadata, dict):
        return parse_response(raw, properties, provider=Provider.FALLBACK)

    values = map_metadata(metadata, properties)
    if not any(values.values()):
        # Nothing recognizable; surface the raw body instead of blank fields
        return parse_response(raw, properties, provider=Provider.FALLBACK)

    return MetadataRecord.from_values(
        values,
        Provider.FALLBACK,
        confidence=_number(metadata.get("confidence")),
        processing_time_ms=_number(metadata.get("processing_time")),
    )


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value
