"""Resolve the instruction text sent to the vision model."""

from collections.abc import Iterable, Mapping

from vision_metadata.schemas.prompts import PromptRule, rules_by_property


def resolve_prompt(
    property: str | None,
    override: str | None,
    rules: Iterable[PromptRule],
    global_default: str,
    builtin_defaults: Mapping[str, str],
) -> str:
    """Pick the prompt for a request.

    The first match wins: a non-empty ``override``, the user's rule for
    ``property``, the built-in default for ``property`` (case-insensitive),
    ``global_default`` when no property is requested, and finally a generic
    instruction naming the property.

    Args:
        property: Requested property name, or None for full metadata
        override: Explicit prompt text for this call
        rules: Active prompt rules
        global_default: Prompt used when no property is requested
        builtin_defaults: Built-in prompts keyed by lower-case property name

    Returns:
        Non-empty prompt text
    """
    if override and override.strip():
        return override

    if property:
        custom = rules_by_property(rules).get(property)
        if custom and custom.strip():
            return custom

        builtin = builtin_defaults.get(property.lower())
        if builtin:
            return builtin

    if not property:
        return global_default

    return (
        f"Analyze this image and provide relevant {property} information. "
        f"Return only the {property} text, no additional formatting or explanation."
    )
