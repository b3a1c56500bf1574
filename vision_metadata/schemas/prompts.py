"""Prompt rules and built-in prompt texts."""

import uuid
from collections.abc import Iterable

from pydantic import BaseModel, Field


class PromptRule(BaseModel):
    """User-defined instruction for one metadata property."""

    property: str
    prompt: str
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])


def rules_by_property(rules: Iterable[PromptRule]) -> dict[str, str]:
    """Map property name to prompt text. The first rule for a property wins."""
    mapping: dict[str, str] = {}
    for rule in rules:
        name = rule.property.strip()
        if name and name not in mapping:
            mapping[name] = rule.prompt
    return mapping


def active_properties(rules: Iterable[PromptRule]) -> list[str]:
    """Ordered, de-duplicated property names declared by ``rules``."""
    return list(rules_by_property(rules))


# Global default prompt, used when no property is requested
DEFAULT_PROMPT = """Enrich asset metadata for discoverability.

FACETS (use only when clearly visible):
1. Product/type/model/brand
2. Setting/activity/visuals
3. Mood/palette/style
4. People: age, gender, demography
5. Visible text or logos. NEVER make assumptions or name brands that are not absolutely clearly identifiable in the image or overlay/on-pack text
6. All numbers that appear explicitly on image/overlay (e.g., "500 ml", "v25.3", "iPhone 6")

OUTPUT:
- TITLE (6-10 words): concise, editorial; name brand only if unmistakable.
- DESCRIPTION (3-5 sentences): main subject, then setting/activity, then key visuals; include visible numeric concepts.
- KEYWORDS (up to 12): prioritize single keywords first; use multi-word only when required contextually (e.g., "soccer player").

RULES:
- All numeric values MUST be tagged with their complete unit or metric as a single keyword only if clearly seen in the image/text ("15 oz", "120 ml").
- The following keywords must be removed from the keywords list: "logo", "brand", "branding", "packaging".

Return in pretty-print JSON format. Do not add Markdown or code block formatting. Use exactly these keys: 'Title' (string), 'Description' (string), and 'Keywords' (string containing a comma-separated list of tags)."""

BUILTIN_PROMPTS = {
    "title": (
        "Generate a concise, editorial title (6-10 words) for this image. Focus on the main "
        "subject and key visual elements. Only include brand names if they are unmistakably "
        "visible. Return only the title text, no additional formatting or explanation."
    ),
    "description": (
        "Write a detailed description (3-5 sentences) of this image. Start with the main "
        "subject, then describe the setting/activity, and finally mention key visual elements. "
        "Include any visible numeric values with their units. Return only the description text, "
        "no additional formatting or explanation."
    ),
    "keywords": (
        "Generate up to 12 relevant keywords for this image. Prioritize single keywords first, "
        "use multi-word phrases only when contextually necessary. Include visible numeric values "
        "with units. Exclude: logo, brand, branding, packaging. Return only the keywords as "
        "comma-separated text, no additional formatting or explanation."
    ),
}

# Rule set a first-time user starts with
DEFAULT_PROMPT_RULES = [
    PromptRule(
        id="default-description",
        property="description",
        prompt=(
            "Generate a detailed description for this image. Focus on the main subject, "
            "setting, activity, key visual elements, and any visible text or numeric values. "
            "Provide 3-5 sentences that would help someone understand what this image contains."
        ),
    )
]
