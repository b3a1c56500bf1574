"""Prompt rule storage collaborators injected into the facade."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from vision_metadata.schemas.prompts import DEFAULT_PROMPT_RULES, PromptRule


class PromptStore(ABC):
    """Source of the active prompt rule set."""

    @abstractmethod
    def load(self) -> list[PromptRule]:
        """Return the current rules in display order."""
        pass

    @abstractmethod
    def save(self, rules: Iterable[PromptRule]) -> None:
        """Replace the stored rules."""
        pass


class InMemoryPromptStore(PromptStore):
    """Process-local rule set, seeded with the first-run defaults."""

    def __init__(self, rules: Iterable[PromptRule] | None = None):
        self._rules = list(DEFAULT_PROMPT_RULES if rules is None else rules)

    def load(self) -> list[PromptRule]:
        # Copies, so callers cannot mutate the stored set
        return [rule.model_copy() for rule in self._rules]

    def save(self, rules: Iterable[PromptRule]) -> None:
        self._rules = [
            rule for rule in rules if rule.property.strip() and rule.prompt.strip()
        ]
