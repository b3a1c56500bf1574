import os

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from vision_metadata.schemas.prompts import DEFAULT_PROMPT

AZURE_OPENAI_URL = os.environ.get("AZURE_OPENAI_URL", "")
AZURE_OPENAI_DEPLOYMENT = os.environ.get("AZURE_OPENAI_DEPLOYMENT", "")
AZURE_OPENAI_API_VERSION = os.environ.get("AZURE_OPENAI_API_VERSION", "2024-02-15-preview")
AZURE_OPENAI_API_KEY = os.environ.get("AZURE_OPENAI_API_KEY", "")
MODEL_NAME = os.environ.get("MODEL_NAME", "gpt-4-vision-preview")

SECONDARY_API_URL = os.environ.get("SECONDARY_API_URL", "")

REQUEST_TIMEOUT_MS = int(os.environ.get("REQUEST_TIMEOUT_MS", "30000"))
RETRY_ATTEMPTS = int(os.environ.get("RETRY_ATTEMPTS", "3"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Sample values shipped in settings templates; an endpoint still set to one of
# these has never been filled in.
PLACEHOLDER_VALUES = frozenset(
    {
        "https://your-resource.openai.azure.com",
        "https://your-openai-api-endpoint.com/analyze",
        "your-deployment-name",
    }
)


class Configuration(BaseModel):
    """Connection and generation settings for one metadata call.

    Instances are immutable snapshots. Use ``merged`` to apply user overrides;
    a call in flight keeps the snapshot it started with.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())

    endpoint_base: str = Field(
        default="",
        validation_alias=AliasChoices("endpoint_base", "openaiUrl", "openApiUrl"),
    )
    deployment_id: str = Field(
        default="", validation_alias=AliasChoices("deployment_id", "deployment")
    )
    api_version: str = Field(
        default="2024-02-15-preview",
        validation_alias=AliasChoices("api_version", "apiVersion"),
    )
    api_key: str = Field(default="", validation_alias=AliasChoices("api_key", "apiKey"))
    model_name: str = Field(
        default="gpt-4-vision-preview",
        validation_alias=AliasChoices("model_name", "modelName"),
    )
    timeout_ms: int = Field(
        default=30000, ge=1, validation_alias=AliasChoices("timeout_ms", "timeout")
    )
    retry_attempts: int = Field(
        default=3, ge=1, validation_alias=AliasChoices("retry_attempts", "retryAttempts")
    )
    fallback_prompt_text: str = Field(
        default=DEFAULT_PROMPT,
        validation_alias=AliasChoices("fallback_prompt_text", "customPrompt"),
    )
    secondary_url: str = Field(
        default="", validation_alias=AliasChoices("secondary_url", "llamaUrl")
    )
    # None means "infer from the endpoint fields"
    configured: bool | None = None

    @classmethod
    def from_env(cls) -> "Configuration":
        """Build a configuration from environment variables."""
        return cls(
            endpoint_base=AZURE_OPENAI_URL,
            deployment_id=AZURE_OPENAI_DEPLOYMENT,
            api_version=AZURE_OPENAI_API_VERSION,
            api_key=AZURE_OPENAI_API_KEY,
            model_name=MODEL_NAME,
            timeout_ms=REQUEST_TIMEOUT_MS,
            retry_attempts=RETRY_ATTEMPTS,
            secondary_url=SECONDARY_API_URL,
        )

    def merged(self, overrides: dict) -> "Configuration":
        """Return a new configuration with ``overrides`` applied on top.

        Args:
            overrides: Field values keyed by field name or settings key

        Returns:
            Validated Configuration snapshot
        """
        parsed = type(self).model_validate(overrides)
        explicit = parsed.model_dump(include=parsed.model_fields_set)
        return type(self).model_validate({**self.model_dump(), **explicit})

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def is_configured(self) -> bool:
        """Whether the primary endpoint can be called.

        An explicit ``configured`` flag replaces the placeholder check; the
        base URL, deployment id and API version must be present either way.
        """
        fields = [
            value.strip()
            for value in (self.endpoint_base, self.deployment_id, self.api_version)
        ]
        if not all(fields):
            return False
        if self.configured is not None:
            return self.configured
        return not any(value.rstrip("/") in PLACEHOLDER_VALUES for value in fields)

    def summary(self) -> dict:
        """Loggable view of the configuration with the API key redacted."""
        return {
            "endpoint_base": self.endpoint_base,
            "deployment_id": self.deployment_id,
            "api_version": self.api_version,
            "model_name": self.model_name,
            "api_key": f"{self.api_key[:8]}..." if self.api_key else "Not set",
            "timeout_ms": self.timeout_ms,
            "retry_attempts": self.retry_attempts,
            "secondary_url": self.secondary_url or "Not set",
        }
