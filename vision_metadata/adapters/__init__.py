"""Adapter factory and exports."""
from vision_metadata.adapters.base import ProviderAdapter


def get_adapter(name: str = "primary") -> ProviderAdapter:
    """Get the adapter for a provider role.

    Args:
        name: ``primary`` (Azure OpenAI) or ``secondary``/``fallback``

    Returns:
        ProviderAdapter instance
    """
    if name in ("secondary", "fallback"):
        from vision_metadata.adapters.generic import GenericVisionAdapter
        return GenericVisionAdapter()
    else:
        # Default to Azure OpenAI
        from vision_metadata.adapters.azure_openai import AzureOpenAIAdapter
        return AzureOpenAIAdapter()


__all__ = ["ProviderAdapter", "get_adapter"]
