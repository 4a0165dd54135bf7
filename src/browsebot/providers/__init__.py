from browsebot.providers.base import ModelProvider, ProviderDescriptor, RequestEnvelope
from browsebot.providers.factory import ProviderName, build_provider

__all__ = [
    "ModelProvider",
    "ProviderDescriptor",
    "ProviderName",
    "RequestEnvelope",
    "build_provider",
]
