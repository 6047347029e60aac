"""Registry of configured compute providers."""

from collections.abc import Mapping
from types import MappingProxyType

from vm_onoff.cloud.errors import UnknownProviderError
from vm_onoff.cloud.interfaces import ComputeProvider


class Core:
    """Immutable mapping from provider key to provider instance.

    Built once at startup; lookups are safe from any number of concurrent
    tasks because nothing is ever added or removed afterwards.
    """

    def __init__(self, providers: Mapping[str, ComputeProvider]):
        self._providers = MappingProxyType(dict(providers))

    @property
    def providers(self) -> Mapping[str, ComputeProvider]:
        return self._providers

    def keys(self) -> list[str]:
        """Keys of all configured providers, in registration order."""
        return list(self._providers)

    def provider(self, key: str) -> ComputeProvider | None:
        return self._providers.get(key)

    def has_provider(self, key: str) -> bool:
        return key in self._providers

    def require(self, key: str) -> ComputeProvider:
        """Like provider(), but raises UnknownProviderError when absent."""
        provider = self._providers.get(key)
        if provider is None:
            raise UnknownProviderError(key)
        return provider
