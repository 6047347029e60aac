"""Factory for building the provider registry from settings."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import httpx

from vm_onoff.cloud.interfaces import ComputeProvider
from vm_onoff.cloud.registry import Core
from vm_onoff.config import Settings, get_settings


def _build_azure_provider(client: httpx.AsyncClient, settings: Settings) -> ComputeProvider:
    from vm_onoff.cloud.azure import (
        AzureComputeProvider,
        ClientCredentials,
        TokenManager,
    )

    required = {
        "azure_client_id": settings.azure_client_id,
        "azure_client_secret": settings.azure_client_secret,
        "azure_tenant_id": settings.azure_tenant_id,
        "azure_subscription_id": settings.azure_subscription_id,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise ValueError(f"Azure provider is not configured, missing: {', '.join(missing)}")

    credentials = ClientCredentials(
        client=client,
        client_id=settings.azure_client_id,
        client_secret=settings.azure_client_secret,
        tenant_id=settings.azure_tenant_id,
        scopes=settings.azure_scopes,
        login_url=settings.azure_login_url,
    )
    token_manager = TokenManager(
        credentials,
        refresh_buffer=timedelta(seconds=settings.token_refresh_buffer_seconds),
    )
    return AzureComputeProvider(
        client=client,
        subscription_id=settings.azure_subscription_id,
        token_provider=token_manager,
        management_url=settings.azure_management_url,
        api_version=settings.azure_compute_api_version,
    )


def build_core(client: httpx.AsyncClient, settings: Settings | None = None) -> Core:
    """Build the provider registry.

    Args:
        client: HTTP client shared by every provider. The caller owns it.
        settings: Settings to read; defaults to get_settings().

    Returns:
        A Core with one provider per entry of settings.enabled_providers.
    """
    settings = settings or get_settings()

    providers: dict[str, ComputeProvider] = {}
    for key in settings.enabled_providers:
        if key == "azure":
            providers[key] = _build_azure_provider(client, settings)
        else:
            raise ValueError(f"Unknown cloud provider: {key}")

    return Core(providers)


@asynccontextmanager
async def open_core(settings: Settings | None = None) -> AsyncIterator[Core]:
    """Build a registry backed by its own HTTP client, closed on exit."""
    async with httpx.AsyncClient() as client:
        yield build_core(client, settings)
