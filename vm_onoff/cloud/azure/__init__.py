"""Azure cloud provider implementations."""

from vm_onoff.cloud.azure.compute import AzureComputeProvider, detect_state
from vm_onoff.cloud.azure.identity import AuthResponse, ClientCredentials
from vm_onoff.cloud.azure.ids import ResourceId
from vm_onoff.cloud.azure.token_manager import TokenManager, TokenRecord

__all__ = [
    "AuthResponse",
    "AzureComputeProvider",
    "ClientCredentials",
    "ResourceId",
    "TokenManager",
    "TokenRecord",
    "detect_state",
]
