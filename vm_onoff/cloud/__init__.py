"""Cloud abstraction layer."""

from vm_onoff.cloud.errors import (
    AuthError,
    DecodeError,
    IdParseError,
    InstanceGoneError,
    ProviderError,
    ServerError,
    TransportError,
    UnknownProviderError,
)
from vm_onoff.cloud.interfaces import ComputeProvider, Instance, State
from vm_onoff.cloud.registry import Core
from vm_onoff.cloud.factory import build_core, open_core

__all__ = [
    "AuthError",
    "ComputeProvider",
    "Core",
    "DecodeError",
    "IdParseError",
    "Instance",
    "InstanceGoneError",
    "ProviderError",
    "ServerError",
    "State",
    "TransportError",
    "UnknownProviderError",
    "build_core",
    "open_core",
]
