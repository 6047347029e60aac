"""Abstract interfaces for cloud providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from vm_onoff.tracing import Session


class State(str, Enum):
    """Normalized power state of an instance."""

    ON = "on"
    OFF = "off"
    IN_PROGRESS = "in_progress"
    OTHER = "other"


@dataclass(frozen=True)
class Instance:
    """A controllable virtual machine, built fresh from remote data."""

    id: str  # Opaque "{group}/{name}" identifier
    display_name: str
    state: State


class ComputeProvider(ABC):
    """Abstract interface for powering VMs of one cloud on and off.

    Every method may raise a ``ProviderError`` subclass on transport,
    decoding, or identifier problems.
    """

    @abstractmethod
    async def list(self, session: Session | None = None) -> list[Instance]:
        """List every instance visible to the provider."""
        ...

    @abstractmethod
    async def get(
        self, instance_id: str, session: Session | None = None
    ) -> Instance | None:
        """Get one instance, or None if it does not exist."""
        ...

    @abstractmethod
    async def start(self, instance_id: str, session: Session | None = None) -> None:
        """Start an instance. Call get() afterwards to observe its state."""
        ...

    @abstractmethod
    async def stop(self, instance_id: str, session: Session | None = None) -> None:
        """Stop an instance. Call get() afterwards to observe its state."""
        ...
