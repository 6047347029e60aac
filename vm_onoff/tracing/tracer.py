"""Per-operation tracing of provider calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ContextManager, Protocol
from uuid import uuid4

from vm_onoff.config import get_settings

logger = logging.getLogger(__name__)

# Values longer than this are cut short in the summary
MAX_VALUE_LENGTH = 100


@dataclass
class TraceEvent:
    """A single step recorded during an operation."""

    timestamp: datetime
    message: str
    kwargs: dict[str, Any]


class Session(Protocol):
    """Protocol for trace sessions."""

    def log(self, message: str, **kwargs: Any) -> None:
        """Record a step with optional key-value context."""
        ...

    def finalize(self) -> None:
        """Emit whatever the session collected."""
        ...


class FunctionTrace(ContextManager[None]):
    """Records entry into a function, its steps, and any exception it raises.

    Steps logged through the trace are indented under the entry message.
    A None session turns every call into a no-op.
    """

    def __init__(self, session: Session | None, message: str, **kwargs: Any) -> None:
        self._session = session
        self._message = message
        self._kwargs = kwargs

    def __enter__(self) -> FunctionTrace:
        if self._session is not None:
            self._session.log(self._message, **self._kwargs)
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        if exc_type is not None:
            self.log(f"Exception in {self._message}: {exc_value}", error=exc_type.__name__)

    def log(self, message: str, **kwargs: Any) -> None:
        if self._session is not None:
            self._session.log(f"  {message}", **kwargs)


@dataclass
class OperationTrace:
    """Collects the steps of one operation against one provider."""

    operation: str
    provider: str | None = None
    instance_id: str | None = None
    trace_id: str = field(default_factory=lambda: uuid4().hex[:12])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _events: list[TraceEvent] = field(default_factory=list)

    @property
    def events(self) -> list[TraceEvent]:
        return list(self._events)

    def log(self, message: str, **kwargs: Any) -> None:
        self._events.append(
            TraceEvent(timestamp=datetime.now(timezone.utc), message=message, kwargs=kwargs)
        )

    def finalize(self) -> None:
        """Write a summary of the operation and its steps to the logger."""
        elapsed_ms = (datetime.now(timezone.utc) - self.started_at).total_seconds() * 1000
        target = self.provider or "-"
        if self.instance_id:
            target = f"{target}:{self.instance_id}"

        lines = [f"[{self.trace_id}] {self.operation} {target} ({elapsed_ms:.0f}ms)"]
        for event in self._events:
            offset_ms = (event.timestamp - self.started_at).total_seconds() * 1000
            lines.append(f"  +{offset_ms:6.0f}ms {event.message}{_format_kwargs(event.kwargs)}")
        logger.info("\n".join(lines))


def _format_kwargs(kwargs: dict[str, Any]) -> str:
    if not kwargs:
        return ""
    parts = []
    for key, value in kwargs.items():
        text = str(value)
        if len(text) > MAX_VALUE_LENGTH:
            text = text[: MAX_VALUE_LENGTH - 3] + "..."
        parts.append(f"{key}={text}")
    return " | " + ", ".join(parts)


class NoOpSession:
    """Session used when tracing is off. Records nothing."""

    def log(self, message: str, **kwargs: Any) -> None:
        pass

    def finalize(self) -> None:
        pass


class EventTracer:
    """Hands out trace sessions; tracing is on when settings.debug is set."""

    _instance: EventTracer | None = None

    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = get_settings().debug if enabled is None else enabled

    @classmethod
    def get_instance(cls) -> EventTracer:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def create_session(
        self,
        operation: str,
        provider: str | None = None,
        instance_id: str | None = None,
    ) -> Session:
        if not self.enabled:
            return NoOpSession()
        return OperationTrace(operation=operation, provider=provider, instance_id=instance_id)
