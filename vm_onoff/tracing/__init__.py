"""Tracing package for debugging provider call flows."""

from vm_onoff.tracing.tracer import (
    EventTracer,
    FunctionTrace,
    NoOpSession,
    OperationTrace,
    Session,
    TraceEvent,
)

__all__ = [
    "EventTracer",
    "FunctionTrace",
    "NoOpSession",
    "OperationTrace",
    "Session",
    "TraceEvent",
]
