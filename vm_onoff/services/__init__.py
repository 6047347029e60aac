"""Business logic services."""

from vm_onoff.services.instances import InstanceKey, InstanceService

__all__ = [
    "InstanceKey",
    "InstanceService",
]
