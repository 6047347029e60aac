"""Conversion between opaque instance ids and Azure resource paths."""

from dataclasses import dataclass
from urllib.parse import quote

from vm_onoff.cloud.errors import IdParseError

SEPARATOR = "/"

# "", "subscriptions", {sub}, "resourceGroups", {rg}, "providers",
# "Microsoft.Compute", "virtualMachines", {name}
_RESOURCE_PATH_SEGMENTS = 9
_RESOURCE_GROUP_INDEX = 4
_VM_NAME_INDEX = 8


@dataclass(frozen=True)
class ResourceId:
    """A VM addressed by resource group and name.

    The opaque form handed to callers is ``"{resource_group}/{vm_name}"``;
    the subscription is implied by the provider that owns the id.
    """

    resource_group: str
    vm_name: str

    def __post_init__(self):
        for part in (self.resource_group, self.vm_name):
            if SEPARATOR in part:
                raise IdParseError(part, reason="ID segment must not contain '/'")

    @classmethod
    def from_opaque(cls, value: str) -> "ResourceId":
        """Parse an opaque id. Exactly one '/' is allowed."""
        parts = value.split(SEPARATOR)
        if len(parts) != 2:
            raise IdParseError(value)
        return cls(resource_group=parts[0], vm_name=parts[1])

    @classmethod
    def from_resource_path(cls, path: str) -> "ResourceId":
        """Parse an Azure resource id, e.g.

        /subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/myrg/providers/Microsoft.Compute/virtualMachines/vm0
        """
        parts = path.split(SEPARATOR)
        if len(parts) != _RESOURCE_PATH_SEGMENTS:
            raise IdParseError(path, reason="unable to parse the Azure resource ID")

        resource_group = parts[_RESOURCE_GROUP_INDEX]
        vm_name = parts[_VM_NAME_INDEX]
        if not resource_group or not vm_name:
            raise IdParseError(path, reason="unable to parse the Azure resource ID")
        return cls(resource_group=resource_group, vm_name=vm_name)

    def to_opaque(self) -> str:
        return f"{self.resource_group}{SEPARATOR}{self.vm_name}"

    def resource_path(self, subscription_id: str) -> str:
        """The ARM path of this VM, with each segment percent-encoded."""
        return (
            f"/subscriptions/{quote(subscription_id, safe='')}"
            f"/resourceGroups/{quote(self.resource_group, safe='')}"
            f"/providers/Microsoft.Compute/virtualMachines/{quote(self.vm_name, safe='')}"
        )


def vms_path(subscription_id: str) -> str:
    """ARM path of every VM in a subscription."""
    return f"/subscriptions/{quote(subscription_id, safe='')}/providers/Microsoft.Compute/virtualMachines"
