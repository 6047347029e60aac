"""Wire models for the Azure Compute REST API.

Only the fields this package reads are declared; everything else in the
payload is ignored.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

STATUS_POWER_STATE_STOPPING = "PowerState/stopping"
STATUS_POWER_STATE_STOPPED = "PowerState/stopped"
STATUS_POWER_STATE_DEALLOCATING = "PowerState/deallocating"
STATUS_POWER_STATE_DEALLOCATED = "PowerState/deallocated"
STATUS_POWER_STATE_STARTING = "PowerState/starting"
STATUS_POWER_STATE_RUNNING = "PowerState/running"


class AzureModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InstanceViewStatus(AzureModel):
    code: str


class VirtualMachineInstanceView(AzureModel):
    statuses: list[InstanceViewStatus] = Field(default_factory=list)


class VirtualMachineProperties(AzureModel):
    # Absent when the VM was fetched without $expand=instanceView or statusOnly
    instance_view: VirtualMachineInstanceView = Field(
        default_factory=VirtualMachineInstanceView
    )


class VirtualMachine(AzureModel):
    name: str
    id: str  # /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.Compute/virtualMachines/{name}
    properties: VirtualMachineProperties = Field(default_factory=VirtualMachineProperties)

    @property
    def status_codes(self) -> list[str]:
        return [status.code for status in self.properties.instance_view.statuses]


class Page(AzureModel, Generic[T]):
    """One page of a list response."""

    value: list[T] = Field(default_factory=list)
    next_link: str | None = None
