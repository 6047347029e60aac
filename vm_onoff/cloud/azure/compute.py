"""Azure Compute (virtual machines) provider implementation."""

from __future__ import annotations

import logging
from typing import Iterable

import httpx

from vm_onoff.cloud.azure import models
from vm_onoff.cloud.azure.http import parse_json, send
from vm_onoff.cloud.azure.ids import ResourceId, vms_path
from vm_onoff.cloud.azure.token_manager import TokenProvider
from vm_onoff.cloud.errors import ServerError
from vm_onoff.cloud.interfaces import ComputeProvider, Instance, State
from vm_onoff.tracing import FunctionTrace, Session

logger = logging.getLogger(__name__)

DEFAULT_MANAGEMENT_URL = "https://management.azure.com"
DEFAULT_API_VERSION = "2021-07-01"

_OFF_CODES = frozenset(
    {models.STATUS_POWER_STATE_STOPPED, models.STATUS_POWER_STATE_DEALLOCATED}
)
_ON_CODES = frozenset({models.STATUS_POWER_STATE_RUNNING})
_IN_PROGRESS_CODES = frozenset(
    {
        models.STATUS_POWER_STATE_STOPPING,
        models.STATUS_POWER_STATE_DEALLOCATING,
        models.STATUS_POWER_STATE_STARTING,
    }
)


def detect_state(status_codes: Iterable[str]) -> State:
    """Derive a power state from instance view status codes.

    A state is reported only when exactly one of on/off/in-progress is
    signalled. Missing or conflicting signals give State.OTHER.
    """
    codes = set(status_codes)
    signals = {
        State.ON: bool(codes & _ON_CODES),
        State.OFF: bool(codes & _OFF_CODES),
        State.IN_PROGRESS: bool(codes & _IN_PROGRESS_CODES),
    }
    matched = [state for state, present in signals.items() if present]
    if len(matched) == 1:
        return matched[0]
    return State.OTHER


class AzureComputeProvider(ComputeProvider):
    """Azure Resource Manager implementation of ComputeProvider.

    Instances are addressed as "{resource_group}/{vm_name}" within one
    subscription. Stopping a VM deallocates it, which releases its compute
    resources and stops billing for them.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        subscription_id: str,
        token_provider: TokenProvider,
        management_url: str = DEFAULT_MANAGEMENT_URL,
        api_version: str = DEFAULT_API_VERSION,
    ):
        self.client = client
        self.subscription_id = subscription_id
        self.token_provider = token_provider
        self.management_url = management_url.rstrip("/")
        self.api_version = api_version

    def _vm_url(self, resource_id: ResourceId, action: str = "", query_extras: str = "") -> str:
        return (
            f"{self.management_url}{resource_id.resource_path(self.subscription_id)}"
            f"{action}?api-version={self.api_version}{query_extras}"
        )

    def _all_vms_url(self) -> str:
        return (
            f"{self.management_url}{vms_path(self.subscription_id)}"
            f"?api-version={self.api_version}&statusOnly=true"
        )

    def _build_request(self, access_token: str, method: str, url: str) -> httpx.Request:
        headers = {"Authorization": f"Bearer {access_token}"}
        if method == "POST":
            headers["Content-Length"] = "0"
        return self.client.build_request(method, url, headers=headers)

    async def _exec(
        self, method: str, url: str, session: Session | None = None
    ) -> httpx.Response:
        token = await self.token_provider.get_auth_token(session=session)
        request = self._build_request(token.access_token, method, url)
        return await send(self.client, request)

    async def _list_page(
        self, url: str, session: Session | None = None
    ) -> models.Page[models.VirtualMachine]:
        response = await self._exec("GET", url, session=session)
        return parse_json(response, models.Page[models.VirtualMachine])

    @staticmethod
    def _to_instance(vm: models.VirtualMachine) -> Instance:
        resource_id = ResourceId.from_resource_path(vm.id)
        return Instance(
            id=resource_id.to_opaque(),
            display_name=vm.name,
            state=detect_state(vm.status_codes),
        )

    async def list(self, session: Session | None = None) -> list[Instance]:
        """List all VMs in the subscription, following nextLink pages."""
        with FunctionTrace(
            session, "Listing Azure VMs", subscription_id=self.subscription_id
        ) as trace:
            page = await self._list_page(self._all_vms_url(), session=session)
            instances = [self._to_instance(vm) for vm in page.value]
            pages = 1

            while page.next_link:
                trace.log("Fetching next page...", page=pages + 1)
                page = await self._list_page(page.next_link, session=session)
                instances.extend(self._to_instance(vm) for vm in page.value)
                pages += 1

            logger.debug(f"Listed {len(instances)} Azure VMs across {pages} page(s)")
            trace.log("Azure VMs listed", count=len(instances), pages=pages)
            return instances

    async def get(
        self, instance_id: str, session: Session | None = None
    ) -> Instance | None:
        """Get a VM with its instance view, or None if Azure reports 404."""
        with FunctionTrace(session, "Fetching Azure VM", instance_id=instance_id) as trace:
            resource_id = ResourceId.from_opaque(instance_id)
            url = self._vm_url(resource_id, query_extras="&$expand=instanceView")

            try:
                response = await self._exec("GET", url, session=session)
            except ServerError as e:
                if e.status_code == 404:
                    logger.debug(f"Azure VM {instance_id} not found")
                    trace.log("Azure VM not found")
                    return None
                raise

            instance = self._to_instance(parse_json(response, models.VirtualMachine))
            trace.log("Azure VM fetched", state=instance.state.value)
            return instance

    async def start(self, instance_id: str, session: Session | None = None) -> None:
        """Start a VM."""
        with FunctionTrace(session, "Starting Azure VM", instance_id=instance_id) as trace:
            resource_id = ResourceId.from_opaque(instance_id)
            trace.log("Sending start request to Azure...")
            await self._exec("POST", self._vm_url(resource_id, "/start"), session=session)
            logger.info(f"Requested start of Azure VM {instance_id}")

    async def stop(self, instance_id: str, session: Session | None = None) -> None:
        """Stop and deallocate a VM."""
        with FunctionTrace(session, "Deallocating Azure VM", instance_id=instance_id) as trace:
            resource_id = ResourceId.from_opaque(instance_id)
            trace.log("Sending deallocate request to Azure...")
            await self._exec(
                "POST", self._vm_url(resource_id, "/deallocate"), session=session
            )
            logger.info(f"Requested deallocation of Azure VM {instance_id}")
