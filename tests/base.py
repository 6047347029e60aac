"""Shared fakes and helpers for the test suite."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx

from vm_onoff.cloud.azure.token_manager import TokenRecord
from vm_onoff.cloud.interfaces import ComputeProvider, Instance, State

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"
MANAGEMENT_URL = "https://management.example.com"
LOGIN_URL = "https://login.example.com"


def vm_resource_path(resource_group: str, vm_name: str) -> str:
    return (
        f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{resource_group}"
        f"/providers/Microsoft.Compute/virtualMachines/{vm_name}"
    )


def vm_payload(resource_group: str, vm_name: str, *codes: str) -> dict[str, Any]:
    """A VirtualMachine body as returned with an instance view."""
    return {
        "name": vm_name,
        "id": vm_resource_path(resource_group, vm_name),
        "location": "eastus",
        "properties": {
            "vmId": "11111111-1111-1111-1111-111111111111",
            "instanceView": {
                "statuses": [
                    {"code": "ProvisioningState/succeeded", "level": "Info"},
                    *({"code": code, "level": "Info"} for code in codes),
                ]
            },
        },
    }


def json_response(status_code: int, body: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode())


class RecordingTransport:
    """Routes requests to a handler and remembers every request it saw."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeTokenProvider:
    """Hands out numbered tokens and counts how often it was asked.

    If ``gate`` is set, each renewal waits on it before returning.
    """

    def __init__(self, clock: FakeClock, lifetime: int = 3600):
        self.clock = clock
        self.lifetime = lifetime
        self.calls = 0
        self.fail_with: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def get_auth_token(self, session=None) -> TokenRecord:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return TokenRecord(
            access_token=f"token-{self.calls}",
            expires_at=self.clock() + timedelta(seconds=self.lifetime),
        )


class StaticTokenProvider:
    """Always returns the same token."""

    def __init__(self, access_token: str = "test-token"):
        self.access_token = access_token
        self.calls = 0

    async def get_auth_token(self, session=None) -> TokenRecord:
        self.calls += 1
        return TokenRecord(
            access_token=self.access_token,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )


class MockComputeProvider(ComputeProvider):
    """In-memory provider for testing the registry and services."""

    def __init__(self, instances: list[Instance] | None = None):
        self.instances: dict[str, Instance] = {
            instance.id: instance for instance in instances or []
        }
        self.list_calls = 0
        self.actions: list[tuple[str, str]] = []
        self.vanish_on_action = False
        self.sessions: list = []

    async def list(self, session=None) -> list[Instance]:
        self.sessions.append(session)
        self.list_calls += 1
        return list(self.instances.values())

    async def get(self, instance_id: str, session=None) -> Instance | None:
        self.sessions.append(session)
        return self.instances.get(instance_id)

    async def start(self, instance_id: str, session=None) -> None:
        self.sessions.append(session)
        self._act("start", instance_id, State.ON)

    async def stop(self, instance_id: str, session=None) -> None:
        self.sessions.append(session)
        self._act("stop", instance_id, State.OFF)

    def _act(self, action: str, instance_id: str, state: State) -> None:
        self.actions.append((action, instance_id))
        if self.vanish_on_action:
            self.instances.pop(instance_id, None)
            return
        instance = self.instances.get(instance_id)
        if instance is not None:
            self.instances[instance_id] = Instance(
                id=instance.id, display_name=instance.display_name, state=state
            )
