"""Instance operations resolved through the provider registry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from vm_onoff.cloud.errors import InstanceGoneError
from vm_onoff.cloud.interfaces import ComputeProvider, Instance
from vm_onoff.cloud.registry import Core
from vm_onoff.tracing import EventTracer, FunctionTrace, Session

logger = logging.getLogger(__name__)

InstanceKey = tuple[str, str]  # (provider key, instance id)


class InstanceService:
    """Front door for callers that address instances by provider key.

    Raises UnknownProviderError for keys that are not registered; every
    other error comes straight from the provider. Each call traces into the
    given session, or into a fresh one from the EventTracer that is
    finalized when the call returns.
    """

    def __init__(self, core: Core, tracer: EventTracer | None = None):
        self.core = core
        self._tracer = tracer

    @property
    def tracer(self) -> EventTracer:
        return self._tracer or EventTracer.get_instance()

    @contextmanager
    def _session(
        self,
        session: Session | None,
        operation: str,
        provider_key: str | None = None,
        instance_id: str | None = None,
    ) -> Iterator[Session]:
        if session is not None:
            yield session
            return
        owned = self.tracer.create_session(
            operation, provider=provider_key, instance_id=instance_id
        )
        try:
            yield owned
        finally:
            owned.finalize()

    async def list_instances(
        self, provider_key: str, session: Session | None = None
    ) -> list[Instance]:
        provider = self.core.require(provider_key)
        with self._session(session, "list", provider_key) as session:
            return await provider.list(session=session)

    async def get_instance(
        self, provider_key: str, instance_id: str, session: Session | None = None
    ) -> Instance | None:
        provider = self.core.require(provider_key)
        with self._session(session, "get", provider_key, instance_id) as session:
            return await provider.get(instance_id, session=session)

    async def start_instance(
        self, provider_key: str, instance_id: str, session: Session | None = None
    ) -> Instance:
        """Start an instance and return its state as observed afterwards."""
        provider = self.core.require(provider_key)
        with self._session(session, "start", provider_key, instance_id) as session:
            await provider.start(instance_id, session=session)
            return await self._refetch(provider, provider_key, instance_id, session)

    async def stop_instance(
        self, provider_key: str, instance_id: str, session: Session | None = None
    ) -> Instance:
        """Stop an instance and return its state as observed afterwards."""
        provider = self.core.require(provider_key)
        with self._session(session, "stop", provider_key, instance_id) as session:
            await provider.stop(instance_id, session=session)
            return await self._refetch(provider, provider_key, instance_id, session)

    async def _refetch(
        self,
        provider: ComputeProvider,
        provider_key: str,
        instance_id: str,
        session: Session,
    ) -> Instance:
        instance = await provider.get(instance_id, session=session)
        if instance is None:
            raise InstanceGoneError(provider_key, instance_id)
        return instance

    async def load_instances(
        self, keys: Iterable[InstanceKey], session: Session | None = None
    ) -> dict[InstanceKey, Instance]:
        """Batch-load instances with one list() call per distinct provider.

        Keys naming an unknown provider or a missing instance are left out
        of the result. If any listing fails, the others still running are
        cancelled and the first error is raised.
        """
        ids_by_provider: dict[str, set[str]] = {}
        for provider_key, instance_id in keys:
            ids_by_provider.setdefault(provider_key, set()).add(instance_id)

        known = {}
        for provider_key, ids in ids_by_provider.items():
            provider = self.core.provider(provider_key)
            if provider is None:
                logger.debug(f"Skipping unknown provider {provider_key!r} in batch load")
                continue
            known[provider_key] = (provider, ids)

        with self._session(session, "load") as session:
            with FunctionTrace(session, "Batch loading instances", providers=len(known)):
                listings = await self._list_all(
                    [provider for provider, _ in known.values()], session
                )

        found: dict[InstanceKey, Instance] = {}
        for (provider_key, (_, ids)), instances in zip(known.items(), listings):
            for instance in instances:
                if instance.id in ids:
                    found[(provider_key, instance.id)] = instance
        return found

    @staticmethod
    async def _list_all(
        providers: list[ComputeProvider], session: Session
    ) -> list[list[Instance]]:
        tasks = [asyncio.ensure_future(provider.list(session=session)) for provider in providers]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Wait for the cancellations so no listing outlives the call
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
