"""Caching of access tokens with single-flight renewal."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from vm_onoff.cloud.errors import AuthError
from vm_onoff.tracing import FunctionTrace, Session

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenRecord:
    """An access token and the instant it stops being valid."""

    access_token: str
    expires_at: datetime

    def is_expired(self, now: datetime, buffer: timedelta = timedelta(0)) -> bool:
        return now >= self.expires_at - buffer


class TokenProvider(Protocol):
    """Anything that can hand out a bearer token."""

    async def get_auth_token(self, session: Session | None = None) -> TokenRecord:
        ...


class TokenManager:
    """Caches one token from a TokenProvider and renews it when it expires.

    The lock is held across the renewal call, so concurrent callers that
    arrive while a renewal is in flight wait for it and then reuse its
    result instead of each starting their own.

    A token is renewed ``refresh_buffer`` before it expires, but never
    earlier than halfway through the lifetime it was issued with.
    """

    def __init__(
        self,
        provider: TokenProvider,
        refresh_buffer: timedelta = timedelta(0),
        clock: Callable[[], datetime] = utc_now,
    ):
        self._provider = provider
        self._refresh_buffer = refresh_buffer
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cached: TokenRecord | None = None
        self._cached_buffer = refresh_buffer

    async def get_token(self, session: Session | None = None) -> TokenRecord:
        """Return the cached token, renewing it first if missing or expired.

        Raises:
            AuthError: If renewal fails. The cache is left as it was, so the
                next call tries again.
        """
        async with self._lock:
            cached = self._cached
            if cached is not None and not cached.is_expired(
                self._clock(), self._cached_buffer
            ):
                return cached

            with FunctionTrace(session, "Renewing access token") as trace:
                try:
                    record = await self._provider.get_auth_token(session=session)
                except Exception as e:
                    logger.warning(f"Access token renewal failed: {e}")
                    raise AuthError(f"token provider: {e}") from e

                self._cached = record
                self._cached_buffer = self._buffer_for(record)
                trace.log("Access token renewed", expires_at=record.expires_at.isoformat())

            logger.info(f"Renewed access token, valid until {record.expires_at.isoformat()}")
            return record

    def _buffer_for(self, record: TokenRecord) -> timedelta:
        lifetime = max(record.expires_at - self._clock(), timedelta(0))
        return min(self._refresh_buffer, lifetime / 2)

    async def get_auth_token(self, session: Session | None = None) -> TokenRecord:
        """TokenProvider entry point, so a manager can stand in for its provider."""
        return await self.get_token(session=session)

    def invalidate(self) -> None:
        """Drop the cached token; the next call renews."""
        self._cached = None
        self._cached_buffer = self._refresh_buffer
