"""Tests for the caching token manager."""

import asyncio
import unittest
from datetime import timedelta

from vm_onoff.cloud.azure.token_manager import TokenManager, TokenRecord
from vm_onoff.cloud.errors import AuthError, ServerError

from tests.base import FakeClock, FakeTokenProvider


class TestTokenRecord(unittest.TestCase):
    """Tests for TokenRecord expiry."""

    def setUp(self):
        self.clock = FakeClock()
        self.record = TokenRecord("t", self.clock() + timedelta(seconds=60))

    def test_valid_before_expiry(self):
        self.assertFalse(self.record.is_expired(self.clock()))

    def test_expired_at_expiry_instant(self):
        self.clock.advance(60)
        self.assertTrue(self.record.is_expired(self.clock()))

    def test_buffer_expires_early(self):
        """Test that a refresh buffer treats a nearly expired token as expired."""
        self.clock.advance(30)
        self.assertTrue(self.record.is_expired(self.clock(), timedelta(seconds=45)))
        self.assertFalse(self.record.is_expired(self.clock(), timedelta(seconds=15)))


class TestTokenManager(unittest.IsolatedAsyncioTestCase):
    """Tests for TokenManager caching and renewal."""

    def setUp(self):
        self.clock = FakeClock()
        self.provider = FakeTokenProvider(self.clock, lifetime=3600)
        self.manager = TokenManager(self.provider, clock=self.clock)

    async def test_first_call_renews_once(self):
        """Test that an empty cache triggers exactly one renewal."""
        record = await self.manager.get_token()
        self.assertEqual(record.access_token, "token-1")
        self.assertEqual(self.provider.calls, 1)

    async def test_second_call_before_expiry_uses_cache(self):
        """Test that a valid cached token is returned without renewing."""
        first = await self.manager.get_token()
        self.clock.advance(3599)
        second = await self.manager.get_token()
        self.assertEqual(second, first)
        self.assertEqual(self.provider.calls, 1)

    async def test_call_after_expiry_renews_again(self):
        """Test that an expired token is replaced by exactly one renewal."""
        await self.manager.get_token()
        self.clock.advance(3600)
        record = await self.manager.get_token()
        self.assertEqual(record.access_token, "token-2")
        self.assertEqual(self.provider.calls, 2)

    async def test_refresh_buffer_renews_early(self):
        """Test that tokens inside the refresh buffer are renewed."""
        manager = TokenManager(
            self.provider, refresh_buffer=timedelta(minutes=5), clock=self.clock
        )
        await manager.get_token()
        self.clock.advance(3600 - 299)
        await manager.get_token()
        self.assertEqual(self.provider.calls, 2)

    async def test_short_lived_token_is_cached_despite_buffer(self):
        """Test that a buffer longer than the token lifetime does not force renewal on every call."""
        provider = FakeTokenProvider(self.clock, lifetime=200)
        manager = TokenManager(provider, refresh_buffer=timedelta(minutes=5), clock=self.clock)

        for _ in range(3):
            await manager.get_token()
        self.assertEqual(provider.calls, 1)

        self.clock.advance(99)
        await manager.get_token()
        self.assertEqual(provider.calls, 1)

        self.clock.advance(1)
        record = await manager.get_token()
        self.assertEqual(record.access_token, "token-2")
        self.assertEqual(provider.calls, 2)

    async def test_already_expired_token_is_not_cached(self):
        provider = FakeTokenProvider(self.clock, lifetime=0)
        manager = TokenManager(provider, refresh_buffer=timedelta(minutes=5), clock=self.clock)

        await manager.get_token()
        await manager.get_token()
        self.assertEqual(provider.calls, 2)

    async def test_concurrent_callers_share_one_renewal(self):
        """Test that callers overlapping an in-flight renewal all reuse it."""
        self.provider.gate = asyncio.Event()

        tasks = [asyncio.create_task(self.manager.get_token()) for _ in range(10)]
        # Let every task reach the lock before the renewal completes
        for _ in range(5):
            await asyncio.sleep(0)
        self.provider.gate.set()
        records = await asyncio.gather(*tasks)

        self.assertEqual(self.provider.calls, 1)
        self.assertEqual({record.access_token for record in records}, {"token-1"})

    async def test_failure_is_wrapped_in_auth_error(self):
        """Test that renewal failures surface as AuthError with the cause chained."""
        cause = ServerError(401)
        self.provider.fail_with = cause

        with self.assertRaises(AuthError) as ctx:
            await self.manager.get_token()
        self.assertIs(ctx.exception.__cause__, cause)

    async def test_failure_leaves_cache_untouched(self):
        """Test that a failed renewal keeps the old token and a later call retries."""
        first = await self.manager.get_token()
        self.clock.advance(3600)
        self.provider.fail_with = ServerError(503)

        with self.assertRaises(AuthError):
            await self.manager.get_token()
        self.assertEqual(self.manager._cached, first)

        self.provider.fail_with = None
        record = await self.manager.get_token()
        self.assertEqual(record.access_token, "token-3")
        self.assertEqual(self.provider.calls, 3)

    async def test_lock_released_after_failure(self):
        """Test that a failed renewal does not leave the lock held."""
        self.provider.fail_with = RuntimeError("boom")
        with self.assertRaises(AuthError):
            await self.manager.get_token()
        self.assertFalse(self.manager._lock.locked())

    async def test_invalidate_forces_renewal(self):
        await self.manager.get_token()
        self.manager.invalidate()
        await self.manager.get_token()
        self.assertEqual(self.provider.calls, 2)

    async def test_get_auth_token_delegates(self):
        """Test that the manager can itself act as a token provider."""
        record = await self.manager.get_auth_token()
        self.assertEqual(record.access_token, "token-1")


if __name__ == "__main__":
    unittest.main()
