"""Tests for the revocation cleanup service."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from sessionward.services.revocation import RevocationService
from sessionward.services.revocation_cleanup import (
    DEFAULT_CLEANUP_INTERVAL_SECONDS,
    RevocationCleanupService,
)
from sessionward.services.tokens import TokenIssuer


class TestRevocationCleanupSingleton:
    """Tests for singleton access."""

    def test_get_instance_returns_same_instance(self):
        RevocationCleanupService._instance = None

        instance1 = RevocationCleanupService.get_instance()
        instance2 = RevocationCleanupService.get_instance()

        assert instance1 is instance2
        RevocationCleanupService._instance = None

    def test_default_interval(self):
        assert RevocationCleanupService().interval_seconds == DEFAULT_CLEANUP_INTERVAL_SECONDS


class TestRevocationCleanupConfiguration:
    """Tests for interval configuration."""

    def test_interval_setter(self):
        service = RevocationCleanupService()

        service.interval_seconds = 120
        assert service.interval_seconds == 120

    def test_negative_interval_clamped_to_zero(self):
        service = RevocationCleanupService()

        service.interval_seconds = -5
        assert service.interval_seconds == 0


class TestRevocationCleanupLifecycle:
    """Tests for start/stop."""

    @pytest.mark.asyncio
    async def test_start_does_nothing_when_disabled(self):
        service = RevocationCleanupService(interval_seconds=0)

        await service.start()

        assert service.running is False
        assert service._task is None

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        service = RevocationCleanupService(interval_seconds=3600)

        with patch.object(service, "_cleanup_loop", new_callable=AsyncMock):
            await service.start()
            assert service.running is True

        await service.stop()

        assert service.running is False
        assert service._task is None

    @pytest.mark.asyncio
    async def test_start_twice_logs_warning(self):
        service = RevocationCleanupService(interval_seconds=3600)

        with patch.object(service, "_cleanup_loop", new_callable=AsyncMock):
            await service.start()
            with patch("sessionward.services.revocation_cleanup.logger") as mock_logger:
                await service.start()
                mock_logger.warning.assert_called()

        await service.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_running_loop(self):
        service = RevocationCleanupService(interval_seconds=3600)

        await service.start()
        task = service._task
        await asyncio.sleep(0)
        await service.stop()

        assert task.cancelled() or task.done()

    @pytest.mark.asyncio
    async def test_cleanup_loop_survives_errors(self):
        service = RevocationCleanupService(interval_seconds=10)
        service._running = True
        calls = 0

        async def flaky_cleanup():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("database unavailable")
            service._running = False
            return 0

        with patch.object(service, "run_cleanup_now", side_effect=flaky_cleanup):
            with patch("asyncio.sleep", new_callable=AsyncMock):
                with patch("sessionward.services.revocation_cleanup.logger") as mock_logger:
                    await service._cleanup_loop()
                    mock_logger.error.assert_called()

        assert calls == 2


class TestRevocationCleanupRun:
    """Tests for a single cleanup run against the database."""

    @pytest.mark.asyncio
    async def test_run_cleanup_now_purges_expired(self, session_factory, session_config, token_user):
        issuer = TokenIssuer(session_config)
        expired = issuer.issue(token_user, now=datetime.now(UTC) - timedelta(days=3))
        live = issuer.issue(token_user)
        async with session_factory() as session:
            revocations = RevocationService(session, session_config)
            await revocations.revoke(expired.token)
            await revocations.revoke(live.token)

        service = RevocationCleanupService(session_factory=session_factory)
        with patch("sessionward.services.revocation_cleanup.logger") as mock_logger:
            removed = await service.run_cleanup_now()
            assert "1" in str(mock_logger.info.call_args)

        assert removed == 1
        async with session_factory() as session:
            revocations = RevocationService(session, session_config)
            assert await revocations.is_revoked(live.token) is True
            assert await revocations.is_revoked(expired.token) is False

    @pytest.mark.asyncio
    async def test_run_cleanup_now_with_empty_table(self, session_factory):
        service = RevocationCleanupService(session_factory=session_factory)

        assert await service.run_cleanup_now() == 0
