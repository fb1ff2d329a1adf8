"""Unit tests for the projection task and the health endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from dramatiq.middleware import Retries

from indexsync.services.aggregation.engine import OutOfOrderEventError
from indexsync.services.aggregation.transitions import InvalidTransitionError
from indexsync.utils.exceptions import TransientFetchError
from jobs import broker as broker_module
from jobs import health
from jobs.tasks.registry_projection_task import (
    project_registry_events,
    run_registry_projection,
    should_retry,
)
from tests.helpers import make_event


class TestProjectRegistryEvents:
    """Tests for one projection pass."""

    @pytest.mark.asyncio
    async def test_success(self):
        runner = AsyncMock()
        runner.run_once.return_value = {
            "from_block": 1,
            "to_block": 50,
            "events_applied": 4,
            "chunks": 1,
        }
        pointer = AsyncMock()

        result = await project_registry_events(runner, pointer)

        assert result == {
            "success": True,
            "events_applied": 4,
            "to_block": 50,
            "errors": [],
        }
        pointer.record_error.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_recorded_and_reraised(self):
        """Failures are recorded on the pointer and left to dramatiq retries."""
        runner = AsyncMock()
        runner.run_once.side_effect = ConnectionError("node down")
        pointer = AsyncMock()

        with pytest.raises(ConnectionError):
            await project_registry_events(runner, pointer)

        pointer.record_error.assert_awaited_once_with("node down")


class TestHealthHandlers:
    """Tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_unhealthy_without_scheduler(self, monkeypatch):
        monkeypatch.setattr(health, "_scheduler", None)

        response = await health.health_handler(MagicMock())

        assert response.status == 503

    @pytest.mark.asyncio
    async def test_reports_indexed_block(self, monkeypatch):
        scheduler = MagicMock()
        scheduler.running = True
        scheduler.get_jobs.return_value = []
        status_client = AsyncMock()
        status_client.get_indexed_block.return_value = 321
        monkeypatch.setattr(health, "_scheduler", scheduler)
        monkeypatch.setattr(health, "_status_client", status_client)

        response = await health.health_handler(MagicMock())

        assert response.status == 200
        assert b'"indexed_block": 321' in response.body

    @pytest.mark.asyncio
    async def test_not_ready_when_stopped(self, monkeypatch):
        scheduler = MagicMock()
        scheduler.running = False
        monkeypatch.setattr(health, "_scheduler", scheduler)

        response = await health.readiness_handler(MagicMock())

        assert response.status == 503


class TestProjectionRetries:
    """Tests for the projection actor's retry policy."""

    @staticmethod
    def run_retries(exception):
        broker = MagicMock()
        broker.get_actor.return_value = run_registry_projection
        message = MagicMock()
        message.actor_name = run_registry_projection.actor_name
        message.options = {}

        Retries().after_process_message(broker, message, exception=exception)
        return broker, message

    def test_only_default_retries_middleware(self):
        retries = [m for m in broker_module.broker.middleware if isinstance(m, Retries)]

        assert len(retries) == 1

    def test_transient_error_is_requeued(self):
        broker, message = self.run_retries(TransientFetchError("node down"))

        broker.enqueue.assert_called_once()
        message.fail.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            OutOfOrderEventError(make_event(block_number=5), (6, 0)),
            InvalidTransitionError("revoked on trusted issuer registry"),
        ],
    )
    def test_projection_errors_not_requeued(self, error):
        broker, message = self.run_retries(error)

        broker.enqueue.assert_not_called()
        message.fail.assert_called_once()

    def test_retries_capped(self):
        assert should_retry(4, ConnectionError("reset"))
        assert not should_retry(5, ConnectionError("reset"))
