"""
Video generation orchestrator tests.

Covers:
1. Ensure-running idempotency and failure handling
2. generate() composition of client, retry policy and deadline
3. Shutdown contract and the full one-shot workflow

Run with:
    python -m pytest tests/test_orchestrator.py -v
"""

import asyncio
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Config
from core.retry import RetryPolicy
from services.video_generation.client import GenerationClient
from services.video_generation.errors import (
    GenerationFailed,
    GenerationTimeout,
    HTTPStatus,
    ServerStartFailed,
)
from services.video_generation.models import (
    GenerationRequest,
    GenerationResult,
    WisdomEntry,
)
from services.video_generation.orchestrator import VideoGenerationOrchestrator


class FakeSupervisor:
    """In-memory supervisor that counts lifecycle calls."""

    def __init__(self, running: bool = False, can_start: bool = True):
        self.running = running
        self.can_start = can_start
        self.start_calls = 0
        self.stop_calls = 0

    async def is_running(self) -> bool:
        return self.running

    async def start(self) -> bool:
        self.start_calls += 1
        if self.running:
            return True
        self.running = self.can_start
        return self.running

    async def stop(self) -> None:
        self.stop_calls += 1
        self.running = False


async def no_sleep(seconds: float):
    return None


@pytest.fixture
def config():
    config = Config()
    config.generation.deadline = 5.0
    config.generation.max_attempts = 2
    config.generation.backoff_base = 2.0
    return config


@pytest.fixture
def request_item():
    return GenerationRequest(title="On Patience", content="...", content_type="thought")


def make_orchestrator(config, supervisor, client, sleep=no_sleep):
    return VideoGenerationOrchestrator(
        client=client,
        supervisor=supervisor,
        config=config,
        retry_policy=RetryPolicy(
            max_attempts=config.generation.max_attempts,
            base_delay=config.generation.backoff_base,
            sleep=sleep,
        ),
    )


def mock_client(*side_effect):
    client = MagicMock(spec=GenerationClient)
    client.send = AsyncMock(side_effect=list(side_effect))
    return client


class TestEnsureServerRunning:

    @pytest.mark.asyncio
    async def test_running_backend_is_not_restarted(self, config):
        """Test two calls against a live backend never call start()."""
        supervisor = FakeSupervisor(running=True)
        orchestrator = make_orchestrator(config, supervisor, mock_client())

        assert await orchestrator.ensure_server_running() is True
        assert await orchestrator.ensure_server_running() is True
        assert supervisor.start_calls == 0

    @pytest.mark.asyncio
    async def test_stopped_backend_is_started_once(self, config):
        supervisor = FakeSupervisor(running=False)
        orchestrator = make_orchestrator(config, supervisor, mock_client())

        assert await orchestrator.ensure_server_running() is True
        assert await orchestrator.ensure_server_running() is True
        assert supervisor.start_calls == 1

    @pytest.mark.asyncio
    async def test_state_is_reverified_each_call(self, config):
        """Test a backend that died between calls is started again."""
        supervisor = FakeSupervisor(running=True)
        orchestrator = make_orchestrator(config, supervisor, mock_client())

        await orchestrator.ensure_server_running()
        supervisor.running = False
        await orchestrator.ensure_server_running()

        assert supervisor.start_calls == 1

    @pytest.mark.asyncio
    async def test_start_failure_returns_false(self, config):
        supervisor = FakeSupervisor(running=False, can_start=False)
        orchestrator = make_orchestrator(config, supervisor, mock_client())

        assert await orchestrator.ensure_server_running() is False

    @pytest.mark.asyncio
    async def test_supervisor_exception_never_escapes(self, config):
        supervisor = AsyncMock()
        supervisor.is_running.side_effect = OSError("no such file")
        orchestrator = make_orchestrator(config, supervisor, mock_client())

        assert await orchestrator.ensure_server_running() is False


class TestGenerate:

    @pytest.mark.asyncio
    async def test_success(self, config, request_item):
        client = mock_client(GenerationResult("/tmp/a.mp4"))
        orchestrator = make_orchestrator(config, FakeSupervisor(running=True), client)

        result = await orchestrator.generate(request_item)

        assert result.video_path == "/tmp/a.mp4"
        client.send.assert_awaited_once_with(request_item)

    @pytest.mark.asyncio
    async def test_server_start_failure_never_sends(self, config, request_item):
        """Test ServerStartFailed is raised without calling send."""
        client = mock_client(GenerationResult("/tmp/a.mp4"))
        supervisor = FakeSupervisor(running=False, can_start=False)
        orchestrator = make_orchestrator(config, supervisor, client)

        with pytest.raises(ServerStartFailed) as exc_info:
            await orchestrator.generate(request_item)

        client.send.assert_not_awaited()
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, config, request_item):
        sleeps = []

        async def record_sleep(seconds):
            sleeps.append(seconds)

        client = mock_client(HTTPStatus(503, "overloaded"), GenerationResult("/tmp/b.mp4"))
        orchestrator = make_orchestrator(
            config, FakeSupervisor(running=True), client, sleep=record_sleep
        )

        result = await orchestrator.generate(request_item)

        assert result.video_path == "/tmp/b.mp4"
        assert client.send.await_count == 2
        assert sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_last_attempt_error_surfaces(self, config, request_item):
        final = GenerationFailed("render engine crashed")
        client = mock_client(HTTPStatus(503, "overloaded"), final)
        supervisor = FakeSupervisor(running=True)
        orchestrator = make_orchestrator(config, supervisor, client)

        with pytest.raises(GenerationFailed) as exc_info:
            await orchestrator.generate(request_item)

        assert exc_info.value is final
        # Ensure-running ran once, before generation
        assert supervisor.start_calls == 0

    @pytest.mark.asyncio
    async def test_deadline_cancels_in_flight_attempt(self, config, request_item):
        """Test GenerationTimeout is raised only after the attempt is cancelled."""
        config.generation.deadline = 0.01
        state = {"cancelled": False}

        async def hanging_send(request):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                state["cancelled"] = True
                raise

        client = MagicMock(spec=GenerationClient)
        client.send = hanging_send
        orchestrator = make_orchestrator(config, FakeSupervisor(running=True), client)

        with pytest.raises(GenerationTimeout) as exc_info:
            await orchestrator.generate(request_item)

        assert state["cancelled"] is True
        assert exc_info.value.error_code == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_deadline_covers_backoff_waits(self, config, request_item):
        """Test the deadline spans the whole attempt sequence, not one attempt."""
        config.generation.deadline = 0.05
        client = mock_client(HTTPStatus(503, "overloaded"), GenerationResult("/tmp/c.mp4"))
        orchestrator = make_orchestrator(
            config, FakeSupervisor(running=True), client, sleep=asyncio.sleep
        )

        with pytest.raises(GenerationTimeout):
            await orchestrator.generate(request_item)

        assert client.send.await_count == 1

    @pytest.mark.asyncio
    async def test_progress_callback_failures_are_ignored(self, config, request_item):
        phases = []

        def on_progress(phase, message):
            phases.append(phase)
            raise RuntimeError("display went away")

        orchestrator = VideoGenerationOrchestrator(
            client=mock_client(GenerationResult("/tmp/d.mp4")),
            supervisor=FakeSupervisor(running=True),
            config=config,
            on_progress=on_progress,
        )

        result = await orchestrator.generate(request_item)

        assert result.video_path == "/tmp/d.mp4"
        assert phases == ["ensure_running", "generating", "completed"]

    @pytest.mark.asyncio
    async def test_generate_for_entry_builds_request(self, config):
        client = mock_client(GenerationResult("/tmp/e.mp4"))
        orchestrator = make_orchestrator(config, FakeSupervisor(running=True), client)
        entry = WisdomEntry(title="The Fear of the LORD", content="...", category="Daily")

        await orchestrator.generate_for_entry(entry)

        sent = client.send.await_args.args[0]
        assert sent.content_type == "daily"
        assert sent.node_title == "The_Fear_Of_The_Lord"
        assert sent.source_label == "wisdombook.life"


class TestShutdown:

    @pytest.mark.asyncio
    async def test_shutdown_stops_without_liveness_check(self, config):
        supervisor = AsyncMock()
        orchestrator = make_orchestrator(config, supervisor, mock_client())

        await orchestrator.shutdown()

        supervisor.stop.assert_awaited_once()
        supervisor.is_running.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_full_workflow_shuts_down_on_success(self, config, request_item):
        supervisor = FakeSupervisor(running=False)
        orchestrator = make_orchestrator(
            config, supervisor, mock_client(GenerationResult("/tmp/f.mp4"))
        )

        result = await orchestrator.run_full_workflow(request_item)

        assert result.video_path == "/tmp/f.mp4"
        assert supervisor.start_calls == 1
        assert supervisor.stop_calls == 1

    @pytest.mark.asyncio
    async def test_full_workflow_shuts_down_on_error(self, config, request_item):
        supervisor = FakeSupervisor(running=True)
        client = mock_client(GenerationFailed("a"), GenerationFailed("b"))
        orchestrator = make_orchestrator(config, supervisor, client)

        with pytest.raises(GenerationFailed):
            await orchestrator.run_full_workflow(request_item)

        assert supervisor.stop_calls == 1

    @pytest.mark.asyncio
    async def test_health_reports_companion(self, config):
        orchestrator = make_orchestrator(config, FakeSupervisor(running=True), mock_client())

        assert await orchestrator.health() == {"orchestrator": True, "social_effects": True}


class TestEndToEnd:
    """Orchestrator wired to a real GenerationClient over a mock transport."""

    @pytest.mark.asyncio
    async def test_generate_through_http(self, config, request_item):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "video_path": "/tmp/g.mp4"})

        client = GenerationClient(
            config=config,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        orchestrator = make_orchestrator(config, FakeSupervisor(running=True), client)

        result = await orchestrator.generate(request_item)
        await client.close()

        assert result == GenerationResult(video_path="/tmp/g.mp4")
