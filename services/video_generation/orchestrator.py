"""
Video Generation Orchestrator

Public entry point for rendering wisdom entries through the Social Effects
companion service.

Per generate() call:
1. EnsureRunning: probe the companion, start it if needed
2. Generating: TimeoutRacer(deadline, RetryPolicy(GenerationClient.send))
3. Done: GenerationResult, or the most specific GenerationError

Liveness is re-verified on every call; nothing is cached between calls.
"""

import logging
from typing import Any, Callable, Optional

from core.config import Config, get_config
from core.deadline import DeadlineExceeded, TimeoutRacer
from core.retry import RetryPolicy
from services.companion.supervisor import ProcessSupervisor

from .client import GenerationClient
from .errors import GenerationTimeout, ServerStartFailed
from .models import GenerationRequest, GenerationResult, WisdomEntry

logger = logging.getLogger(__name__)


class VideoGenerationOrchestrator:
    """
    Coordinates the companion lifecycle and generation requests.

    Usage:
        orchestrator = VideoGenerationOrchestrator(
            client=GenerationClient(),
            supervisor=SubprocessSupervisor(),
        )
        result = await orchestrator.generate(request)
        ...
        await orchestrator.shutdown()

    Construct one instance at application startup and pass it to callers.
    Concurrent generate() calls are not serialized against each other.
    """

    def __init__(
        self,
        client: GenerationClient,
        supervisor: ProcessSupervisor,
        config: Optional[Config] = None,
        retry_policy: Optional[RetryPolicy] = None,
        racer: Optional[TimeoutRacer] = None,
        on_progress: Optional[Callable[[str, str], None]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Generation client for the companion's /generate endpoint
            supervisor: Lifecycle owner of the companion process
            config: Optional config override
            retry_policy: Optional retry policy (defaults from config)
            racer: Optional deadline racer
            on_progress: Callback for progress updates (phase, message)
        """
        self.config = config or get_config()
        self.client = client
        self.supervisor = supervisor
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=self.config.generation.max_attempts,
            base_delay=self.config.generation.backoff_base,
        )
        self.racer = racer or TimeoutRacer()
        self.deadline = self.config.generation.deadline
        self.on_progress = on_progress

    def _emit_progress(self, phase: str, message: str):
        """Emit progress update via callback."""
        if self.on_progress:
            try:
                self.on_progress(phase, message)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    async def ensure_server_running(self) -> bool:
        """
        Make sure the companion is running, starting it if necessary.

        Returns:
            True if the companion is running after the call. Never raises.
        """
        try:
            if await self.supervisor.is_running():
                return True

            logger.info("Social Effects not running, starting it")
            return bool(await self.supervisor.start())
        except Exception as e:
            logger.error(f"Ensure-running failed: {type(e).__name__}: {e}")
            return False

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Render a video for the request.

        Each call issues a new render; calls are not deduplicated.

        Args:
            request: What to render

        Returns:
            GenerationResult with the companion-reported video path

        Raises:
            ServerStartFailed: Companion could not be started; nothing was sent
            GenerationTimeout: Outer deadline elapsed; the in-flight attempt was cancelled
            GenerationError: The last attempt's error once retries are exhausted
        """
        logger.info(f"Starting video generation via Social Effects: {request.title[:50]!r}")

        self._emit_progress("ensure_running", "Checking Social Effects server")
        if not await self.ensure_server_running():
            self._emit_progress("failed", "Social Effects server unavailable")
            raise ServerStartFailed()

        self._emit_progress("generating", "Rendering video")
        try:
            result = await self.racer.run(
                self.deadline,
                lambda: self.retry_policy.execute(lambda: self.client.send(request)),
            )
        except DeadlineExceeded as e:
            error = GenerationTimeout(self.deadline)
            logger.error(str(error))
            self._emit_progress("failed", str(error))
            raise error from e
        except Exception as e:
            logger.error(f"Video generation failed: {e}")
            self._emit_progress("failed", str(e))
            raise

        self._emit_progress("completed", result.video_path)
        return result

    async def generate_for_entry(self, entry: WisdomEntry) -> GenerationResult:
        """Render a video for a wisdom entry."""
        return await self.generate(GenerationRequest.from_entry(entry))

    async def run_full_workflow(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate a video and always shut the companion down afterwards.

        Use for one-off renders; batch callers should call generate() repeatedly
        and shutdown() once at the end.
        """
        try:
            return await self.generate(request)
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Stop the companion. Safe when it is already stopped."""
        logger.info("Shutting down Social Effects")
        await self.supervisor.stop()

    async def health(self) -> dict[str, Any]:
        """Check health of all components."""
        try:
            companion_ok = await self.supervisor.is_running()
        except Exception as e:
            logger.warning(f"Social Effects health check failed: {e}")
            companion_ok = False

        return {
            "orchestrator": True,
            "social_effects": companion_ok,
        }
