"""
Social Effects companion process supervision.

Owns the lifecycle of the local renderer process:
- Liveness probe via GET /health
- On-demand start with a bounded startup wait
- Graceful POST /shutdown, then terminate, then kill

Both start() and stop() are idempotent.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

import httpx

from core.config import Config, get_config

logger = logging.getLogger(__name__)


@runtime_checkable
class ProcessSupervisor(Protocol):
    """Lifecycle contract consumed by the orchestrator."""

    async def is_running(self) -> bool:
        ...

    async def start(self) -> bool:
        ...

    async def stop(self) -> None:
        ...


class CompanionStatus(str, Enum):
    """Last known state of the companion service."""
    UNKNOWN = "unknown"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


class SubprocessSupervisor:
    """
    Supervises the companion as a child process.

    Usage:
        supervisor = SubprocessSupervisor()
        if await supervisor.start():
            ...
        await supervisor.stop()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_config()
        self._http_client = http_client
        self._process: Optional[asyncio.subprocess.Process] = None
        self._lock = asyncio.Lock()
        self.status = CompanionStatus.UNKNOWN

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.companion.health_timeout)
        return self._http_client

    async def close(self):
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def owns_process(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def is_running(self, timeout: Optional[float] = None) -> bool:
        """Check if the companion answers its health endpoint with status ok."""
        healthy = await self._probe_health(timeout or self.config.companion.health_timeout)
        if healthy:
            self.status = CompanionStatus.RUNNING
        elif self.status == CompanionStatus.RUNNING:
            self.status = CompanionStatus.STOPPED
        return healthy

    async def _probe_health(self, timeout: float) -> bool:
        client = await self._get_client()
        try:
            response = await client.get(self.config.companion.health_url, timeout=timeout)
        except httpx.HTTPError as e:
            logger.debug(f"Social Effects health check failed: {type(e).__name__}: {e}")
            return False

        if response.status_code != 200:
            return False

        try:
            data = response.json()
        except ValueError:
            return False

        return isinstance(data, dict) and data.get("status") == "ok"

    async def start(self) -> bool:
        """
        Start the companion if it is not already healthy.

        Returns:
            True if the companion is healthy after the call
        """
        async with self._lock:
            if await self.is_running():
                return True

            if self.owns_process:
                # Alive but unhealthy; it would keep holding the port
                logger.warning(f"Owned Social Effects (pid {self._process.pid}) is unresponsive, terminating")
                await self._terminate()

            companion = self.config.companion
            self.status = CompanionStatus.STARTING
            logger.info(f"Starting Social Effects: {' '.join(companion.command)}")

            try:
                self._process = await asyncio.create_subprocess_exec(
                    *companion.command,
                    cwd=companion.working_dir,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                logger.error(f"Failed to launch Social Effects: {e}")
                self.status = CompanionStatus.FAILED
                self._process = None
                return False

            if await self._wait_until_healthy():
                logger.info(f"Social Effects API server started at {companion.base_url}")
                return True

            logger.error("Social Effects did not become healthy, terminating")
            await self._terminate()
            self.status = CompanionStatus.FAILED
            return False

    async def _wait_until_healthy(self) -> bool:
        """Poll the health endpoint until the startup timeout elapses."""
        companion = self.config.companion
        loop = asyncio.get_running_loop()
        give_up_at = loop.time() + companion.startup_timeout

        while True:
            if self._process is not None and self._process.returncode is not None:
                logger.error(f"Social Effects exited during startup (code {self._process.returncode})")
                return False
            remaining = give_up_at - loop.time()
            probe_timeout = max(
                min(companion.health_timeout, remaining),
                companion.startup_poll_interval,
            )
            if await self.is_running(timeout=probe_timeout):
                return True
            if loop.time() >= give_up_at:
                return False
            await asyncio.sleep(companion.startup_poll_interval)

    async def stop(self) -> None:
        """Shut the companion down gracefully, forcing termination if needed."""
        if not self.owns_process:
            self._process = None
            self.status = CompanionStatus.STOPPED
            return

        client = await self._get_client()
        try:
            response = await client.post(
                self.config.companion.shutdown_url,
                timeout=self.config.companion.shutdown_timeout,
            )
            if response.status_code == 200:
                logger.info("Social Effects server shutdown gracefully")
        except httpx.HTTPError as e:
            logger.warning(f"Graceful shutdown failed, forcing termination: {e}")

        await self._terminate()
        self.status = CompanionStatus.STOPPED
        logger.info("Social Effects server stopped")

    async def _terminate(self) -> None:
        """Terminate the owned process, escalating to kill after the shutdown timeout."""
        process = self._process
        self._process = None
        if process is None or process.returncode is not None:
            return

        try:
            process.terminate()
        except ProcessLookupError:
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.companion.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Social Effects (pid {process.pid}) ignored SIGTERM, killing")
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()
