"""
OpenCode Server Supervisor

This module provides the supervisor that starts, health-gates and stops the
local OpenCode sidecar process.
"""

import asyncio
from collections import deque
from datetime import datetime, timezone
from typing import Any

import httpx

from ..config import SupervisorConfig, bridge_logger
from ..errors import HttpError, PortDiscoveryError, ReadinessTimeoutError
from ..events.bus import SERVER_STARTED, EventBus
from ..models.server import ServerInfo, ServerStatus
from ..state import SharedState
from .launcher import SidecarLauncher
from .output import discover_port, drain_stream

READINESS_TIMEOUT_MESSAGE = "Server failed to start within timeout"


class ServerSupervisor:
    """Owns the lifecycle of the single OpenCode sidecar process."""

    def __init__(
        self,
        state: SharedState,
        bus: EventBus,
        config: SupervisorConfig | None = None,
        launcher: SidecarLauncher | None = None,
    ):
        if config is None:
            config = SupervisorConfig()

        self.state = state
        self.bus = bus
        self.config = config
        self.launcher = launcher or SidecarLauncher(config)
        self.logs: deque = deque(maxlen=config.log_buffer_size)
        self._output_tasks: list[asyncio.Task] = []

    def _add_log(self, level: str, message: str):
        """Add a log entry."""
        timestamp = datetime.now(timezone.utc).isoformat()
        self.logs.append({"timestamp": timestamp, "level": level, "message": message})

        # Also log to standard logger
        if level == "ERROR":
            bridge_logger.error(message)
        elif level == "WARNING":
            bridge_logger.warning(message)
        elif level == "DEBUG":
            bridge_logger.debug(message)
        else:
            bridge_logger.info(message)

    def _add_output(self, level: str, line: str):
        """Record one line of sidecar output without echoing it at info level."""
        timestamp = datetime.now(timezone.utc).isoformat()
        self.logs.append({"timestamp": timestamp, "level": level, "message": line})
        bridge_logger.debug(f"OpenCode output: {line}")

    async def start(self) -> ServerInfo:
        """
        Ensure the sidecar is running and ready.

        Returns the cached info when the tracked process is still alive and
        its readiness was confirmed.

        Raises:
            SpawnError: runtime/entry script missing, spawn failed, or no port
                discovered while require_port_discovery is set
            ReadinessTimeoutError: the liveness probe never succeeded; the
                process is left running and tracked
        """
        async with self.state.process_lock:
            info, started = await self._start_locked()

        if started:
            await self.bus.publish(SERVER_STARTED, info)
        return info

    async def _start_locked(self) -> tuple[ServerInfo, bool]:
        process = self.state.process

        if process is not None and process.returncode is None:
            info = await self.state.get_info()
            if info is not None and info.status == ServerStatus.RUNNING:
                return info, False
            if info is not None and info.status in (ServerStatus.STARTING, ServerStatus.ERROR):
                # Same process, readiness never confirmed: check it again
                self._add_log("INFO", f"Re-checking readiness of OpenCode server (pid {info.pid})")
                retry = ServerInfo(port=info.port, hostname=info.hostname, pid=info.pid)
                return await self._wait_for_ready(retry), True
            # Alive but never got as far as readiness: replace it
            self._add_log("WARNING", "Discarding untracked OpenCode server process")
            await self._terminate(process)

        if process is not None:
            self.state.process = None
            await self._cancel_output_tasks()
            await self._mark_stopped()

        self._add_log("INFO", "Starting OpenCode server...")

        process = await self.launcher.spawn()
        self.state.process = process
        self._add_log("INFO", f"Spawned OpenCode server process (pid {process.pid})")

        port = await discover_port(
            process.stdout,
            attempts=self.config.port_discovery_attempts,
            interval=self.config.port_discovery_interval,
        )
        self._start_output_tasks(process)

        if port is None:
            if self.config.require_port_discovery:
                self._add_log("ERROR", "OpenCode server did not report a listening port")
                raise PortDiscoveryError("OpenCode server did not report a listening port")
            port = self.config.fallback_port
            self._add_log("WARNING", f"No port found in OpenCode output, assuming {port}")

        info = ServerInfo(port=port, hostname=self.config.hostname, pid=process.pid)
        return await self._wait_for_ready(info), True

    async def _wait_for_ready(self, info: ServerInfo) -> ServerInfo:
        """Poll the /app endpoint until it answers or attempts run out."""
        await self.state.set_info(info)

        attempts = self.config.readiness_attempts
        for attempt in range(1, attempts + 1):
            try:
                await self._test_server_connection(info.base_url)
            except (httpx.HTTPError, HttpError) as e:
                bridge_logger.debug(f"Server not ready yet (attempt {attempt}): {e}")
                if attempt < attempts:
                    await asyncio.sleep(self.config.readiness_interval)
                continue

            ready = info.mark_running()
            await self.state.set_info(ready)
            self._add_log("INFO", f"OpenCode server started successfully on {ready.hostname}:{ready.port}")
            return ready

        await self.state.set_info(info.mark_error(READINESS_TIMEOUT_MESSAGE))
        self._add_log("ERROR", f"OpenCode server failed to start within {attempts} attempts")
        raise ReadinessTimeoutError("OpenCode server failed to start within timeout")

    async def _test_server_connection(self, base_url: str):
        """Single liveness probe; raises unless the status is 2xx."""
        response = await self.state.http_client.get(
            f"{base_url}/app",
            timeout=self.config.readiness_timeout
        )
        if not response.is_success:
            raise HttpError(response.status_code, response.text, "Liveness probe")

    async def stop(self):
        """Kill the tracked process, if any, and mark the server stopped."""
        async with self.state.process_lock:
            process = self.state.process
            if process is None:
                return

            self.state.process = None
            self._add_log("INFO", "Stopping OpenCode server...")
            await self._terminate(process)
            await self._cancel_output_tasks()
            await self._mark_stopped()

    async def _mark_stopped(self):
        async with self.state.info_lock:
            if self.state.server_info is not None:
                self.state.server_info = self.state.server_info.mark_stopped()

    async def _terminate(self, process: Any):
        """Kill and reap a process; failures are logged, never raised."""
        try:
            process.kill()
        except ProcessLookupError:
            bridge_logger.debug("OpenCode server had already exited")
        except OSError as e:
            self._add_log("ERROR", f"Failed to kill OpenCode server: {e}")

        try:
            returncode = await process.wait()
            self._add_log("INFO", f"OpenCode server stopped with status: {returncode}")
        except Exception as e:
            self._add_log("ERROR", f"Error waiting for OpenCode server to stop: {e}")

    def _start_output_tasks(self, process: Any):
        for stream, level in ((process.stdout, "INFO"), (process.stderr, "WARNING")):
            if stream is not None:
                self._output_tasks.append(
                    asyncio.create_task(drain_stream(stream, level, self._add_output))
                )

    async def _cancel_output_tasks(self):
        tasks, self._output_tasks = self._output_tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def get_info(self) -> ServerInfo | None:
        """Get current server information."""
        return await self.state.get_info()

    def get_logs(self, limit: int = 100) -> list[dict]:
        """Get recent log entries."""
        return list(self.logs)[-limit:]
