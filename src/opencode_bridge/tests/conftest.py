"""Shared fixtures: a fake sidecar process and a mock-transport HTTP client."""

import asyncio

import httpx
import pytest

from opencode_bridge.config import SupervisorConfig
from opencode_bridge.events.bus import EventBus
from opencode_bridge.models.server import ServerInfo, ServerStatus
from opencode_bridge.state import SharedState
from opencode_bridge.supervisor.launcher import SidecarLauncher
from opencode_bridge.supervisor.manager import ServerSupervisor

SESSION_JSON = {
    "id": "ses_1",
    "title": "New session",
    "version": "0.1.0",
    "time": {"created": 1700000000, "updated": 1700000001},
}

MESSAGE_JSON = {
    "id": "msg_1",
    "role": "assistant",
    "sessionID": "ses_1",
    "time": {"created": 1700000002},
    "parts": [{"type": "text", "text": "Hello"}],
}


IDLE_RECORD = b'data: {"type":"session.idle","properties":{"sessionID":"ses_1"}}\n\n'


class FakeProcess:
    """Stands in for asyncio.subprocess.Process; stdout is fed up front."""

    def __init__(self, stdout_lines=(), pid=4242, eof=False):
        self.pid = pid
        self.returncode = None
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.kill_count = 0
        for line in stdout_lines:
            self.stdout.feed_data(line.encode() + b"\n")
        if eof:
            self.stdout.feed_eof()

    def kill(self):
        self.kill_count += 1
        self.returncode = -9
        for stream in (self.stdout, self.stderr):
            if not stream.at_eof():
                stream.feed_eof()

    async def wait(self):
        return self.returncode


class FakeLauncher(SidecarLauncher):
    """Launcher whose spawn() hands out FakeProcess instances."""

    def __init__(self, config, stdout_lines=("Server listening on 127.0.0.1:41234",), eof=False):
        super().__init__(config)
        self.stdout_lines = stdout_lines
        self.eof = eof
        self.spawned: list[FakeProcess] = []

    async def spawn(self):
        process = FakeProcess(self.stdout_lines, pid=4242 + len(self.spawned), eof=self.eof)
        self.spawned.append(process)
        return process


class Recorder:
    """Bus handler that remembers every (topic, payload) it sees."""

    def __init__(self):
        self.calls = []

    def __call__(self, topic, payload):
        self.calls.append((topic, payload))

    @property
    def topics(self):
        return [topic for topic, _ in self.calls]


def make_state(handler) -> SharedState:
    """SharedState whose HTTP client is served by a MockTransport handler."""
    return SharedState(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def running_info(port: int = 4096) -> ServerInfo:
    return ServerInfo(port=port, hostname="127.0.0.1", pid=4242, status=ServerStatus.RUNNING)


@pytest.fixture
def fast_config(tmp_path):
    """Config with no waiting between probes."""
    return SupervisorConfig(
        app_data_dir=tmp_path / "data",
        port_discovery_attempts=3,
        port_discovery_interval=0.05,
        readiness_interval=0,
    )


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def supervisor_factory(fast_config, bus):
    """Build a supervisor around a request handler and a fake launcher."""

    def factory(handler, launcher=None, config=None):
        config = config or fast_config
        state = make_state(handler)
        launcher = launcher or FakeLauncher(config)
        return ServerSupervisor(state, bus, config, launcher=launcher)

    return factory
