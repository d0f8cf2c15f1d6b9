"""
Supervisor Configuration

This module handles configuration and validation for the OpenCode sidecar supervisor.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_ENTRY_SCRIPT = "opencode/packages/opencode/src/index.ts"


class SupervisorConfig(BaseModel):
    """Configuration for launching and probing the OpenCode sidecar."""

    runtime_candidates: list[str] = Field(
        default_factory=lambda: ["bun", "node"],
        description="Runtime binaries to look up on PATH, in preference order"
    )
    app_data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".local" / "share" / "opencode-bridge",
        description="Application data directory; the sidecar lives next to it"
    )
    entry_script: str = Field(
        default=DEFAULT_ENTRY_SCRIPT,
        description="Sidecar entry script, relative to the parent of app_data_dir"
    )
    hostname: str = Field(default="127.0.0.1", description="Loopback hostname the sidecar binds to")
    fallback_port: int = Field(default=3001, description="Port assumed when none is discovered")
    require_port_discovery: bool = Field(
        default=False,
        description="Fail start() instead of using fallback_port when no port is discovered"
    )
    port_discovery_attempts: int = Field(default=100, description="Stdout reads attempted during port discovery")
    port_discovery_interval: float = Field(default=0.1, description="Seconds allowed per stdout read")
    readiness_attempts: int = Field(default=30, description="Liveness probes before giving up")
    readiness_interval: float = Field(default=1.0, description="Seconds between liveness probes")
    readiness_timeout: float = Field(default=2.0, description="HTTP timeout of a single liveness probe")
    log_buffer_size: int = Field(default=1000, description="Log entries kept in memory")

    @field_validator("runtime_candidates")
    @classmethod
    def validate_runtime_candidates(cls, v):
        if not v:
            raise ValueError("runtime_candidates must name at least one binary")
        return v

    @field_validator("fallback_port")
    @classmethod
    def validate_fallback_port(cls, v):
        if not 0 < v <= 65535:
            raise ValueError("fallback_port must be between 1 and 65535")
        return v

    @field_validator("port_discovery_attempts", "readiness_attempts", "log_buffer_size")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def entry_script_path(self) -> Path:
        """Absolute path of the sidecar entry script."""
        return self.app_data_dir.parent.joinpath(*self.entry_script.split("/"))

    @classmethod
    def from_env(cls) -> "SupervisorConfig":
        """Build a config from OPENCODE_* environment variables."""
        values = {}

        runtimes = os.getenv("OPENCODE_RUNTIMES")
        if runtimes:
            values["runtime_candidates"] = [r.strip() for r in runtimes.split(",") if r.strip()]

        app_data_dir = os.getenv("OPENCODE_APP_DATA_DIR")
        if app_data_dir:
            values["app_data_dir"] = Path(app_data_dir).expanduser()

        entry_script = os.getenv("OPENCODE_ENTRY_SCRIPT")
        if entry_script:
            values["entry_script"] = entry_script

        fallback_port = os.getenv("OPENCODE_FALLBACK_PORT")
        if fallback_port:
            values["fallback_port"] = int(fallback_port)

        if os.getenv("OPENCODE_REQUIRE_PORT_DISCOVERY", "false").lower() == "true":
            values["require_port_discovery"] = True

        readiness_attempts = os.getenv("OPENCODE_READINESS_ATTEMPTS")
        if readiness_attempts:
            values["readiness_attempts"] = int(readiness_attempts)

        return cls(**values)
