"""
Sidecar Launcher

Locates the runtime and entry script and spawns the OpenCode server process.
"""

import asyncio
import shutil
from pathlib import Path

from ..config import SupervisorConfig, bridge_logger
from ..errors import RuntimeNotFoundError, SidecarNotFoundError, SpawnError


class SidecarLauncher:
    """Builds and spawns the sidecar command line."""

    def __init__(self, config: SupervisorConfig):
        self.config = config

    def find_runtime(self) -> str:
        """First candidate runtime found on PATH."""
        for candidate in self.config.runtime_candidates:
            path = shutil.which(candidate)
            if path:
                return path
        raise RuntimeNotFoundError(self.config.runtime_candidates)

    def find_entry_script(self) -> Path:
        path = self.config.entry_script_path
        if not path.exists():
            raise SidecarNotFoundError(path)
        return path

    def build_command(self, runtime: str, entry_script: Path) -> list[str]:
        # Port 0 lets the OS choose an available port
        return [
            runtime, "run", str(entry_script),
            "serve",
            "--port", "0",
            "--hostname", self.config.hostname,
        ]

    async def spawn(self) -> asyncio.subprocess.Process:
        """
        Spawn the sidecar with stdout/stderr piped.

        Raises:
            RuntimeNotFoundError: no runtime binary on PATH
            SidecarNotFoundError: entry script missing
            SpawnError: the OS refused to start the process
        """
        runtime = self.find_runtime()
        entry_script = self.find_entry_script()
        command = self.build_command(runtime, entry_script)

        bridge_logger.debug(f"Spawning OpenCode server: {' '.join(command)}")

        try:
            return await asyncio.create_subprocess_exec(
                *command,
                cwd=str(entry_script.parent),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SpawnError(f"Failed to spawn OpenCode server: {e}") from e
