"""Engine binary provisioning.

Makes sure the yt-dlp binary exists and is executable at a known path in
ephemeral storage. Concurrent callers share a single download; a failed
download leaves the state clean so a later request can try again.
"""

import asyncio
import contextlib
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx
import structlog

from media_catalog.core.metrics import MetricsCollector
from media_catalog.engine.exceptions import EngineInitError

logger = structlog.get_logger(__name__)

DEFAULT_ENGINE_PATH = "/tmp/yt-dlp"  # nosec B108 - the only writable path on serverless hosts
DEFAULT_DOWNLOAD_URL = "https://github.com/yt-dlp/yt-dlp/releases/latest/download/yt-dlp_linux"
DEFAULT_DOWNLOAD_TIMEOUT = 60.0

_EXEC_MODE = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH  # 0o755


def is_executable_file(path: Path) -> bool:
    """Check that path is a regular file the current user may execute."""
    return path.is_file() and os.access(path, os.X_OK)


def _retrieve_outcome(task: "asyncio.Task[None]") -> None:
    # Failures are logged by the task itself; waiters may all be gone by then
    if not task.cancelled():
        task.exception()


@dataclass
class EngineState:
    """Process-wide readiness of the engine binary."""

    path: Path
    ready: bool = False
    provisioning: Optional["asyncio.Task[None]"] = None


class EngineProvisioner:
    """Provides the engine binary, downloading it at most once at a time."""

    def __init__(
        self,
        path: Union[str, Path] = DEFAULT_ENGINE_PATH,
        download_url: str = DEFAULT_DOWNLOAD_URL,
        download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the provisioner.

        Args:
            path: Where the binary lives; its directory must be writable
            download_url: Distribution URL of the binary
            download_timeout: Timeout for the HTTP fetch, in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._state = EngineState(path=Path(path))
        self._lock = asyncio.Lock()
        self.download_url = download_url
        self.download_timeout = download_timeout
        self._transport = transport

    @property
    def path(self) -> Path:
        return self._state.path

    @property
    def is_ready(self) -> bool:
        return self._state.ready

    async def ensure_ready(self) -> None:
        """
        Make the engine binary available.

        Returns immediately when the binary is already known or found on disk.
        Otherwise joins the in-flight provisioning task, or starts one.

        Raises:
            EngineInitError: If fetching or marking the binary executable failed
        """
        if self._state.ready:
            return

        async with self._lock:
            if self._state.ready:
                return

            if self._state.provisioning is None:
                if is_executable_file(self._state.path):
                    logger.info("Engine binary already present", path=str(self._state.path))
                    self._state.ready = True
                    return

                logger.info("Provisioning engine binary", path=str(self._state.path))
                self._state.provisioning = asyncio.create_task(self._provision())
                self._state.provisioning.add_done_callback(_retrieve_outcome)

            task = self._state.provisioning

        # Shielded so one cancelled request does not abort the shared download
        await asyncio.shield(task)

    async def _provision(self) -> None:
        try:
            await self._download()
        except Exception as e:
            logger.error(
                "Engine provisioning failed",
                path=str(self._state.path),
                url=self.download_url,
                error=str(e),
                error_type=type(e).__name__,
            )
            MetricsCollector.record_engine_provisioning("failed")
            raise EngineInitError(f"Could not provision engine: {e}") from e
        else:
            self._state.ready = True
            MetricsCollector.record_engine_provisioning("success")
            logger.info("Engine binary ready", path=str(self._state.path))
        finally:
            self._state.provisioning = None

    async def _download(self) -> None:
        """Stream the binary into a temp file, chmod it, then rename into place."""
        target = self._state.path
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}-", dir=target.parent)
        tmp_path = Path(tmp_name)
        written = 0
        try:
            with os.fdopen(fd, "wb") as f:
                async with httpx.AsyncClient(
                    follow_redirects=True,
                    timeout=self.download_timeout,
                    transport=self._transport,
                ) as client:
                    async with client.stream("GET", self.download_url) as response:
                        response.raise_for_status()
                        async for chunk in response.aiter_bytes():
                            await asyncio.to_thread(f.write, chunk)
                            written += len(chunk)

            if written == 0:
                raise EngineInitError("Downloaded engine binary is empty")

            await asyncio.to_thread(os.chmod, tmp_path, _EXEC_MODE)
            await asyncio.to_thread(os.replace, tmp_path, target)
            logger.debug("Engine binary written", path=str(target), size=written)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise
