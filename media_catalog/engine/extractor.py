"""Engine invocation.

Runs the yt-dlp binary as a child process against one URL under a hard
wall-clock budget and parses its JSON report.
"""

import asyncio
import contextlib
import json
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, List, Optional, Tuple, Type, Union

import structlog

from media_catalog.engine.exceptions import (
    EngineLaunchError,
    ExtractionError,
    ExtractionTimeoutError,
    MalformedEngineOutputError,
    RestrictedSourceError,
    UnknownExtractionError,
    UnsupportedSourceError,
)
from media_catalog.models.catalog import RawMetadata

logger = structlog.get_logger(__name__)

# Must stay below the hosting platform's ~15s request ceiling
DEFAULT_TIMEOUT = 14.0
DEFAULT_MAX_OUTPUT_BYTES = 16 * 1024 * 1024
DEFAULT_MAX_ERROR_BYTES = 64 * 1024

_READ_CHUNK = 64 * 1024

# Fixed flag set; the catalog ordering depends on this exact sort key
ENGINE_ARGS: Tuple[str, ...] = (
    "--dump-json",
    "--no-playlist",
    "--no-warnings",
    "--no-check-certificate",
    "--format-sort",
    "res,vcodec:h264",
)

# Best-effort stderr markers, evaluated top to bottom. yt-dlp's messages are
# not a versioned contract, so anything unmatched is an unknown failure.
CLASSIFICATION_RULES: Tuple[Tuple[str, Type[ExtractionError]], ...] = (
    ("Unsupported URL", UnsupportedSourceError),
    ("Private video", RestrictedSourceError),
    ("This video is private", RestrictedSourceError),
    ("Video unavailable", RestrictedSourceError),
)


def classify_failure(stderr: str) -> Type[ExtractionError]:
    """
    Map engine diagnostic text to an exception class.

    Args:
        stderr: Captured standard error of a failed run

    Returns:
        The class of the first matching rule, or UnknownExtractionError
    """
    for marker, error_class in CLASSIFICATION_RULES:
        if marker in stderr:
            return error_class
    return UnknownExtractionError


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


@dataclass
class CapturedStream:
    """Bytes read from a child stream, capped at a fixed size."""

    data: bytes
    truncated: bool = False

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


async def read_bounded(stream: asyncio.StreamReader, limit: int) -> CapturedStream:
    """
    Drain a stream to EOF, keeping at most ``limit`` bytes.

    Bytes past the limit are read and discarded so the child never blocks
    on a full pipe.
    """
    chunks: List[bytes] = []
    size = 0
    truncated = False

    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        room = limit - size
        if room <= 0:
            truncated = True
            continue
        if len(chunk) > room:
            chunk = chunk[:room]
            truncated = True
        chunks.append(chunk)
        size += len(chunk)

    return CapturedStream(b"".join(chunks), truncated)


@contextlib.asynccontextmanager
async def spawn(cmd: List[str]) -> AsyncIterator[asyncio.subprocess.Process]:
    """
    Start a child process and guarantee it is killed and reaped on exit.

    The child gets its own session so that any helper processes it forks
    (the onefile yt-dlp build re-executes itself) are killed along with it.

    Raises:
        EngineLaunchError: If the executable is missing or not runnable
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        logger.error("engine_launch_failed", engine=cmd[0], error=str(e))
        raise EngineLaunchError(f"Could not start engine: {e}") from e

    try:
        yield process
    finally:
        # A forked helper can keep the group alive after the leader exits
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(process.pid, signal.SIGKILL)
        await process.wait()


class Extractor:
    """Runs the engine binary and returns its parsed metadata."""

    def __init__(
        self,
        engine_path: Union[str, Path],
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        max_error_bytes: int = DEFAULT_MAX_ERROR_BYTES,
    ):
        """
        Initialize the extractor.

        Args:
            engine_path: Location of the engine binary
            timeout: Default wall-clock budget per run, in seconds
            max_output_bytes: Cap on captured stdout
            max_error_bytes: Cap on captured stderr
        """
        self.engine_path = Path(engine_path)
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self.max_error_bytes = max_error_bytes

    def build_command(self, url: str) -> List[str]:
        """Build the engine command line for a URL."""
        return [str(self.engine_path), *ENGINE_ARGS, url]

    async def _collect(
        self, process: asyncio.subprocess.Process
    ) -> Tuple[CapturedStream, CapturedStream, int]:
        stdout, stderr = await asyncio.gather(
            read_bounded(process.stdout, self.max_output_bytes),
            read_bounded(process.stderr, self.max_error_bytes),
        )
        returncode = await process.wait()
        return stdout, stderr, returncode

    async def fetch_metadata(self, url: str, budget: Optional[float] = None) -> RawMetadata:
        """
        Run the engine against a URL and parse its JSON report.

        Not retried here; one call is one engine run.

        Args:
            url: Source video URL
            budget: Wall-clock limit in seconds; defaults to the configured timeout

        Returns:
            Parsed RawMetadata

        Raises:
            EngineLaunchError: If the engine could not be started
            ExtractionTimeoutError: If the run exceeded the budget
            UnsupportedSourceError: If the engine does not handle the URL
            RestrictedSourceError: If the content is private or unavailable
            UnknownExtractionError: For any other non-zero exit
            MalformedEngineOutputError: If stdout is not a JSON object
        """
        budget = self.timeout if budget is None else budget
        cmd = self.build_command(url)
        start_time = time.monotonic()

        logger.debug("Executing engine", command=cmd, budget=budget)

        async with spawn(cmd) as process:
            try:
                stdout, stderr, returncode = await asyncio.wait_for(
                    self._collect(process), timeout=budget
                )
            except asyncio.TimeoutError:
                logger.warning("engine_timeout", url=url, budget=budget, pid=process.pid)
                raise ExtractionTimeoutError(f"Engine exceeded {budget}s budget")

        duration = time.monotonic() - start_time
        stderr_text = stderr.text()

        logger.debug(
            "Engine execution completed",
            url=url,
            exit_code=returncode,
            duration=round(duration, 3),
            stdout_bytes=len(stdout.data),
            stderr_preview=stderr_text[:500] or None,
        )

        if returncode != 0:
            error_class = classify_failure(stderr_text)
            logger.warning(
                "engine_failed",
                url=url,
                exit_code=returncode,
                error_type=error_class.__name__,
                stderr=stderr_text,
            )
            raise error_class(f"Engine exited with code {returncode}", stderr=stderr_text)

        if stdout.truncated:
            raise MalformedEngineOutputError(
                f"Engine output exceeds {self.max_output_bytes} bytes", stderr=stderr_text
            )

        try:
            info = json.loads(stdout.data, parse_constant=_reject_constant)
        except ValueError as e:
            logger.error("Failed to parse engine output", url=url, error=str(e))
            raise MalformedEngineOutputError(
                f"Failed to parse engine output: {e}", stderr=stderr_text
            ) from e

        if not isinstance(info, dict):
            raise MalformedEngineOutputError(
                "Engine output is not a JSON object", stderr=stderr_text
            )

        metadata = RawMetadata.from_dict(info)
        logger.info(
            "Metadata extracted",
            url=url,
            formats=len(metadata.formats),
            duration=round(duration, 3),
        )
        return metadata
