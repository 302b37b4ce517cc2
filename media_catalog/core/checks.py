"""Engine availability checks used by the health endpoints."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from media_catalog.engine.exceptions import EngineLaunchError
from media_catalog.engine.extractor import spawn


@dataclass
class CheckResult:
    """Result of the engine availability check.

    Attributes:
        available: Whether the engine runs and exits cleanly
        version: Version banner if available
        error: Error message if check failed
    """

    available: bool
    version: Optional[str] = None
    error: Optional[str] = None


async def check_engine(path: Union[str, Path], timeout: float = 5.0) -> CheckResult:
    """Run ``<engine> --version`` and report the result.

    Args:
        path: Location of the engine binary.
        timeout: Maximum time to wait for the check in seconds.

    Returns:
        CheckResult with availability status and version if available.
    """
    if not Path(path).exists():
        return CheckResult(available=False, error="engine not found")

    try:
        async with spawn([str(path), "--version"]) as proc:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        return CheckResult(available=False, error="engine check timed out")
    except EngineLaunchError as e:
        return CheckResult(available=False, error=str(e))

    if proc.returncode == 0:
        version = stdout.decode("utf-8", errors="replace").strip()
        return CheckResult(available=True, version=version)

    return CheckResult(available=False, error=f"engine returned exit code {proc.returncode}")
