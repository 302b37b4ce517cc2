"""Tests for engine binary provisioning."""

import asyncio
import gc
import os
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

from media_catalog.engine.exceptions import EngineInitError
from media_catalog.engine.provisioner import EngineProvisioner, is_executable_file

DOWNLOAD_URL = "https://downloads.example.com/yt-dlp_linux"
BINARY = b"#!/bin/sh\necho 2024.01.01\n"


class FakeDistribution:
    """httpx handler serving the engine binary and counting fetches."""

    def __init__(self, responses: List[httpx.Response], delay: float = 0.05):
        self.responses = responses
        self.delay = delay
        self.calls = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        await asyncio.sleep(self.delay)
        index = min(self.calls, len(self.responses)) - 1
        return self.responses[index]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def _provisioner(path: Path, distribution: FakeDistribution) -> EngineProvisioner:
    return EngineProvisioner(
        path=path,
        download_url=DOWNLOAD_URL,
        transport=distribution.transport,
    )


@pytest.mark.asyncio
async def test_downloads_and_marks_executable(tmp_path: Path) -> None:
    target = tmp_path / "bin" / "yt-dlp"
    distribution = FakeDistribution([httpx.Response(200, content=BINARY)])
    provisioner = _provisioner(target, distribution)

    await provisioner.ensure_ready()

    assert provisioner.is_ready
    assert target.read_bytes() == BINARY
    assert is_executable_file(target)
    assert distribution.calls == 1


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_download(tmp_path: Path) -> None:
    target = tmp_path / "yt-dlp"
    distribution = FakeDistribution([httpx.Response(200, content=BINARY)], delay=0.2)
    provisioner = _provisioner(target, distribution)

    await asyncio.gather(*(provisioner.ensure_ready() for _ in range(10)))

    assert distribution.calls == 1
    assert provisioner.is_ready


@pytest.mark.asyncio
async def test_ready_provisioner_does_not_fetch_again(tmp_path: Path) -> None:
    distribution = FakeDistribution([httpx.Response(200, content=BINARY)])
    provisioner = _provisioner(tmp_path / "yt-dlp", distribution)

    await provisioner.ensure_ready()
    await provisioner.ensure_ready()

    assert distribution.calls == 1


@pytest.mark.asyncio
async def test_existing_binary_is_reused(tmp_path: Path) -> None:
    target = tmp_path / "yt-dlp"
    target.write_bytes(BINARY)
    target.chmod(0o755)
    distribution = FakeDistribution([httpx.Response(200, content=b"new")])
    provisioner = _provisioner(target, distribution)

    await provisioner.ensure_ready()

    assert provisioner.is_ready
    assert distribution.calls == 0
    assert target.read_bytes() == BINARY


@pytest.mark.asyncio
async def test_non_executable_leftover_is_replaced(tmp_path: Path) -> None:
    target = tmp_path / "yt-dlp"
    target.write_bytes(b"partial")
    target.chmod(0o644)
    distribution = FakeDistribution([httpx.Response(200, content=BINARY)])
    provisioner = _provisioner(target, distribution)

    await provisioner.ensure_ready()

    assert distribution.calls == 1
    assert target.read_bytes() == BINARY
    assert is_executable_file(target)


@pytest.mark.asyncio
async def test_http_error_raises_engine_init_error(tmp_path: Path) -> None:
    target = tmp_path / "yt-dlp"
    distribution = FakeDistribution([httpx.Response(404)])
    provisioner = _provisioner(target, distribution)

    with pytest.raises(EngineInitError):
        await provisioner.ensure_ready()

    assert not provisioner.is_ready
    assert not target.exists()
    assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_empty_download_raises_engine_init_error(tmp_path: Path) -> None:
    distribution = FakeDistribution([httpx.Response(200, content=b"")])
    provisioner = _provisioner(tmp_path / "yt-dlp", distribution)

    with pytest.raises(EngineInitError):
        await provisioner.ensure_ready()

    assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_network_error_raises_engine_init_error(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provisioner = EngineProvisioner(
        path=tmp_path / "yt-dlp",
        download_url=DOWNLOAD_URL,
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(EngineInitError):
        await provisioner.ensure_ready()


@pytest.mark.asyncio
async def test_retry_after_failure(tmp_path: Path) -> None:
    target = tmp_path / "yt-dlp"
    distribution = FakeDistribution(
        [httpx.Response(503), httpx.Response(200, content=BINARY)]
    )
    provisioner = _provisioner(target, distribution)

    with pytest.raises(EngineInitError):
        await provisioner.ensure_ready()
    assert not provisioner.is_ready

    await provisioner.ensure_ready()

    assert provisioner.is_ready
    assert distribution.calls == 2
    assert target.read_bytes() == BINARY


@pytest.mark.asyncio
async def test_concurrent_callers_all_see_failure(tmp_path: Path) -> None:
    distribution = FakeDistribution([httpx.Response(500)], delay=0.2)
    provisioner = _provisioner(tmp_path / "yt-dlp", distribution)

    results = await asyncio.gather(
        *(provisioner.ensure_ready() for _ in range(5)), return_exceptions=True
    )

    assert distribution.calls == 1
    assert all(isinstance(r, EngineInitError) for r in results)


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_abort_shared_download(tmp_path: Path) -> None:
    distribution = FakeDistribution([httpx.Response(200, content=BINARY)], delay=0.3)
    provisioner = _provisioner(tmp_path / "yt-dlp", distribution)

    first = asyncio.create_task(provisioner.ensure_ready())
    await asyncio.sleep(0.05)
    second = asyncio.create_task(provisioner.ensure_ready())
    await asyncio.sleep(0.05)
    first.cancel()

    await second

    assert provisioner.is_ready
    assert distribution.calls == 1


@pytest.mark.asyncio
async def test_file_operations_run_off_the_event_loop(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    offloaded: List[str] = []
    to_thread = asyncio.to_thread

    async def recording_to_thread(func: Callable[..., Any], *args: Any) -> Any:
        offloaded.append(func.__name__)
        return await to_thread(func, *args)

    monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)
    distribution = FakeDistribution([httpx.Response(200, content=BINARY)])
    provisioner = _provisioner(tmp_path / "yt-dlp", distribution)

    await provisioner.ensure_ready()

    assert "write" in offloaded
    assert offloaded[-2:] == ["chmod", "replace"]
    assert is_executable_file(tmp_path / "yt-dlp")


@pytest.mark.asyncio
async def test_failure_after_all_callers_left_is_retrieved(tmp_path: Path) -> None:
    distribution = FakeDistribution([httpx.Response(500)], delay=0.2)
    provisioner = _provisioner(tmp_path / "yt-dlp", distribution)
    loop = asyncio.get_running_loop()
    reported: List[Dict[str, Any]] = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))

    try:
        caller = asyncio.create_task(provisioner.ensure_ready())
        await asyncio.sleep(0.05)
        download = provisioner._state.provisioning
        assert download is not None

        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller
        await asyncio.wait([download])
        assert not download.cancelled()

        del caller, download
        gc.collect()
    finally:
        loop.set_exception_handler(None)

    assert not any("never retrieved" in context.get("message", "") for context in reported)
    assert not provisioner.is_ready
