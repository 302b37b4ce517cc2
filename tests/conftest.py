"""Pytest configuration and shared fixtures"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest

from media_catalog.services import catalog_service


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables before each test"""
    # Clear any APP_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("APP_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_catalog_service(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without a configured global catalog service"""
    monkeypatch.setattr(catalog_service, "_catalog_service", None)


FakeEngineFactory = Callable[..., Path]


@pytest.fixture
def fake_engine(tmp_path: Path) -> FakeEngineFactory:
    """Factory writing an executable shell script that stands in for yt-dlp.

    The script prints ``stdout`` and ``stderr`` verbatim and exits with
    ``exit_code``. With ``hang`` it sleeps instead of answering. With
    ``args_file`` it records its argv, one argument per line.
    """

    def _make(
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        hang: bool = False,
        args_file: Optional[Path] = None,
        name: str = "yt-dlp",
    ) -> Path:
        out_file = tmp_path / f"{name}.stdout"
        err_file = tmp_path / f"{name}.stderr"
        out_file.write_text(stdout, encoding="utf-8")
        err_file.write_text(stderr, encoding="utf-8")

        lines = ["#!/bin/sh"]
        if args_file is not None:
            lines.append(f'printf "%s\\n" "$@" > "{args_file}"')
        if hang:
            lines.append("sleep 30")
        lines.append(f'cat "{out_file}"')
        lines.append(f'cat "{err_file}" >&2')
        lines.append(f"exit {exit_code}")

        script = tmp_path / name
        script.write_text("\n".join(lines) + "\n", encoding="utf-8")
        script.chmod(0o755)
        return script

    return _make


@pytest.fixture
def engine_report() -> Dict[str, Any]:
    """A yt-dlp style report, least preferred format first."""
    return {
        "id": "abc123",
        "title": "Sample Video",
        "thumbnail": "https://i.example.com/abc123.jpg",
        "formats": [
            {
                "format_id": "sb0",
                "vcodec": "none",
                "acodec": "none",
                "url": "https://cdn.example.com/storyboard",
            },
            {
                "format_id": "139",
                "vcodec": "none",
                "acodec": "mp4a.40.5",
                "abr": 48.783,
                "url": "https://cdn.example.com/139",
                "filesize": 1200000,
            },
            {
                "format_id": "140",
                "vcodec": "none",
                "acodec": "mp4a.40.2",
                "abr": 129.478,
                "url": "https://cdn.example.com/140",
                "filesize": 3400000,
            },
            {
                "format_id": "18",
                "vcodec": "avc1.42001E",
                "acodec": "mp4a.40.2",
                "height": 360,
                "url": "https://cdn.example.com/18",
                "filesize_approx": 9800000,
            },
            {
                "format_id": "137",
                "vcodec": "avc1.640028",
                "acodec": "none",
                "height": 1080,
                "url": "https://cdn.example.com/137",
                "filesize": 52000000,
            },
            {
                "format_id": "22",
                "vcodec": "avc1.64001F",
                "acodec": "mp4a.40.2",
                "height": 720,
                "url": "https://cdn.example.com/22",
                "filesize": 31000000,
            },
        ],
    }


@pytest.fixture
def engine_report_json(engine_report: Dict[str, Any]) -> str:
    return json.dumps(engine_report)
