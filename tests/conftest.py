from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest


def _ensure_repo_root_on_path() -> None:
    root_dir = Path(__file__).resolve().parents[1]
    if str(root_dir) not in sys.path:
        sys.path.insert(0, str(root_dir))


_ensure_repo_root_on_path()

from shared.asr_base import ASRClient  # noqa: E402
from shared.config import get_config  # noqa: E402


class StubASR(ASRClient):
    """Returns a canned reply and remembers what it was sent."""

    def __init__(self, reply: str = "[]", error: Exception | None = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: list[tuple[bytes, str]] = []

    def transcribe(self, audio: bytes, mime_type: str) -> str:
        self.calls.append((audio, mime_type))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch):
    for name in ("API_KEY", "GENERATION_MODEL", "MAX_DURATION_SEC", "MODEL_WORKERS", "TRANSCRIBE_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("API_KEY", "test-key")
    return "test-key"


@pytest.fixture
def stub_asr(monkeypatch):
    from apps.transcribe_api import main

    stub = StubASR()
    monkeypatch.setattr(main, "get_asr", lambda key: stub)
    return stub
