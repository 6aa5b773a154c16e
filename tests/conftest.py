"""
Shared fixtures for the booth print relay tests.

FakePrintAgent stands in for the DNP hot folder software: it watches a
directory on its own thread and deletes finished images, optionally only
up to a limit so tests can simulate a printer that stalls.
"""

import io
import threading
import time
from pathlib import Path

import pytest
from PIL import Image

from core.paper_sizes import PaperSizeCatalog
from services.print_orchestrator import PrintOrchestrator


FAKE_IMAGE = b"\xff\xd8\xff\xe0fake-jpeg-payload"


class FakePrintAgent:
    """Deletes ``*.jpg`` files from ``watch_dir`` the way the DNP agent does."""

    def __init__(self, watch_dir: Path, delay: float = 0.05, limit=None, poll: float = 0.01):
        self.watch_dir = Path(watch_dir)
        self.delay = delay
        self.limit = limit
        self.poll = poll
        self.consumed = []
        self.seen_descriptors = []
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="FakePrintAgent", daemon=True)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self._stop.set()
        self._thread.join(timeout=2.0)

    def _run(self):
        while not self._stop.is_set():
            for image in sorted(self.watch_dir.glob("*.jpg")):
                if self.limit is not None and len(self.consumed) >= self.limit:
                    break
                if self._stop.wait(self.delay):
                    return
                descriptor = image.with_suffix(".job")
                if descriptor.exists():
                    self.seen_descriptors.append(descriptor.read_text(encoding="utf-8"))
                try:
                    image.unlink()
                except FileNotFoundError:
                    continue
                self.consumed.append(image.name)
            self._stop.wait(self.poll)


@pytest.fixture
def hot_folder(tmp_path):
    """Hot folder root with the 4x6 and 2x6 size folders in place."""
    root = tmp_path / "hotfolder"
    for name in ("4x6", "2x6"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def catalog():
    return PaperSizeCatalog()


@pytest.fixture
def orchestrator(catalog, hot_folder):
    return PrintOrchestrator(
        catalog,
        hot_folder,
        poll_interval=0.01,
        timeout=2.0,
        lock_wait=1.0,
        prepare_images=False,
    )


@pytest.fixture
def agent_factory():
    """Start fake print agents; all of them are stopped after the test."""
    agents = []

    def make(watch_dir, **kwargs):
        agent = FakePrintAgent(watch_dir, **kwargs).start()
        agents.append(agent)
        return agent

    yield make

    for agent in agents:
        agent.stop()


@pytest.fixture
def jpeg_bytes():
    """A small real JPEG (landscape, 120x80)."""
    buffer = io.BytesIO()
    Image.new("RGB", (120, 80), (200, 30, 30)).save(buffer, format="JPEG")
    return buffer.getvalue()


def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
