"""Shared fixtures: CV payloads and an in-memory rasterizer."""

import asyncio

import pytest

from safira.contexts.intake import sample_cv
from safira.contexts.rendering.rasterizer import DocumentRasterizer
from safira.exceptions import EngineUnavailableError, RasterizeError

FAKE_PDF = b"%PDF-1.7\n% in-memory test document\n%%EOF\n"


class FakeRasterizer(DocumentRasterizer):
    """
    Stand-in engine that records what it was asked to do.

    Args:
        fail_launch: launch() raises EngineUnavailableError
        failures: Number of rasterize() calls that raise RasterizeError first
        die_on_rasterize: rasterize() disconnects the engine and raises EngineUnavailableError
        delay: Seconds each rasterize() takes
    """

    name = "fake"

    def __init__(self, fail_launch=False, failures=0, die_on_rasterize=False, delay=0.0):
        self.fail_launch = fail_launch
        self.failures = failures
        self.die_on_rasterize = die_on_rasterize
        self.delay = delay
        self.launch_count = 0
        self.close_count = 0
        self.rasterized = []
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def launch(self) -> None:
        self.launch_count += 1
        # Yield so concurrent callers overlap with the launch
        await asyncio.sleep(0)
        if self.fail_launch:
            raise EngineUnavailableError()
        self._connected = True

    async def rasterize(self, html: str) -> bytes:
        if not self._connected:
            raise EngineUnavailableError()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.die_on_rasterize:
            self._connected = False
            raise EngineUnavailableError()
        if self.failures:
            self.failures -= 1
            raise RasterizeError()
        self.rasterized.append(html)
        return FAKE_PDF

    async def close(self) -> None:
        self.close_count += 1
        self._connected = False

    def crash(self) -> None:
        """Simulate the browser process dying between requests."""
        self._connected = False


@pytest.fixture
def sample_cv_data():
    """The built-in sample CV (Biruh Tesfaye), wire format."""
    return sample_cv()


@pytest.fixture
def minimal_cv_data():
    """Only the required identity fields; every optional section absent."""
    return {
        "personalInfo": {
            "firstName": "Hana",
            "lastName": "Girma",
            "email": "hana.girma@example.com",
        }
    }


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()
