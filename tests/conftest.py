"""Shared test fixtures."""

import io
import threading
import time

import pytest
from loguru import logger
from PIL import Image

from map_extractor.errors import TileFetchError

TILE = 256


def tile_color(x, y):
    """Distinct opaque color per tile coordinate."""
    return ((x * 37) % 256, (y * 59) % 256, (x + y) % 256, 255)


def make_tile(color, size=TILE, mode="RGBA"):
    return Image.new(mode, (size, size), color)


def encode(image, fmt="PNG"):
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


class FakeFetcher:
    """Stands in for TileFetcher: returns a solid tile per coordinate."""

    def __init__(self, fail_at=None, delay_for=None, size=TILE):
        self.fail_at = set(fail_at or [])
        self.delay_for = delay_for or (lambda coord: 0)
        self.size = size
        self.calls = []
        self.lock = threading.Lock()
        self.closed = False

    def fetch(self, coord, stop_event=None):
        with self.lock:
            self.calls.append(coord)
        delay = self.delay_for(coord)
        if delay:
            time.sleep(delay)
        if (coord.x, coord.y) in self.fail_at:
            raise TileFetchError(coord, "HTTP状态码 500")
        return make_tile(tile_color(coord.x, coord.y), self.size)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def red_tile():
    return make_tile((255, 0, 0, 255))
