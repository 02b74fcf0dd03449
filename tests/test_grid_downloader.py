"""Tests for the threaded grid downloader."""

import threading
import time
from unittest import mock

import pytest

from map_extractor.downloader.fetcher import TileFetcher
from map_extractor.downloader.grid_downloader import GridDownloader
from map_extractor.downloader.progress import ProgressState
from map_extractor.errors import ExtractionCancelled, TileFetchError
from map_extractor.grid import GridEnumerator, TileCoordinate
from map_extractor.providers import ProviderManager

from conftest import FakeFetcher, tile_color


def run(fetcher, width=4, workers=4, callback=None):
    grid = GridEnumerator.enumerate(100, 200, width, 10)
    progress = ProgressState(width * width)
    downloader = GridDownloader(fetcher, max_workers=workers, progress_callback=callback)
    return downloader, downloader.download(grid, progress), progress


class TestDownload:

    @pytest.mark.parametrize("workers", [1, 3, 8])
    def test_positions_correct(self, workers):
        # later cells finish first so arrival order is reversed
        fetcher = FakeFetcher(delay_for=lambda c: 0.002 * (306 - c.x - c.y))
        _, matrix, progress = run(fetcher, width=4, workers=workers)
        for r in range(4):
            for c in range(4):
                assert matrix[r][c].getpixel((0, 0)) == tile_color(100 + c, 200 + r)
        assert progress.completed == 16

    def test_each_coordinate_fetched_once(self, fake_fetcher):
        run(fake_fetcher, width=3, workers=4)
        assert sorted(fake_fetcher.calls, key=lambda c: (c.y, c.x)) == [
            TileCoordinate(100 + c, 200 + r, 10) for r in range(3) for c in range(3)
        ]

    def test_progress_callback(self, fake_fetcher):
        seen = []
        lock = threading.Lock()

        def callback(completed, total):
            with lock:
                seen.append((completed, total))

        run(fake_fetcher, width=2, workers=2, callback=callback)
        assert sorted(seen) == [(1, 4), (2, 4), (3, 4), (4, 4)]


class TestFailure:

    def test_failure_propagates_with_coordinate(self):
        fetcher = FakeFetcher(fail_at={(101, 201)})
        with pytest.raises(TileFetchError) as excinfo:
            run(fetcher, width=3, workers=1)
        assert excinfo.value.coordinate == TileCoordinate(101, 201, 10)

    def test_failure_stops_remaining_tasks(self):
        fetcher = FakeFetcher(fail_at={(100, 200)})
        with pytest.raises(TileFetchError):
            run(fetcher, width=4, workers=1)
        assert len(fetcher.calls) == 1

    def test_unexpected_error_propagates(self):
        class Broken(FakeFetcher):
            def fetch(self, coord, stop_event=None):
                raise ValueError("bad")

        with pytest.raises(ValueError):
            run(Broken(), width=2, workers=2)


class TestCancel:

    def test_cancel_between_fetches(self):
        grid = GridEnumerator.enumerate(0, 0, 4, 3)
        progress = ProgressState(16)
        holder = {}

        class CancellingFetcher(FakeFetcher):
            def fetch(self, coord, stop_event=None):
                tile = super().fetch(coord, stop_event)
                if len(self.calls) == 2:
                    holder["downloader"].cancel()
                return tile

        fetcher = CancellingFetcher()
        downloader = GridDownloader(fetcher, max_workers=1)
        holder["downloader"] = downloader
        with pytest.raises(ExtractionCancelled):
            downloader.download(grid, progress)
        assert len(fetcher.calls) == 2

    def test_cancel_during_retry_backoff(self):
        grid = GridEnumerator.enumerate(0, 0, 2, 3)
        progress = ProgressState(4)
        holder = {}

        def unavailable(url, timeout):
            holder["downloader"].cancel()
            resp = mock.Mock()
            resp.status_code = 503
            return resp

        session = mock.Mock()
        session.headers = {}
        session.get.side_effect = unavailable
        provider = ProviderManager.create_custom_provider("test", "https://tiles.test/{z}/{x}/{y}.png")
        fetcher = TileFetcher(provider, session=session, retries=3, backoff_factor=60, max_backoff=60)
        downloader = GridDownloader(fetcher, max_workers=1)
        holder["downloader"] = downloader

        started = time.time()
        with pytest.raises(ExtractionCancelled):
            downloader.download(grid, progress)
        assert time.time() - started < 5
        assert session.get.call_count == 1
        assert progress.completed == 0
