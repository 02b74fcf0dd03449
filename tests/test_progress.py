"""Tests for progress reporting and elapsed-time formatting."""

import threading

import pytest

from map_extractor.downloader.progress import ProgressReporter, ProgressState, format_elapsed


class TestReport:

    def test_sequence_0_4_16(self):
        lines = []
        reporter = ProgressReporter(emit=lines.append)

        assert reporter.report(16, 0) is True
        assert reporter.report(16, 4) is True
        assert reporter.report(16, 16) is False
        reporter.report(16, 16, is_final=True)

        assert lines[0] == "[0.00% Complete] 0 out of 16 chunks downloaded."
        assert lines[1] == "[25.00% Complete] 4 out of 16 chunks downloaded."
        assert lines[2] == "[100.00% Complete] 16 out of 16 chunks downloaded."
        assert lines[3] == "[100% Complete] 16 chunks downloaded successfully."

    def test_two_decimal_places(self):
        lines = []
        ProgressReporter(emit=lines.append).report(3, 1)
        assert lines == ["[33.33% Complete] 1 out of 3 chunks downloaded."]

    def test_suppressed_after_final(self):
        lines = []
        reporter = ProgressReporter(emit=lines.append)
        reporter.report(16, 16, is_final=True)
        assert reporter.report(16, 4) is False
        assert reporter.report(16, 16, is_final=True) is False
        assert len(lines) == 1


class TestTicker:

    def test_first_report_immediate_and_stops_when_complete(self):
        lines = []
        reported = threading.Event()

        def emit(line):
            lines.append(line)
            reported.set()

        state = ProgressState(4)
        for _ in range(4):
            state.increment()
        reporter = ProgressReporter(interval=0.01, emit=emit)
        reporter.start(state)
        assert reported.wait(2)
        reporter._thread.join(2)
        assert not reporter._thread.is_alive()
        assert lines == ["[100.00% Complete] 4 out of 4 chunks downloaded."]
        reporter.stop()

    def test_stop_cancels_ticker(self):
        lines = []
        state = ProgressState(10)
        reporter = ProgressReporter(interval=60, emit=lines.append)
        reporter.start(state)
        reporter.stop()
        assert reporter._thread is None
        assert len(lines) <= 1

    def test_finish_emits_single_final_line(self):
        lines = []
        state = ProgressState(2)
        reporter = ProgressReporter(interval=60, emit=lines.append)
        reporter.start(state)
        reporter.finish(2)
        assert lines[-1] == "[100% Complete] 2 chunks downloaded successfully."
        assert reporter.done


class TestProgressState:

    def test_concurrent_increments(self):
        state = ProgressState(800)

        def work():
            for _ in range(100):
                state.increment()

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert state.snapshot() == (800, 800)


class TestFormatElapsed:

    @pytest.mark.parametrize("seconds,expected", [
        (45, "45 seconds"),
        (125, "2 minutes 5 seconds"),
        (3725, "1 hours 2 minutes 5 seconds"),
        (3600, "1 hours"),
        (60, "1 minutes"),
        (0, "0 seconds"),
        (44.2, "45 seconds"),
    ])
    def test_format(self, seconds, expected):
        assert format_elapsed(seconds) == expected
