#!/usr/bin/env python3
"""
Tests for progress state and the tracker that aggregates completions.
"""

import pytest
from concurrent.futures import ThreadPoolExecutor

from parbar.core.counter import MemoryCounter, FileCounter
from parbar.core.errors import ProgressOverrunError
from parbar.core.progress import ProgressState, ProgressEvent, ProgressTracker
from parbar.render import Renderer


@pytest.fixture
def make_tracker(make_options, stream):
    """Factory for a tracker printing to the in-memory stream."""
    def _make(total_tasks=5, counter=None, on_complete=None, **kwargs):
        options = make_options(total_tasks, **kwargs)
        return ProgressTracker(
            options,
            counter or MemoryCounter(),
            Renderer(options, stream),
            on_complete=on_complete
        )
    return _make


class TestProgressState:
    """Tests for derived progress values."""

    def test_percent_rounds_down(self):
        """Test that the percentage is floor(100*k/N)."""
        state = ProgressState(total_tasks=3, completed_tasks=2)

        assert state.percent == 66

    def test_filled_cells(self):
        """Test bar fill for length 10, 100 tasks, 30 done."""
        state = ProgressState(total_tasks=100, completed_tasks=30)

        assert state.filled(10) == 3

    def test_remaining_needs_progress(self):
        """Test that no estimate is made before the first completion."""
        state = ProgressState(total_tasks=4, completed_tasks=0, start_time=100.0)

        assert state.remaining(now=110.0) is None

    def test_remaining_estimate(self):
        """Test elapsed * (1/fraction - 1)."""
        state = ProgressState(total_tasks=4, completed_tasks=1, start_time=100.0)

        assert state.remaining(now=110.0) == pytest.approx(30.0)

    def test_complete_flag(self):
        """Test the terminal state."""
        assert ProgressState(total_tasks=2, completed_tasks=2).is_complete
        assert not ProgressState(total_tasks=2, completed_tasks=1).is_complete


class TestProgressEvent:
    """Tests for event message normalization."""

    def test_no_message(self):
        """Test that None and empty strings carry no message."""
        assert ProgressEvent.of().message is None
        assert ProgressEvent.of("").message is None

    def test_numbers_become_text(self):
        """Test that numeric messages are shown as text."""
        assert ProgressEvent.of(42).message == "42"
        assert ProgressEvent.of(0.5).message == "0.5"


class TestProgressTracker:
    """Tests for event aggregation."""

    def test_counts_sequence(self, make_tracker):
        """Test that five events give counts 1..5 and percentages 20..100."""
        tracker = make_tracker(5)
        counts = []
        percents = []

        for _ in range(5):
            counts.append(tracker.on_event(ProgressEvent.of()))
            percents.append(tracker.state.percent)

        assert counts == [1, 2, 3, 4, 5]
        assert percents == [20, 40, 60, 80, 100]
        assert tracker.is_complete

    def test_single_task_completes_immediately(self, make_tracker, stream):
        """Test total=1: one event completes, final message shown, no remaining field."""
        calls = []
        tracker = make_tracker(1, on_complete=lambda: calls.append(1), final_message="Done!")

        tracker.on_event(ProgressEvent.of("ignored"))

        line = stream.getvalue().splitlines()[-1]
        assert tracker.is_complete
        assert calls == [1]
        assert "Done!" in line
        assert "ignored" not in line
        assert "Remaining:" not in line
        assert "Total:" in line
        assert "100%" in line

    def test_message_selection(self, make_tracker):
        """Test event message, then wait message fallback, then final message."""
        tracker = make_tracker(3, wait_message="Hang on...", final_message="Done!")

        tracker.on_event(ProgressEvent.of("custom"))
        assert tracker.state.last_message == "custom"

        tracker.on_event(ProgressEvent.of())
        assert tracker.state.last_message == "Hang on..."

        tracker.on_event(ProgressEvent.of("custom"))
        assert tracker.state.last_message == "Done!"

    def test_overrun_detected(self, make_tracker):
        """Test that reporting past the total raises instead of wrapping."""
        tracker = make_tracker(2)
        tracker.on_event(ProgressEvent.of())
        tracker.on_event(ProgressEvent.of())

        with pytest.raises(ProgressOverrunError):
            tracker.on_event(ProgressEvent.of())
        assert tracker.state.completed_tasks == 2

    def test_completion_callback_once(self, make_tracker):
        """Test that COMPLETE is entered exactly once under concurrency."""
        calls = []
        tracker = make_tracker(200, on_complete=lambda: calls.append(1))

        with ThreadPoolExecutor(max_workers=16) as executor:
            list(executor.map(lambda _: tracker.on_event(ProgressEvent.of()), range(200)))

        tracker.finish()
        assert tracker.state.completed_tasks == 200
        assert calls == [1]

    def test_finish_before_completion_is_noop(self, make_tracker):
        """Test that finish() does nothing while waiting."""
        calls = []
        tracker = make_tracker(3, on_complete=lambda: calls.append(1))
        tracker.on_event(ProgressEvent.of())

        tracker.finish()

        assert calls == []

    def test_uses_file_counter_value(self, make_tracker, counter_dir):
        """Test that counts reported elsewhere are picked up from the shared file."""
        counter = FileCounter.create(counter_dir)
        counter.increment_and_read()
        tracker = make_tracker(4, counter=counter)

        assert tracker.on_event(ProgressEvent.of()) == 2
        assert tracker.state.completed_tasks == 2
        assert counter.read() == 2

    def test_copies_share_screen_bookkeeping(self, make_tracker, counter_dir, stream, screen):
        """Test that trackers on one counter file erase and pad each other's lines."""
        counter = FileCounter.create(counter_dir)
        first = make_tracker(4, counter=counter, display_remaining_time=False)
        second = make_tracker(4, counter=counter, display_remaining_time=False)

        first.on_event(ProgressEvent.of("a long message"))
        second.on_event(ProgressEvent.of("short"))

        lines = screen(stream.getvalue())
        assert lines == ["short          -  50% [**********          ]"]
        assert second.renderer.render_state.lines_printed == 2
        assert second.renderer.render_state.max_message_width == len("a long message")

    def test_initial_bar_is_shared(self, make_tracker, counter_dir, stream, screen):
        """Test that the empty bar counts as a printed line for later copies."""
        counter = FileCounter.create(counter_dir)
        first = make_tracker(2, counter=counter, wait_message="Hang on...")
        second = make_tracker(2, counter=counter, wait_message="Hang on...")

        first.render_initial()
        second.on_event(ProgressEvent.of())

        assert len(screen(stream.getvalue())) == 1
        assert "50%" in screen(stream.getvalue())[0]

    def test_snapshot_is_a_copy(self, make_tracker):
        """Test that snapshots do not change with later events."""
        tracker = make_tracker(3)
        tracker.on_event(ProgressEvent.of())

        snapshot = tracker.snapshot()
        tracker.on_event(ProgressEvent.of())

        assert snapshot.completed_tasks == 1
        assert tracker.state.completed_tasks == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
