"""
tests/test_progress.py - Progress tracker tests
"""

import io
import threading

from rich.console import Console

from org_inventory.progress import ParallelTracker, SuccessFailColumn, parallel_progress


class TestParallelTracker:
    """ParallelTracker tests"""

    def test_headless(self):
        tracker = ParallelTracker()
        tracker.set_total(3)
        tracker.on_complete(True)
        tracker.on_complete(False)

        assert tracker.stats == (1, 1, 3)
        assert tracker.success_count == 1
        assert tracker.failed_count == 1
        assert tracker.total_count == 3

    def test_thread_safe(self):
        tracker = ParallelTracker()

        def worker():
            for i in range(100):
                tracker.on_complete(i % 2 == 0)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert tracker.stats == (200, 200, 0)

    def test_column_render(self):
        tracker = ParallelTracker()
        tracker.on_complete(True)
        tracker.on_complete(False)

        text = SuccessFailColumn(tracker).render(None)

        assert text.plain == "1✓ 1✗"


class TestParallelProgress:
    def test_context_updates_task(self):
        console = Console(file=io.StringIO(), force_terminal=False)

        with parallel_progress("수집", console=console) as tracker:
            tracker.set_total(2)
            tracker.on_complete(True)
            tracker.on_complete(True)
            task = tracker._progress.tasks[0]
            assert task.total == 2
            assert task.completed == 2

        assert tracker.stats == (2, 0, 2)
