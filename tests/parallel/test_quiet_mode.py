"""
tests/parallel/test_quiet_mode.py - org_inventory/parallel/quiet.py 테스트
"""

import logging
import threading

from org_inventory.parallel.quiet import is_quiet, quiet_mode, set_quiet


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestQuietState:
    def test_default_not_quiet(self):
        set_quiet(False)
        assert is_quiet() is False

    def test_thread_local(self):
        """스레드 간 quiet 상태 격리"""
        results = {}

        def worker():
            results["thread"] = is_quiet()

        with quiet_mode():
            t = threading.Thread(target=worker)
            t.start()
            t.join()
            results["main"] = is_quiet()

        assert results == {"main": True, "thread": False}

    def test_restored_after_context(self):
        set_quiet(False)
        with quiet_mode():
            with quiet_mode():
                assert is_quiet()
            assert is_quiet()
        assert is_quiet() is False


class TestQuietFilter:
    def test_filters_below_error(self):
        """quiet 스레드에서는 ERROR 미만만 걸러냄"""
        handler = _ListHandler()
        root = logging.getLogger()
        root.addHandler(handler)
        logger = logging.getLogger("org_inventory.test_quiet")
        old_level = logger.level
        logger.setLevel(logging.DEBUG)
        try:
            with quiet_mode():
                logger.warning("hidden")
                logger.error("shown")
            logger.warning("visible again")
        finally:
            root.removeHandler(handler)
            logger.setLevel(old_level)

        messages = [r.getMessage() for r in handler.records]
        assert messages == ["shown", "visible again"]
