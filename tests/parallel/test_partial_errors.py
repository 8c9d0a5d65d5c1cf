"""
tests/parallel/test_partial_errors.py - org_inventory/parallel/errors.py 테스트
"""

import threading

from org_inventory.parallel.errors import (
    LOOKUP_FAILED,
    ErrorCollector,
    ErrorSeverity,
    is_lookup_failed,
    try_or_default,
)
from org_inventory.parallel.types import ErrorCategory


class TestLookupFailed:
    """LOOKUP_FAILED 표식 테스트"""

    def test_singleton(self):
        assert type(LOOKUP_FAILED)() is LOOKUP_FAILED

    def test_falsy_but_not_none(self):
        """None(필드 없음)과 구분"""
        assert not LOOKUP_FAILED
        assert LOOKUP_FAILED is not None
        assert is_lookup_failed(LOOKUP_FAILED)
        assert not is_lookup_failed(None)
        assert not is_lookup_failed("")

    def test_repr(self):
        assert repr(LOOKUP_FAILED) == "<LOOKUP_FAILED>"


class TestErrorCollector:
    """ErrorCollector 테스트"""

    def test_collect(self, client_error):
        collector = ErrorCollector("ec2")
        collected = collector.collect(client_error("Throttling"), "111111111111", "us-east-1", "describe_tags")

        assert collected.service == "ec2"
        assert collected.error_code == "Throttling"
        assert collected.category is ErrorCategory.THROTTLING
        assert collected.severity is ErrorSeverity.WARNING
        assert str(collected) == "[WARNING] 111111111111/us-east-1 - ec2.describe_tags: Throttling"
        assert collector.has_errors

    def test_access_denied_downgraded(self, client_error):
        """ACCESS_DENIED + WARNING은 INFO로"""
        collector = ErrorCollector("ec2")
        collected = collector.collect(client_error("AccessDenied"), "111111111111", "us-east-1", "describe_tags")

        assert collected.severity is ErrorSeverity.INFO

    def test_explicit_critical_kept(self, client_error):
        collector = ErrorCollector("ec2")
        collected = collector.collect(
            client_error("AccessDenied"), "111111111111", "us-east-1", "op", severity=ErrorSeverity.CRITICAL
        )

        assert collected.severity is ErrorSeverity.CRITICAL

    def test_summary_and_clear(self, client_error):
        collector = ErrorCollector("ec2")
        assert collector.get_summary() == "에러 없음"

        collector.collect(client_error("Throttling"), "a", "r", "op")
        collector.collect(client_error("AccessDenied"), "a", "r", "op")
        collector.collect(ValueError("x"), "a", "r", "op", severity=ErrorSeverity.CRITICAL)

        assert collector.get_summary() == "에러 3건 (critical: 1건, info: 1건, warning: 1건)"

        collector.clear()
        assert not collector.has_errors
        assert collector.errors == []

    def test_thread_safe(self):
        collector = ErrorCollector("ec2")

        def worker():
            for _ in range(50):
                collector.collect(ValueError("x"), "a", "r", "op", severity=ErrorSeverity.DEBUG)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(collector.errors) == 200


class TestTryOrDefault:
    """try_or_default 테스트"""

    def test_success(self):
        assert try_or_default(lambda: 42, default=0) == 42

    def test_failure_returns_default(self):
        def boom():
            raise RuntimeError("x")

        assert try_or_default(boom, default=LOOKUP_FAILED) is LOOKUP_FAILED

    def test_failure_collected(self, client_error):
        collector = ErrorCollector("pricing")

        def boom():
            raise client_error("ThrottlingException")

        result = try_or_default(
            boom,
            default=None,
            collector=collector,
            account_id="111111111111",
            region="us-east-1",
            operation="get_products",
        )

        assert result is None
        assert collector.errors[0].operation == "get_products"
        assert collector.errors[0].severity is ErrorSeverity.DEBUG

    def test_absent_vs_failed(self):
        """조회 결과 없음(None)과 조회 실패(LOOKUP_FAILED)를 구분"""

        def lookup_absent():
            return None

        def lookup_broken():
            raise ConnectionError("reset")

        absent = try_or_default(lookup_absent, default=LOOKUP_FAILED)
        failed = try_or_default(lookup_broken, default=LOOKUP_FAILED)

        assert absent is None and not is_lookup_failed(absent)
        assert is_lookup_failed(failed)
