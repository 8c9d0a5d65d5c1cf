"""
org_inventory/parallel/errors.py - 보조 조회의 부분 실패 처리

계정 부모 조회나 태그 조회처럼 레코드를 보강하는 호출은 실패해도 레코드를 버리지 않습니다.
값 자리에는 LOOKUP_FAILED를 넣어 "값이 없음(None)"과 "조회하지 못함"을 구분하고,
실패 내역은 ErrorCollector에 쌓아 실행 끝에 요약합니다.

Example:
    collector = ErrorCollector("organizations")
    parent = try_or_default(
        lambda: lookup_parent(account.id),
        default=LOOKUP_FAILED,
        collector=collector,
        account_id=account.id,
        operation="list_parents",
    )
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from .decorators import categorize_error, get_error_code
from .types import ErrorCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _LookupFailed:
    __slots__ = ()
    _singleton: _LookupFailed | None = None

    def __new__(cls) -> _LookupFailed:
        if cls._singleton is None:
            cls._singleton = object.__new__(cls)
        return cls._singleton

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "<LOOKUP_FAILED>"


# 조회 실패 표식. 거짓으로 평가되지만 None과는 다른 값
LOOKUP_FAILED: Any = _LookupFailed()


def is_lookup_failed(value: object) -> bool:
    return value is LOOKUP_FAILED


class ErrorSeverity(Enum):
    """수집된 실패의 심각도"""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"

    @property
    def log_level(self) -> int:
        return {
            ErrorSeverity.CRITICAL: logging.ERROR,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.DEBUG: logging.DEBUG,
        }[self]


@dataclass(frozen=True)
class CollectedError:
    """보조 조회 한 건의 실패 기록

    error_code는 AWS 에러 코드, 코드가 없으면 예외 클래스 이름입니다.
    """

    account_id: str
    region: str
    service: str
    operation: str
    error_code: str
    error_message: str
    severity: ErrorSeverity
    category: ErrorCategory
    resource_id: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        where = f"{self.account_id}/{self.region}"
        return f"[{self.severity.name}] {where} - {self.service}.{self.operation}: {self.error_code}"


def _effective_severity(category: ErrorCategory, requested: ErrorSeverity) -> ErrorSeverity:
    # 권한 없는 계정은 흔하므로 경고 대신 정보로 남김
    if category is ErrorCategory.ACCESS_DENIED and requested is ErrorSeverity.WARNING:
        return ErrorSeverity.INFO
    return requested


class ErrorCollector:
    """서비스 하나의 보조 조회 실패 모음

    fan-out 워커 여러 개가 같은 인스턴스에 동시에 기록해도 됩니다.
    """

    def __init__(self, service: str):
        self.service = service
        self._lock = threading.Lock()
        self._items: list[CollectedError] = []

    def collect(
        self,
        error: BaseException,
        account_id: str,
        region: str,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        resource_id: str | None = None,
    ) -> CollectedError:
        """실패 한 건 기록 후 심각도에 맞는 레벨로 로깅"""
        category = categorize_error(error)
        record = CollectedError(
            account_id=account_id,
            region=region,
            service=self.service,
            operation=operation,
            error_code=get_error_code(error),
            error_message=str(error),
            severity=_effective_severity(category, severity),
            category=category,
            resource_id=resource_id,
        )
        with self._lock:
            self._items.append(record)

        logger.log(record.severity.log_level, str(record))
        return record

    @property
    def errors(self) -> list[CollectedError]:
        with self._lock:
            return self._items.copy()

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._items)

    def get_summary(self) -> str:
        """예: "에러 3건 (critical: 1건, warning: 2건)" """
        with self._lock:
            counts = Counter(item.severity.value for item in self._items)
            total = len(self._items)

        if not total:
            return "에러 없음"
        breakdown = ", ".join(f"{name}: {n}건" for name, n in sorted(counts.items()))
        return f"에러 {total}건 ({breakdown})"

    def clear(self) -> None:
        with self._lock:
            self._items = []


def try_or_default(
    func: Callable[[], T],
    default: T,
    collector: ErrorCollector | None = None,
    account_id: str = "",
    region: str = "",
    operation: str = "",
    severity: ErrorSeverity = ErrorSeverity.DEBUG,
) -> T:
    """func() 결과를 반환하고, 예외가 나면 default를 반환

    collector가 있으면 실패를 기록하고, 없으면 severity 레벨로 로그만 남깁니다.
    "조회하지 못함"을 구분해야 하는 필드는 default=LOOKUP_FAILED 를 넘깁니다.
    """
    try:
        return func()
    except Exception as e:
        if collector is not None:
            collector.collect(e, account_id, region, operation, severity)
        else:
            logger.log(severity.log_level, f"[{account_id}/{region}] {operation}: {get_error_code(e)}")
        return default
