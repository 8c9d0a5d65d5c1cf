"""
org_inventory/parallel/types.py - Fan-out 실행 결과 타입

- ErrorCategory: 에러 분류
- TaskError: 단위 작업 실패 정보
- FanOutUnit: (계정, 리전) 단위 작업 식별자
- UnitFailure: 실패한 단위 작업 + 에러
- FanOutResult: 전체 실행 결과 (성공 레코드 + 실패 단위 목록)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from ..auth.types import Account

T = TypeVar("T")


class ErrorCategory(Enum):
    """에러 분류"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    NETWORK = "network"
    INVALID_REQUEST = "invalid_request"
    SERVICE_ERROR = "service_error"
    CREDENTIALS_UNAVAILABLE = "credentials_unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TaskError:
    """단위 작업 실패 정보

    Attributes:
        identifier: 계정 ID
        region: 리전
        category: 에러 분류
        error_code: AWS 에러 코드 또는 예외 클래스명
        message: 에러 메시지
        retries: 실패 전 재시도 횟수
        original_exception: 원본 예외 (traceback은 제거됨)
    """

    identifier: str
    region: str
    category: ErrorCategory
    error_code: str
    message: str
    retries: int = 0
    original_exception: BaseException | None = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"[{self.identifier}/{self.region}] {self.error_code}: {self.message}"


@dataclass(frozen=True)
class FanOutUnit:
    """(계정, 리전) 단위 작업"""

    account: Account
    region: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.account.id, self.region)

    def __str__(self) -> str:
        return f"{self.account.id}/{self.region}"


@dataclass(frozen=True)
class UnitFailure:
    """실패한 단위 작업"""

    unit: FanOutUnit
    error: TaskError

    @property
    def account_id(self) -> str:
        return self.unit.account.id

    @property
    def region(self) -> str:
        return self.unit.region


@dataclass(frozen=True)
class FanOutResult(Generic[T]):
    """Fan-out 전체 실행 결과

    실패한 단위는 레코드 0개와 실패 1건만 기여합니다.
    records의 순서는 보장되지 않습니다 (정렬은 표시 계층의 몫).

    Attributes:
        records: 성공한 단위들의 레코드를 평탄화한 목록
        failed_units: 실패한 단위 목록
        succeeded_units: 성공한 단위 수
    """

    records: tuple[T, ...] = ()
    failed_units: tuple[UnitFailure, ...] = ()
    succeeded_units: int = 0

    @property
    def success_count(self) -> int:
        return self.succeeded_units

    @property
    def failure_count(self) -> int:
        return len(self.failed_units)

    @property
    def total_units(self) -> int:
        return self.succeeded_units + len(self.failed_units)

    def get_flat_data(self) -> list[T]:
        """레코드 목록 복사본"""
        return list(self.records)

    def failures_by_account(self) -> dict[str, list[UnitFailure]]:
        """계정 ID별 실패 그룹핑"""
        grouped: dict[str, list[UnitFailure]] = {}
        for failure in self.failed_units:
            grouped.setdefault(failure.account_id, []).append(failure)
        return grouped

    def get_error_summary(self) -> str:
        """에러 코드별 실패 건수 요약"""
        if not self.failed_units:
            return "실패 없음"

        by_code: dict[str, int] = {}
        for failure in self.failed_units:
            by_code[failure.error.error_code] = by_code.get(failure.error.error_code, 0) + 1

        parts = [f"{code}: {count}건" for code, count in sorted(by_code.items())]
        return f"실패 {len(self.failed_units)}건 ({', '.join(parts)})"
