"""
org_inventory/parallel/decorators.py - 단위 작업 실패 분류와 재시도 정책

fan-out 단위가 던진 예외를 ErrorCategory로 나누고, 다시 시도할 가치가 있는지 판단합니다.
AWS 에러 코드 판정은 exceptions 모듈의 코드 집합을 그대로 씁니다.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from botocore.exceptions import ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError

from ..exceptions import get_client_error_code, is_access_denied, is_not_found, is_throttling
from .types import ErrorCategory


@dataclass
class RetryConfig:
    """단위 작업 재시도 정책

    대기 시간은 base_delay * exponential_base**attempt 를 max_delay로 자른 값이며,
    jitter가 켜져 있으면 0부터 그 값 사이에서 균등하게 뽑습니다 (full jitter).
    쓰로틀링 중인 여러 워커가 같은 순간에 몰려 재시도하지 않게 합니다.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True

    def get_delay(self, attempt: int) -> float:
        """attempt번째(0부터) 실패 후 대기할 초"""
        ceiling = min(self.base_delay * self.exponential_base**attempt, self.max_delay)
        return random.uniform(0, ceiling) if self.jitter else ceiling


RETRYABLE_ERROR_CODES: set[str] = {
    # 쓰로틀링
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
    "SlowDown",
    # 일시적 서비스 장애
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "InternalError",
    "InternalServiceError",
    "RequestTimeout",
    "RequestTimeoutException",
}

_EXPIRED_TOKEN_CODES = frozenset({"ExpiredToken", "ExpiredTokenException"})
_SERVICE_ERROR_CODES = frozenset(
    {"InternalError", "InternalServiceError", "ServiceUnavailable", "ServiceUnavailableException"}
)
_INVALID_PREFIXES = ("Invalid", "Validation", "Malformed")

_TIMEOUT_TYPES = (ConnectTimeoutError, ReadTimeoutError, TimeoutError)
_TRANSPORT_TYPES = (ConnectionError, EndpointConnectionError, *_TIMEOUT_TYPES)

# 예외 객체 기준 판정 (먼저 매칭된 규칙 우선)
_ERROR_RULES: list[tuple[Callable[[BaseException], bool], ErrorCategory]] = [
    (is_throttling, ErrorCategory.THROTTLING),
    (is_access_denied, ErrorCategory.ACCESS_DENIED),
    (is_not_found, ErrorCategory.NOT_FOUND),
]

# 에러 코드 문자열 기준 판정
_CODE_RULES: list[tuple[Callable[[str], bool], ErrorCategory]] = [
    (lambda code: "Timeout" in code, ErrorCategory.TIMEOUT),
    (lambda code: code in _EXPIRED_TOKEN_CODES, ErrorCategory.EXPIRED_TOKEN),
    (lambda code: code.startswith(_INVALID_PREFIXES), ErrorCategory.INVALID_REQUEST),
    (lambda code: code in _SERVICE_ERROR_CODES, ErrorCategory.SERVICE_ERROR),
]


def categorize_error(error: BaseException) -> ErrorCategory:
    """예외를 ErrorCategory로 분류

    AWS 에러 코드가 있으면 코드로, 없으면 botocore/내장 전송 예외 타입으로 판단합니다.
    어디에도 해당하지 않으면 UNKNOWN.
    """
    for matches, category in _ERROR_RULES:
        if matches(error):
            return category

    code = get_client_error_code(error)
    if code:
        for matches_code, category in _CODE_RULES:
            if matches_code(code):
                return category

    if isinstance(error, _TIMEOUT_TYPES):
        return ErrorCategory.TIMEOUT
    if isinstance(error, _TRANSPORT_TYPES):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


def get_error_code(error: BaseException) -> str:
    """AWS 에러 코드, 없으면 예외 클래스 이름"""
    return get_client_error_code(error) or type(error).__name__


def is_retryable(error: BaseException) -> bool:
    # 코드가 있는 응답은 코드로만 판단, 코드 없는 예외는 전송 계층 실패만 재시도
    code = get_client_error_code(error)
    if code is None:
        return isinstance(error, _TRANSPORT_TYPES)
    return code in RETRYABLE_ERROR_CODES
