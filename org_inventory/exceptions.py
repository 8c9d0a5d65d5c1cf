"""
org_inventory/exceptions.py - 예외 계층과 AWS 에러 코드 판정

    InventoryError
    ├── AuthError (org_inventory.auth.types)
    │   ├── IdentityResolutionError
    │   └── CredentialUnavailableError
    ├── SetupError        fan-out 시작 전 치명적 실패
    ├── ConfigError       잘못된 설정 값
    ├── APICallError      ClientError 래핑
    └── PaginationError   진행하지 않는 페이지 커서

호출자까지 예외가 올라오는 것은 fan-out 시작 전뿐입니다. 시작 후 단위 작업의 실패는
TaskError 데이터로 결과에 담깁니다.
"""

from __future__ import annotations

from typing import Any


class InventoryError(Exception):
    """org_inventory 예외의 공통 부모

    cause는 원인 예외, details는 to_dict()로 내보낼 부가 정보입니다.
    """

    def __init__(self, message: str, cause: Exception | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details: dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        return self.message if self.cause is None else f"{self.message}: {self.cause}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "cause": None if self.cause is None else str(self.cause),
            "details": self.details,
        }


class SetupError(InventoryError):
    """fan-out 전 단계 실패 (계정 목록, 조직 구조, 정책 파일 등)"""

    def __init__(self, stage: str, message: str, cause: Exception | None = None):
        super().__init__(f"준비 단계 실패 [{stage}]: {message}", cause, {"stage": stage})
        self.stage = stage


class ConfigError(InventoryError):
    def __init__(self, key: str, message: str, cause: Exception | None = None):
        super().__init__(f"설정 오류 [{key}]: {message}", cause, {"config_key": key})
        self.config_key = key


class PaginationError(InventoryError):
    """API가 직전 페이지와 같은 커서를 돌려준 경우"""

    def __init__(self, cursor: Any, pages: int):
        super().__init__(f"페이지네이션 커서가 반복됨 (page {pages}): {cursor!r}", details={"pages": pages})
        self.cursor = cursor
        self.pages = pages


def _error_info(error: BaseException) -> dict[str, Any]:
    # ClientError.response["Error"], 없으면 빈 dict
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return {}
    info = response.get("Error")
    return info if isinstance(info, dict) else {}


class APICallError(InventoryError):
    """서비스.작업 단위로 식별되는 AWS API 실패

    메시지 형식: "iam.get_role 실패 (NoSuchEntity): Role not found"
    """

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: str | None = None,
        error_message: str | None = None,
        cause: Exception | None = None,
    ):
        call = f"{service}.{operation}"
        headline = f"{call} 실패 ({error_code})" if error_code else call
        message = f"{headline}: {error_message}" if error_message else headline

        super().__init__(
            message,
            cause,
            {"service": service, "operation": operation, "error_code": error_code},
        )
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def from_client_error(cls, service: str, operation: str, client_error: Exception) -> APICallError:
        info = _error_info(client_error)
        return cls(service, operation, info.get("Code"), info.get("Message"), cause=client_error)


ACCESS_DENIED_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "UnauthorizedAccess",
        "UnauthorizedOperation",
        "AWSOrganizationsNotInUseException",
    }
)

THROTTLING_CODES = frozenset(
    {"Throttling", "ThrottlingException", "RequestLimitExceeded", "TooManyRequestsException", "RateExceeded"}
)

NOT_FOUND_CODES = frozenset(
    {
        "NoSuchEntity",
        "NoSuchEntityException",
        "AccountNotFoundException",
        "ResourceNotFoundException",
        "NotFoundException",
        "NoSuchBucket",
    }
)


def get_client_error_code(error: BaseException) -> str | None:
    """AWS 에러 코드 (ClientError, APICallError). 코드가 없으면 None"""
    if isinstance(error, APICallError):
        return error.error_code
    code = _error_info(error).get("Code")
    return str(code) if code else None


def is_access_denied(error: BaseException) -> bool:
    return get_client_error_code(error) in ACCESS_DENIED_CODES


def is_throttling(error: BaseException) -> bool:
    return get_client_error_code(error) in THROTTLING_CODES


def is_not_found(error: BaseException) -> bool:
    return get_client_error_code(error) in NOT_FOUND_CODES
