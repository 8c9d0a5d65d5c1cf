"""
org_inventory/auth/types.py - 인증 모듈의 핵심 타입 정의

포함 항목:
    - AccountStatus: Organizations 계정 상태 열거형
    - Account: 조직 계정 스냅샷 (실행당 한 번 로드, 이후 읽기 전용)
    - DelegatedCredentials: AssumeRole로 얻은 단기 자격증명
    - ResolutionKind / CredentialResolution: 자격증명 해석 결과 (Ambient / Delegated / Unavailable)
    - 에러 클래스: AuthError, IdentityResolutionError, CredentialUnavailableError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..exceptions import InventoryError


# =============================================================================
# Account
# =============================================================================


class AccountStatus(Enum):
    """조직 계정 상태

    Organizations API의 Status(구) / State(신) 값을 모두 수용합니다.
    알 수 없는 값은 OTHER로 매핑하며 예외를 던지지 않습니다.
    """

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING = "PENDING"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: str | None) -> AccountStatus:
        """API 응답 문자열을 AccountStatus로 변환"""
        if not value:
            return cls.OTHER
        normalized = str(value).strip().upper()
        if normalized == "ACTIVE":
            return cls.ACTIVE
        if normalized in ("SUSPENDED", "CLOSED"):
            return cls.SUSPENDED
        if normalized.startswith("PENDING"):
            return cls.PENDING
        return cls.OTHER

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Account:
    """조직 계정 스냅샷

    Attributes:
        id: AWS 계정 ID (12자리)
        name: 계정 이름
        status: 계정 상태 (ACTIVE인 계정만 fan-out 대상)
    """

    id: str
    name: str = ""
    status: AccountStatus = AccountStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.ACTIVE

    @property
    def display_name(self) -> str:
        """표시용 이름 "name (id)" """
        return f"{self.name} ({self.id})" if self.name else self.id

    @classmethod
    def from_api(cls, data: dict) -> Account:
        """Organizations ListAccounts/DescribeAccount 응답 항목에서 생성"""
        return cls(
            id=str(data.get("Id", "")),
            name=str(data.get("Name") or ""),
            status=AccountStatus.parse(data.get("State") or data.get("Status")),
        )


# =============================================================================
# Credentials
# =============================================================================


@dataclass(frozen=True)
class DelegatedCredentials:
    """AssumeRole로 얻은 단기 자격증명

    브로커 캐시만 소유하며 디스크에 저장하지 않습니다.
    repr에는 시크릿과 세션 토큰을 노출하지 않습니다.

    Attributes:
        access_key: 임시 Access Key ID
        secret_key: 임시 Secret Access Key
        session_token: 세션 토큰
        expires_approx: STS가 알려준 대략적인 만료 시각 (없을 수 있음)
    """

    access_key: str
    secret_key: str = field(repr=False)
    session_token: str = field(repr=False)
    expires_approx: datetime | None = None

    @classmethod
    def from_sts(cls, credentials: dict) -> DelegatedCredentials:
        """sts:AssumeRole 응답의 Credentials 블록에서 생성"""
        return cls(
            access_key=credentials["AccessKeyId"],
            secret_key=credentials["SecretAccessKey"],
            session_token=credentials["SessionToken"],
            expires_approx=credentials.get("Expiration"),
        )


class ResolutionKind(Enum):
    """자격증명 해석 결과 종류"""

    AMBIENT = "ambient"  # 호출자 자신의 계정 - 기본 자격증명 사용
    DELEGATED = "delegated"  # AssumeRole 성공
    UNAVAILABLE = "unavailable"  # AssumeRole 실패 - 경고 후 스킵


@dataclass(frozen=True)
class CredentialResolution:
    """Credential Broker의 해석 결과

    직접 생성하지 말고 ambient() / delegated() / unavailable() 생성자를 사용하세요.
    """

    kind: ResolutionKind
    credentials: DelegatedCredentials | None = None
    reason: str | None = None

    @classmethod
    def ambient(cls) -> CredentialResolution:
        return cls(ResolutionKind.AMBIENT)

    @classmethod
    def delegated(cls, credentials: DelegatedCredentials) -> CredentialResolution:
        return cls(ResolutionKind.DELEGATED, credentials=credentials)

    @classmethod
    def unavailable(cls, reason: str) -> CredentialResolution:
        return cls(ResolutionKind.UNAVAILABLE, reason=reason)

    @property
    def is_ambient(self) -> bool:
        return self.kind is ResolutionKind.AMBIENT

    @property
    def is_delegated(self) -> bool:
        return self.kind is ResolutionKind.DELEGATED

    @property
    def is_unavailable(self) -> bool:
        return self.kind is ResolutionKind.UNAVAILABLE


# =============================================================================
# Error Classes
# =============================================================================


class AuthError(InventoryError):
    """인증 관련 기본 에러 클래스"""


class IdentityResolutionError(AuthError):
    """현재 자격증명의 계정 ID(sts:GetCallerIdentity)를 확인할 수 없을 때 발생

    같은 계정 판별이 필요한 호출자(Credential Broker)에게만 치명적입니다.
    """

    def __init__(self, message: str = "현재 계정 ID를 확인할 수 없습니다", cause: Exception | None = None):
        super().__init__(message, cause)


class CredentialUnavailableError(AuthError):
    """Unavailable 해석 결과로 세션을 만들려고 할 때 발생

    Attributes:
        account_id: 대상 계정 ID
        reason: AssumeRole 실패 사유
    """

    def __init__(self, account_id: str, reason: str | None = None):
        super().__init__(f"계정 {account_id}의 자격증명을 사용할 수 없습니다: {reason or '알 수 없음'}")
        self.account_id = account_id
        self.reason = reason
        self.details["account_id"] = account_id
