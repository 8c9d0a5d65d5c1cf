"""
org_inventory/policy/verify.py - Principal 존재 검증

검증 규칙:
- WILDCARD / SERVICE / CLOUDFRONT_OAI / KNOWN_SERVICE_ARN: 항상 존재 (네트워크 호출 없음)
- AWS_ACCOUNT: 로드된 조직 계정 집합에 포함되는지 확인 (네트워크 호출 없음)
- IAM_USER / IAM_ROLE / IAM_GROUP:
    1. 참조 계정이 조직에 있고 ACTIVE여야 함
    2. 교차 계정 검증이 켜져 있고 현재 계정이 아니면 Credential Broker로 자격증명 획득
    3. get_user / get_role / get_group으로 존재 확인
    4. NoSuchEntity는 exists=False + error 없음, 그 밖의 실패는 exists=False + error
- UNKNOWN_IAM: 계정 확인 후 "지원하지 않는 IAM 리소스 타입" 에러
- OPAQUE: 인식할 수 없는 형식 에러

VerificationResult.error가 None이면 예상된 결과(존재/부재), 값이 있으면 조회 자체가
실패한 것입니다. 호출자는 이 둘을 구분해서 보여줄 수 있습니다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..auth.cache import AccountCredentialCache
from ..auth.types import Account, CredentialUnavailableError
from ..config import settings
from ..parallel.decorators import get_error_code
from .iam import IamEntityChecker
from .principals import Principal, PrincipalKind

if TYPE_CHECKING:
    from ..auth.broker import CredentialBroker

logger = logging.getLogger(__name__)

# 구조만으로 존재가 자명한 종류
SELF_EVIDENT_KINDS = frozenset(
    {
        PrincipalKind.WILDCARD,
        PrincipalKind.SERVICE,
        PrincipalKind.CLOUDFRONT_OAI,
        PrincipalKind.KNOWN_SERVICE_ARN,
    }
)

ERROR_ACCOUNT_NOT_IN_ORG = "Account not found in organization"
ERROR_UNSUPPORTED_IAM = "Unsupported IAM resource type"
ERROR_UNRECOGNIZED = "Unrecognized principal format"
ERROR_INVALID_IAM_RESOURCE = "Invalid IAM resource format"

_AMBIENT_KEY = "ambient"


@dataclass(frozen=True)
class CrossAccountConfig:
    """교차 계정 검증 설정

    Attributes:
        enabled: True면 다른 계정의 IAM 엔티티를 해당 계정 역할로 조회
        role_name: 대상 계정에서 Assume할 역할 이름
    """

    enabled: bool = False
    role_name: str = field(default_factory=lambda: settings.DEFAULT_ROLE_NAME)


@dataclass(frozen=True)
class VerificationResult:
    """Principal 검증 결과

    Attributes:
        principal: 검증한 Principal
        exists: 존재 여부
        error: 조회 실패 사유 (None이면 예상된 결과)
    """

    principal: Principal
    exists: bool
    error: str | None = None

    @property
    def kind(self) -> PrincipalKind:
        return self.principal.kind

    @property
    def account_id(self) -> str | None:
        return self.principal.account_id

    @property
    def lookup_failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "principal": self.principal.raw,
            "type": self.principal.display or self.principal.principal_type,
            "kind": self.kind.value,
            "exists": self.exists,
            "account_id": self.account_id,
            "error": self.error,
        }


class PrincipalVerifier:
    """Principal 존재 검증기

    계정 자격증명은 Credential Broker의 계정별 캐시를 그대로 사용하고,
    계정별 IAM 조회기는 이 검증기가 한 번만 만듭니다.

    Example:
        verifier = PrincipalVerifier(broker, accounts, CrossAccountConfig(enabled=True))
        results = verifier.verify_all(extract_principals(policy))
    """

    def __init__(
        self,
        broker: CredentialBroker,
        accounts: Iterable[Account],
        cross_account: CrossAccountConfig | None = None,
    ):
        self.broker = broker
        self.accounts: dict[str, Account] = {}
        for account in accounts:
            self.accounts.setdefault(account.id, account)
        self.cross_account = cross_account or CrossAccountConfig()
        self._checkers: AccountCredentialCache[IamEntityChecker] = AccountCredentialCache()

    def verify(self, principal: Principal) -> VerificationResult:
        """Principal 하나 검증

        Raises:
            IdentityResolutionError: 교차 계정 검증 중 현재 계정 ID를 확인할 수 없는 경우
        """
        kind = principal.kind

        if kind in SELF_EVIDENT_KINDS:
            return VerificationResult(principal, exists=True)

        if kind is PrincipalKind.AWS_ACCOUNT:
            return VerificationResult(principal, exists=principal.account_id in self.accounts)

        if kind is PrincipalKind.OPAQUE:
            return VerificationResult(principal, exists=False, error=ERROR_UNRECOGNIZED)

        # IAM 엔티티 / UNKNOWN_IAM: 계정 확인
        account_id = principal.account_id or ""
        account = self.accounts.get(account_id)
        if account is None:
            return VerificationResult(principal, exists=False, error=ERROR_ACCOUNT_NOT_IN_ORG)
        if not account.is_active:
            return VerificationResult(principal, exists=False, error=f"Account status is {account.status.value}")

        if kind is PrincipalKind.UNKNOWN_IAM:
            label = (principal.arn.resource_type or principal.arn.resource_id) if principal.arn else principal.raw
            return VerificationResult(principal, exists=False, error=f"{ERROR_UNSUPPORTED_IAM}: {label}")

        name = principal.arn.resource_id if principal.arn else ""
        if not name.strip("/"):
            return VerificationResult(principal, exists=False, error=ERROR_INVALID_IAM_RESOURCE)

        try:
            checker = self._checker_for(account_id)
        except CredentialUnavailableError as e:
            return VerificationResult(principal, exists=False, error=f"Could not assume role in account {account_id}: {e}")

        try:
            exists = checker.exists(kind, name)
        except Exception as e:
            logger.warning(f"{principal.raw} 조회 실패: {get_error_code(e)}")
            return VerificationResult(principal, exists=False, error=f"{get_error_code(e)}: {e}")

        return VerificationResult(principal, exists=exists)

    def verify_all(self, principals: Iterable[Principal]) -> list[VerificationResult]:
        """서로 다른 Principal마다 한 번씩 검증 (처음 나온 순서 유지)"""
        results: dict[tuple[str, str], VerificationResult] = {}
        for principal in principals:
            if principal.key in results:
                continue
            results[principal.key] = self.verify(principal)

        not_found = sum(1 for r in results.values() if not r.exists and r.error is None)
        failed = sum(1 for r in results.values() if r.error is not None)
        logger.info(f"Principal 검증 완료: {len(results)}개 (없음 {not_found}, 조회 실패 {failed})")
        return list(results.values())

    def _checker_for(self, account_id: str) -> IamEntityChecker:
        """계정의 IAM 조회기 (계정당 하나)

        Raises:
            CredentialUnavailableError: 대상 계정 역할을 Assume할 수 없는 경우
        """
        if not self.cross_account.enabled:
            return self._checkers.get_or_create(_AMBIENT_KEY, lambda: IamEntityChecker(self.broker.session))

        resolution = self.broker.resolve(account_id, self.cross_account.role_name)
        if resolution.is_ambient:
            return self._checkers.get_or_create(_AMBIENT_KEY, lambda: IamEntityChecker(self.broker.session))

        return self._checkers.get_or_create(
            account_id,
            lambda: IamEntityChecker(self.broker.session_for(resolution, settings.GLOBAL_SERVICE_REGION, account_id)),
        )
