"""
org_inventory/auth/broker.py - 교차 계정 Credential Broker

대상 계정과 역할 이름을 받아 다음 중 하나를 반환합니다.
- Ambient: 대상 계정이 호출자 자신의 계정 (AssumeRole 생략)
- Delegated: AssumeRole로 얻은 단기 자격증명 (계정별 캐시)
- Unavailable: AssumeRole 실패 (권한 없음, 역할 없음, 쓰로틀링 등)

대규모 조직에서는 모든 계정이 역할을 허용하지 않으므로 AssumeRole 실패는
예상 가능한 계정 단위 상황입니다. 예외로 던지지 않고 경고 로그 후
Unavailable로 변환합니다.

Example:
    broker = CredentialBroker(boto3.Session())
    resolution = broker.resolve("111111111111", "OrganizationAccountAccessRole")
    if not resolution.is_unavailable:
        session = broker.session_for(resolution, region="us-east-1")
"""

from __future__ import annotations

import logging
import secrets
import threading
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import settings
from ..exceptions import get_client_error_code
from ..parallel.client import global_client
from .cache import AccountCredentialCache
from .identity import IdentityCache
from .types import CredentialResolution, CredentialUnavailableError, DelegatedCredentials

logger = logging.getLogger(__name__)

# STS RoleSessionName 최대 길이
MAX_SESSION_NAME_LENGTH = 64


def build_role_arn(account_id: str, role_name: str, partition: str = "aws") -> str:
    """대상 역할 ARN 생성

    role_name에 경로가 포함되어 있으면(예: "ops/ReadOnly") 그대로 사용합니다.
    """
    return f"arn:{partition}:iam::{account_id}:role/{role_name.lstrip('/')}"


def new_session_name(prefix: str) -> str:
    """감사 추적용 세션 이름 생성

    밀리초 타임스탬프와 난수를 붙여 호출마다 다른 이름을 만듭니다.
    """
    suffix = f"-{int(time.time() * 1000)}-{secrets.token_hex(4)}"
    return prefix[: MAX_SESSION_NAME_LENGTH - len(suffix)] + suffix


class CredentialBroker:
    """계정별 위임 자격증명 브로커

    실행(run)당 하나를 만들어 모든 fan-out 단위와 Principal 검증기가 공유합니다.
    캐시는 계정 ID 키 기반 write-once이며, 같은 계정의 동시 첫 요청은 직렬화되어
    계정당 AssumeRole 호출은 실행 전체에서 최대 한 번입니다.

    Attributes:
        session: 기본(ambient) 자격증명을 가진 boto3 Session
        identity: 현재 계정 ID 캐시
        duration_seconds: AssumeRole DurationSeconds
        session_name_prefix: RoleSessionName 접두사
        partition: ARN 파티션
    """

    def __init__(
        self,
        session: boto3.Session,
        identity: IdentityCache | None = None,
        duration_seconds: int | None = None,
        session_name_prefix: str | None = None,
        partition: str = "aws",
    ):
        self.session = session
        self.identity = identity or IdentityCache(session)
        self.duration_seconds = duration_seconds or settings.SESSION_DURATION_SECONDS
        self.session_name_prefix = session_name_prefix or settings.SESSION_NAME_PREFIX
        self.partition = partition
        self._cache: AccountCredentialCache[CredentialResolution] = AccountCredentialCache()
        self._sts = None
        self._sts_lock = threading.Lock()

    def prime(self) -> str:
        """현재 계정 ID를 미리 확인 (setup 단계용)

        Raises:
            IdentityResolutionError: 현재 계정 ID를 확인할 수 없는 경우
        """
        return self.identity.current_account_id()

    def resolve(self, account_id: str, role_name: str) -> CredentialResolution:
        """대상 계정의 자격증명 해석

        Args:
            account_id: 대상 계정 ID
            role_name: Assume할 역할 이름 (현재 계정이면 무시)

        Returns:
            CredentialResolution

        Raises:
            IdentityResolutionError: 현재 계정 ID를 확인할 수 없는 경우
        """
        if account_id == self.identity.current_account_id():
            logger.debug(f"계정 {account_id}는 현재 계정 - 기본 자격증명 사용")
            return CredentialResolution.ambient()

        # Unavailable도 실행 끝까지 캐시. 일시적 쓰로틀링은 STS client의 adaptive 재시도가
        # 먼저 흡수하므로 여기서 다시 시도하지 않음 (계정당 AssumeRole 최대 1회)
        return self._cache.get_or_create(account_id, lambda: self._assume(account_id, role_name))

    def _assume(self, account_id: str, role_name: str) -> CredentialResolution:
        role_arn = build_role_arn(account_id, role_name, self.partition)
        session_name = new_session_name(self.session_name_prefix)
        logger.info(f"AssumeRole 시도: {role_arn} (session={session_name})")

        try:
            response = self._sts_client().assume_role(
                RoleArn=role_arn,
                RoleSessionName=session_name,
                DurationSeconds=self.duration_seconds,
            )
        except ClientError as e:
            code = get_client_error_code(e) or "ClientError"
            logger.warning(f"계정 {account_id} AssumeRole 실패 ({code}): {e}")
            return CredentialResolution.unavailable(f"{code}: {e}")
        except BotoCoreError as e:
            logger.warning(f"계정 {account_id} AssumeRole 실패: {e}")
            return CredentialResolution.unavailable(str(e))

        credentials = response.get("Credentials")
        if not credentials:
            logger.warning(f"계정 {account_id} AssumeRole 응답에 Credentials 없음")
            return CredentialResolution.unavailable(f"역할 {role_name}에 대한 자격증명이 반환되지 않음")

        return CredentialResolution.delegated(DelegatedCredentials.from_sts(credentials))

    def _sts_client(self):
        # client 생성은 세션 단위로 직렬화, 생성된 client는 스레드 간 공유
        with self._sts_lock:
            if self._sts is None:
                self._sts = global_client(self.session, "sts")
            return self._sts

    def session_for(self, resolution: CredentialResolution, region: str | None = None, account_id: str = "") -> boto3.Session:
        """해석 결과로 boto3 Session 생성

        Args:
            resolution: resolve() 결과
            region: 세션 기본 리전
            account_id: 에러 메시지용 계정 ID

        Raises:
            CredentialUnavailableError: Unavailable 결과인 경우
        """
        if resolution.is_unavailable or (resolution.is_delegated and resolution.credentials is None):
            raise CredentialUnavailableError(account_id, resolution.reason)

        if resolution.is_ambient:
            credentials = self.session.get_credentials()
            if credentials is None:
                return boto3.Session(region_name=region)
            frozen = credentials.get_frozen_credentials()
            return boto3.Session(
                aws_access_key_id=frozen.access_key,
                aws_secret_access_key=frozen.secret_key,
                aws_session_token=frozen.token,
                region_name=region,
            )

        creds = resolution.credentials
        return boto3.Session(
            aws_access_key_id=creds.access_key,
            aws_secret_access_key=creds.secret_key,
            aws_session_token=creds.session_token,
            region_name=region,
        )

    def cached_accounts(self) -> list[str]:
        """AssumeRole 결과가 캐시된 계정 ID 목록"""
        return self._cache.keys()

    def clear(self) -> None:
        """캐시 초기화 (테스트용)"""
        self._cache.clear()
        self.identity.clear()
