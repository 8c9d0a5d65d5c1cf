"""
org_inventory/commands.py - 명령 단위 진입점

출력 형식과 CLI 인자 처리는 호출자의 몫이며, 여기서는 명령 하나의 흐름만 묶습니다.

1. setup: 계정 로드, 현재 계정 확인, 정책 파일 로드 (실패 시 예외 전파)
2. 실행: fan-out 또는 Principal 검증 (단위 실패는 결과 데이터로 기록)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from .auth.broker import CredentialBroker
from .auth.types import Account, CredentialResolution
from .organization import load_accounts
from .parallel.executor import FanOutExecutor, ParallelConfig
from .parallel.types import FanOutResult
from .policy.principals import extract_principals, load_policy_document
from .policy.verify import CrossAccountConfig, PrincipalVerifier, VerificationResult

if TYPE_CHECKING:
    import boto3

    from .progress import ParallelTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")


def collect_inventory(
    session: boto3.Session,
    regions: Iterable[str],
    fetch: Callable[[Account, str, CredentialResolution], Iterable[T] | None],
    *,
    account_id: str | None = None,
    role_name: str | None = None,
    config: ParallelConfig | None = None,
    progress_tracker: ParallelTracker | None = None,
    broker: CredentialBroker | None = None,
) -> FanOutResult[T]:
    """조직 계정(또는 지정 계정) x 리전 인벤토리 수집

    Args:
        session: 관리 계정 자격증명의 boto3 Session
        regions: 대상 리전
        fetch: (account, region, resolution) -> 레코드 iterable
        account_id: 지정하면 해당 계정만 수집
        role_name: 대상 계정에서 Assume할 역할 이름
        config: 병렬 실행 설정
        progress_tracker: 진행 상황 추적기
        broker: 재사용할 Credential Broker (None이면 새로 생성)

    Raises:
        SetupError: 계정 목록을 가져올 수 없는 경우
        IdentityResolutionError: 현재 계정 ID를 확인할 수 없는 경우
    """
    accounts = load_accounts(session, account_id)
    logger.info(f"대상 계정 {len(accounts)}개 로드")

    broker = broker or CredentialBroker(session)
    executor = FanOutExecutor(broker, role_name, config)
    return executor.run(accounts, regions, fetch, progress_tracker=progress_tracker)


def verify_policy_file(
    session: boto3.Session,
    path: str | Path,
    *,
    cross_account: CrossAccountConfig | None = None,
    broker: CredentialBroker | None = None,
) -> list[VerificationResult]:
    """정책 파일의 Principal 존재 검증

    Args:
        session: 관리 계정 자격증명의 boto3 Session
        path: JSON 정책 파일 경로
        cross_account: 교차 계정 검증 설정 (None이면 비활성)
        broker: 재사용할 Credential Broker (None이면 새로 생성)

    Returns:
        서로 다른 Principal마다 하나의 VerificationResult (정책에 나온 순서)

    Raises:
        SetupError: 정책 파일이 없거나 형식이 잘못됐거나, 계정 목록을 가져올 수 없는 경우
        IdentityResolutionError: 교차 계정 검증에서 현재 계정 ID를 확인할 수 없는 경우
    """
    policy = load_policy_document(path)
    principals = extract_principals(policy)
    if not principals:
        logger.info("정책에 Principal이 없습니다")
        return []

    logger.info(f"정책에서 Principal {len(principals)}개 추출")
    accounts = load_accounts(session)

    broker = broker or CredentialBroker(session)
    cross_account = cross_account or CrossAccountConfig()
    if cross_account.enabled:
        broker.prime()

    verifier = PrincipalVerifier(broker, accounts, cross_account)
    return verifier.verify_all(principals)
