"""
org_inventory/organization.py - AWS Organizations 계정 조회

fan-out 대상 계정 목록을 실행 시작 시 한 번 로드합니다. 로드한 Account 목록은
이후 읽기 전용으로 공유되며, 계정 목록을 못 가져오면 fan-out 전에 실행을 중단합니다.

조직 구조(루트, OU, 계정별 부모) 조회도 함께 제공합니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from .auth.types import Account
from .config import settings
from .exceptions import SetupError, is_not_found
from .parallel.client import global_client
from .parallel.errors import LOOKUP_FAILED, ErrorCollector, ErrorSeverity, try_or_default
from .parallel.pagination import fetch_all, paginator_pages

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)


def _org_client(session: boto3.Session) -> Any:
    # Organizations는 글로벌 서비스 (us-east-1 엔드포인트)
    return global_client(session, "organizations")


def list_accounts(session: boto3.Session) -> list[Account]:
    """조직의 모든 계정 조회 (페이지네이션 포함)

    Raises:
        ClientError: API 호출 실패 (호출자가 처리)
    """
    org = _org_client(session)
    items = fetch_all(paginator_pages(org, "list_accounts"))
    accounts = [Account.from_api(item) for item in items]
    logger.debug(f"조직 계정 {len(accounts)}개 조회")
    return accounts


def describe_account(session: boto3.Session, account_id: str) -> Account | None:
    """단일 계정 조회

    Returns:
        Account, 계정이 조직에 없으면 None

    Raises:
        ClientError: AccountNotFoundException 이외의 API 실패
    """
    org = _org_client(session)
    try:
        response = org.describe_account(AccountId=account_id)
    except ClientError as e:
        if is_not_found(e):
            logger.debug(f"계정 {account_id} 없음")
            return None
        raise

    data = response.get("Account")
    return Account.from_api(data) if data else None


def load_accounts(session: boto3.Session, account_id: str | None = None) -> list[Account]:
    """실행 대상 계정 로드 (setup 단계)

    Args:
        session: 관리 계정 자격증명의 boto3 Session
        account_id: 지정하면 해당 계정 하나만, None이면 조직 전체

    Returns:
        Account 목록 (비활성 계정 포함, 필터링은 fan-out 실행기의 몫)

    Raises:
        SetupError: 계정 목록을 가져올 수 없거나 지정한 계정이 없는 경우
    """
    try:
        if account_id:
            account = describe_account(session, account_id)
            if account is None:
                raise SetupError("accounts", f"조직에서 계정 {account_id}를 찾을 수 없습니다")
            return [account]
        return list_accounts(session)
    except (ClientError, BotoCoreError) as e:
        raise SetupError("accounts", "조직 계정 목록을 가져올 수 없습니다", cause=e) from e


# =============================================================================
# 조직 구조
# =============================================================================


@dataclass(frozen=True)
class OrganizationalUnit:
    """조직 단위 (OU)

    Attributes:
        id: OU ID (ou-xxxx-xxxxxxxx)
        name: OU 이름
        parent_id: 부모 ID (루트 또는 상위 OU)
    """

    id: str
    name: str
    parent_id: str


@dataclass(frozen=True)
class ParentInfo:
    """계정의 직계 부모"""

    id: str
    type: str  # ROOT | ORGANIZATIONAL_UNIT


def get_root_id(session: boto3.Session) -> str:
    """조직 루트 ID 조회

    Raises:
        SetupError: 루트가 없거나 조회 실패
    """
    org = _org_client(session)
    try:
        roots = fetch_all(paginator_pages(org, "list_roots"))
    except (ClientError, BotoCoreError) as e:
        raise SetupError("organization", "조직 루트를 조회할 수 없습니다", cause=e) from e

    if not roots or not roots[0].get("Id"):
        raise SetupError("organization", "조직 루트가 없습니다")
    return roots[0]["Id"]


def list_organizational_units(session: boto3.Session, parent_id: str) -> list[OrganizationalUnit]:
    """parent_id 아래의 모든 OU를 재귀 조회 (깊이 우선, 부모가 자식보다 먼저)"""
    org = _org_client(session)
    result: list[OrganizationalUnit] = []

    def walk(pid: str) -> None:
        children = fetch_all(paginator_pages(org, "list_organizational_units_for_parent", ParentId=pid))
        for ou in children:
            unit = OrganizationalUnit(id=ou["Id"], name=ou.get("Name", ""), parent_id=pid)
            result.append(unit)
            walk(unit.id)

    walk(parent_id)
    return result


def get_account_parents(
    session: boto3.Session,
    accounts: list[Account],
    collector: ErrorCollector | None = None,
) -> dict[str, Any]:
    """계정별 직계 부모 조회

    개별 계정의 조회 실패는 전체를 중단하지 않고 LOOKUP_FAILED로 기록합니다.
    부모가 없으면 None입니다. 실패 내역은 collector에 남습니다.

    Returns:
        계정 ID -> ParentInfo | None | LOOKUP_FAILED
    """
    org = _org_client(session)
    collector = collector or ErrorCollector("organizations")

    def first_parent(child_id: str) -> ParentInfo | None:
        items = org.list_parents(ChildId=child_id).get("Parents", [])
        return ParentInfo(id=items[0]["Id"], type=items[0]["Type"]) if items else None

    return {
        account.id: try_or_default(
            lambda child_id=account.id: first_parent(child_id),
            default=LOOKUP_FAILED,
            collector=collector,
            account_id=account.id,
            region=settings.GLOBAL_SERVICE_REGION,
            operation="list_parents",
            severity=ErrorSeverity.WARNING,
        )
        for account in accounts
    }
