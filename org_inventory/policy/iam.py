"""
org_inventory/policy/iam.py - IAM 엔티티 존재 확인

get_user / get_role / get_group 호출로 IAM 사용자, 역할, 그룹의 존재를 확인합니다.
경로가 포함된 이름("/division/app/ReadOnly")은 마지막 세그먼트만 조회 키로 사용합니다.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

from ..exceptions import APICallError, is_not_found
from ..parallel.client import global_client
from .principals import PrincipalKind

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)

# PrincipalKind -> (API 메서드, 파라미터 이름)
_LOOKUPS: dict[PrincipalKind, tuple[str, str]] = {
    PrincipalKind.IAM_USER: ("get_user", "UserName"),
    PrincipalKind.IAM_ROLE: ("get_role", "RoleName"),
    PrincipalKind.IAM_GROUP: ("get_group", "GroupName"),
}


def terminal_name(name: str) -> str:
    """경로의 마지막 세그먼트 ("ops/ReadOnly" -> "ReadOnly")"""
    return name.rstrip("/").rsplit("/", 1)[-1]


class IamEntityChecker:
    """한 계정의 IAM 엔티티 존재 확인기

    Example:
        checker = IamEntityChecker(session)
        checker.exists(PrincipalKind.IAM_ROLE, "ops/ReadOnly")
    """

    def __init__(self, session: boto3.Session):
        self._session = session
        self._client: Any = None
        self._lock = threading.Lock()

    @property
    def client(self) -> Any:
        with self._lock:
            if self._client is None:
                # IAM은 글로벌 서비스
                self._client = global_client(self._session, "iam")
            return self._client

    def exists(self, kind: PrincipalKind, name: str) -> bool:
        """IAM 엔티티 존재 여부

        Returns:
            존재하면 True, NoSuchEntity면 False

        Raises:
            ValueError: IAM 사용자/역할/그룹이 아닌 kind
            APICallError: NoSuchEntity 이외의 API 실패 (권한 없음, 쓰로틀링 등)
        """
        if kind not in _LOOKUPS:
            raise ValueError(f"IAM 엔티티 종류가 아닙니다: {kind}")

        method, param = _LOOKUPS[kind]
        key = terminal_name(name)
        try:
            getattr(self.client, method)(**{param: key})
        except ClientError as e:
            if is_not_found(e):
                logger.debug(f"IAM {kind.value} 없음: {key}")
                return False
            raise APICallError.from_client_error("iam", method, e) from e
        return True
