"""
org_inventory/auth/identity.py - 현재 자격증명의 계정 ID 캐시

실행당 기본(ambient) 자격증명은 하나이므로 sts:GetCallerIdentity는
인스턴스당 한 번만 호출합니다. 실패는 캐시하지 않으며, 호출하지 않는
명령에는 영향을 주지 않도록 생성 시점이 아닌 첫 조회 시점에 확인합니다.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from ..parallel.client import global_client
from .types import IdentityResolutionError

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)


class IdentityCache:
    """현재 계정 ID를 메모이즈하는 캐시

    Example:
        identity = IdentityCache(session)
        if account_id == identity.current_account_id():
            ...
    """

    def __init__(self, session: boto3.Session):
        self._session = session
        self._account_id: str | None = None
        self._arn: str | None = None
        self._lock = threading.Lock()

    def current_account_id(self) -> str:
        """현재 자격증명의 계정 ID 반환

        Raises:
            IdentityResolutionError: GetCallerIdentity 실패 또는 응답에 Account 없음
        """
        if self._account_id is not None:
            return self._account_id

        with self._lock:
            if self._account_id is None:
                self._lookup()
            return self._account_id  # type: ignore[return-value]

    @property
    def caller_arn(self) -> str | None:
        """조회된 호출자 ARN (조회 전이면 None)"""
        return self._arn

    def _lookup(self) -> None:
        try:
            sts = global_client(self._session, "sts")
            response = sts.get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"호출자 identity 조회 실패: {e}")
            raise IdentityResolutionError(cause=e) from e

        account_id = response.get("Account")
        if not account_id:
            raise IdentityResolutionError("GetCallerIdentity 응답에 Account가 없습니다")

        self._arn = response.get("Arn")
        self._account_id = str(account_id)
        logger.debug(f"현재 계정 확인: {self._account_id} ({self._arn})")

    def clear(self) -> None:
        """메모 초기화 (테스트용)"""
        with self._lock:
            self._account_id = None
            self._arn = None
