"""
tests/auth/test_identity.py - IdentityCache 테스트
"""

import pytest
from botocore.exceptions import EndpointConnectionError

from org_inventory.auth.identity import IdentityCache
from org_inventory.auth.types import IdentityResolutionError


class TestIdentityCache:
    """IdentityCache 테스트"""

    def test_no_call_at_construction(self, base_session, sts_client):
        """생성 시점에는 STS를 호출하지 않음"""
        IdentityCache(base_session)
        sts_client.get_caller_identity.assert_not_called()

    def test_current_account_id(self, base_session):
        """GetCallerIdentity 결과의 Account 반환"""
        identity = IdentityCache(base_session)

        assert identity.current_account_id() == "123456789012"
        assert identity.caller_arn == "arn:aws:iam::123456789012:user/test-user"

    def test_memoized(self, base_session, sts_client):
        """여러 번 조회해도 STS 호출은 1회"""
        identity = IdentityCache(base_session)

        for _ in range(5):
            identity.current_account_id()

        assert sts_client.get_caller_identity.call_count == 1

    def test_client_error_raises(self, base_session, sts_client, client_error):
        """ClientError는 IdentityResolutionError로 변환"""
        sts_client.get_caller_identity.side_effect = client_error("ExpiredToken", "token expired")
        identity = IdentityCache(base_session)

        with pytest.raises(IdentityResolutionError) as exc_info:
            identity.current_account_id()

        assert exc_info.value.cause is not None

    def test_network_error_raises(self, base_session, sts_client):
        """BotoCoreError도 IdentityResolutionError로 변환"""
        sts_client.get_caller_identity.side_effect = EndpointConnectionError(endpoint_url="https://sts.amazonaws.com")
        identity = IdentityCache(base_session)

        with pytest.raises(IdentityResolutionError):
            identity.current_account_id()

    def test_missing_account_raises(self, base_session, sts_client):
        """응답에 Account가 없으면 실패"""
        sts_client.get_caller_identity.return_value = {"Arn": "arn:aws:iam::123456789012:user/x"}
        identity = IdentityCache(base_session)

        with pytest.raises(IdentityResolutionError):
            identity.current_account_id()

    def test_failure_not_cached(self, base_session, sts_client, client_error):
        """실패는 캐시하지 않고 다음 호출에서 재시도"""
        good = sts_client.get_caller_identity.return_value
        sts_client.get_caller_identity.side_effect = [client_error("Throttling"), good]
        identity = IdentityCache(base_session)

        with pytest.raises(IdentityResolutionError):
            identity.current_account_id()

        assert identity.current_account_id() == "123456789012"
        assert sts_client.get_caller_identity.call_count == 2

    def test_clear(self, base_session, sts_client):
        """clear 후에는 다시 조회"""
        identity = IdentityCache(base_session)
        identity.current_account_id()
        identity.clear()

        assert identity.caller_arn is None
        identity.current_account_id()
        assert sts_client.get_caller_identity.call_count == 2
