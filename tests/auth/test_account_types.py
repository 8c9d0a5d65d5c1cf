"""
tests/auth/test_account_types.py - 인증 타입 테스트
"""

import pytest

from org_inventory.auth.types import (
    Account,
    AccountStatus,
    CredentialResolution,
    CredentialUnavailableError,
    DelegatedCredentials,
    IdentityResolutionError,
    ResolutionKind,
)
from org_inventory.exceptions import InventoryError


class TestAccountStatus:
    """AccountStatus.parse 테스트"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("ACTIVE", AccountStatus.ACTIVE),
            ("active", AccountStatus.ACTIVE),
            ("SUSPENDED", AccountStatus.SUSPENDED),
            ("CLOSED", AccountStatus.SUSPENDED),
            ("PENDING_CLOSURE", AccountStatus.PENDING),
            ("PENDING_ACTIVATION", AccountStatus.PENDING),
            ("SOMETHING_NEW", AccountStatus.OTHER),
            ("", AccountStatus.OTHER),
            (None, AccountStatus.OTHER),
        ],
    )
    def test_parse(self, raw, expected):
        """알 수 없는 값도 예외 없이 OTHER"""
        assert AccountStatus.parse(raw) is expected


class TestAccount:
    """Account 테스트"""

    def test_from_api_state(self):
        """신규 State 필드"""
        account = Account.from_api({"Id": "111111111111", "Name": "dev", "State": "ACTIVE"})

        assert account.id == "111111111111"
        assert account.name == "dev"
        assert account.is_active

    def test_from_api_legacy_status(self):
        """구 Status 필드"""
        account = Account.from_api({"Id": "111111111111", "Name": "old", "Status": "SUSPENDED"})

        assert account.status is AccountStatus.SUSPENDED
        assert not account.is_active

    def test_display_name(self):
        assert Account("111111111111", "dev").display_name == "dev (111111111111)"
        assert Account("111111111111").display_name == "111111111111"

    def test_hashable_and_frozen(self):
        account = Account("111111111111", "dev")
        assert {account, Account("111111111111", "dev")} == {account}
        with pytest.raises(AttributeError):
            account.name = "prod"  # type: ignore[misc]


class TestCredentialResolution:
    """CredentialResolution 생성자 테스트"""

    def test_ambient(self):
        r = CredentialResolution.ambient()
        assert r.kind is ResolutionKind.AMBIENT
        assert r.is_ambient and not r.is_delegated and not r.is_unavailable

    def test_delegated(self):
        creds = DelegatedCredentials.from_sts(
            {"AccessKeyId": "ASIAX", "SecretAccessKey": "s", "SessionToken": "t", "Expiration": None}
        )
        r = CredentialResolution.delegated(creds)

        assert r.is_delegated
        assert r.credentials.access_key == "ASIAX"

    def test_unavailable(self):
        r = CredentialResolution.unavailable("AccessDenied: nope")
        assert r.is_unavailable
        assert r.reason == "AccessDenied: nope"
        assert r.credentials is None


class TestAuthErrors:
    def test_hierarchy(self):
        assert issubclass(IdentityResolutionError, InventoryError)
        assert issubclass(CredentialUnavailableError, InventoryError)

    def test_unavailable_message(self):
        err = CredentialUnavailableError("111111111111", "AccessDenied")
        assert err.account_id == "111111111111"
        assert "AccessDenied" in str(err)
