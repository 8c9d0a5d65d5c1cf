"""
tests/test_exceptions.py - 예외 계층과 에러 분류 헬퍼 테스트
"""

from org_inventory.exceptions import (
    APICallError,
    ConfigError,
    InventoryError,
    PaginationError,
    SetupError,
    get_client_error_code,
    is_access_denied,
    is_not_found,
    is_throttling,
)


class TestInventoryError:
    def test_str_with_cause(self):
        err = InventoryError("실패", cause=ValueError("원인"))

        assert str(err) == "실패: 원인"
        assert err.to_dict() == {
            "error_type": "InventoryError",
            "message": "실패",
            "cause": "원인",
            "details": {},
        }

    def test_subclasses(self):
        for cls in (SetupError, ConfigError, PaginationError, APICallError):
            assert issubclass(cls, InventoryError)


class TestSetupError:
    def test_stage(self):
        err = SetupError("accounts", "계정 없음")

        assert err.stage == "accounts"
        assert err.details["stage"] == "accounts"
        assert "[accounts]" in str(err)


class TestApiCallError:
    def test_from_client_error(self, client_error):
        err = APICallError.from_client_error("iam", "get_role", client_error("NoSuchEntity", "missing"))

        assert err.error_code == "NoSuchEntity"
        assert err.error_message == "missing"
        assert str(err).startswith("iam.get_role 실패 (NoSuchEntity): missing")
        assert is_not_found(err)


class TestErrorCodeHelpers:
    def test_client_error_code(self, client_error):
        assert get_client_error_code(client_error("Throttling")) == "Throttling"
        assert get_client_error_code(ValueError("x")) is None

    def test_predicates(self, client_error):
        assert is_access_denied(client_error("AccessDenied"))
        assert is_throttling(client_error("RequestLimitExceeded"))
        assert is_not_found(client_error("AccountNotFoundException"))
        assert not is_access_denied(ValueError("AccessDenied"))

    def test_pagination_error(self):
        err = PaginationError("tok", 3)

        assert err.cursor == "tok"
        assert err.details["pages"] == 3
