"""
tests/parallel/test_pagination.py - org_inventory/parallel/pagination.py 테스트
"""

import pytest
from botocore.exceptions import ClientError

from org_inventory.exceptions import PaginationError
from org_inventory.parallel.pagination import fetch_all, paginator_pages


def pages_of(*pages):
    """[(items, next_cursor), ...]를 커서로 조회하는 page_fn"""
    calls = []

    def page_fn(cursor):
        calls.append(cursor)
        return pages[len(calls) - 1]

    page_fn.calls = calls
    return page_fn


class TestFetchAll:
    """fetch_all 테스트"""

    def test_concatenates_in_order(self):
        """10/10/5 -> 25개, 페이지 순서 유지"""
        page_fn = pages_of(
            (list(range(0, 10)), "c1"),
            (list(range(10, 20)), "c2"),
            (list(range(20, 25)), None),
        )

        assert fetch_all(page_fn) == list(range(25))
        assert page_fn.calls == [None, "c1", "c2"]

    def test_single_empty_page(self):
        assert fetch_all(pages_of(([], None))) == []

    def test_empty_string_cursor_ends(self):
        assert fetch_all(pages_of((["a"], ""))) == ["a"]

    def test_empty_page_with_cursor_continues(self):
        """빈 페이지라도 커서가 있으면 계속"""
        assert fetch_all(pages_of(([], "c1"), (["a"], None))) == ["a"]

    def test_repeated_cursor_raises(self):
        page_fn = pages_of((["a"], "same"), (["b"], "same"))

        with pytest.raises(PaginationError) as exc_info:
            fetch_all(page_fn)

        assert exc_info.value.cursor == "same"
        assert exc_info.value.pages == 2

    def test_page_error_propagates(self, client_error):
        def page_fn(cursor):
            raise client_error("AccessDenied")

        with pytest.raises(Exception) as exc_info:
            fetch_all(page_fn)

        assert exc_info.value.response["Error"]["Code"] == "AccessDenied"


def account(account_id, name):
    return {"Id": account_id, "Name": name, "Status": "ACTIVE"}


class TestPaginatorPages:
    """paginator_pages 테스트 (botocore Stubber)"""

    def test_follows_service_token(self, org_stub):
        """토큰 이름은 서비스 모델에서 (Organizations: NextToken)"""
        client, stubber = org_stub
        stubber.add_response(
            "list_accounts",
            {"Accounts": [account("111111111111", "a")], "NextToken": "t1"},
            {"MaxResults": 20},
        )
        stubber.add_response(
            "list_accounts",
            {"Accounts": [account("222222222222", "b")]},
            {"MaxResults": 20, "NextToken": "t1"},
        )

        result = fetch_all(paginator_pages(client, "list_accounts"))

        assert [a["Id"] for a in result] == ["111111111111", "222222222222"]
        stubber.assert_no_pending_responses()

    def test_page_boundary_resume_token(self, org_stub):
        """page_size에 도달하면 resume_token이 다음 커서"""
        client, stubber = org_stub
        stubber.add_response(
            "list_accounts",
            {"Accounts": [account("111111111111", "a")], "NextToken": "t1"},
            {"MaxResults": 1},
        )
        stubber.add_response(
            "list_accounts",
            {"Accounts": [account("222222222222", "b")]},
            {"MaxResults": 1, "NextToken": "t1"},
        )
        page_fn = paginator_pages(client, "list_accounts", page_size=1)

        first, cursor = page_fn(None)
        second, last_cursor = page_fn(cursor)

        assert [a["Id"] for a in first] == ["111111111111"]
        assert cursor
        assert [a["Id"] for a in second] == ["222222222222"]
        assert last_cursor is None

    def test_request_params_forwarded(self, org_stub):
        client, stubber = org_stub
        stubber.add_response(
            "list_organizational_units_for_parent",
            {"OrganizationalUnits": []},
            {"ParentId": "r-abcd", "MaxResults": 20},
        )

        assert fetch_all(paginator_pages(client, "list_organizational_units_for_parent", ParentId="r-abcd")) == []
        stubber.assert_no_pending_responses()

    def test_client_error_propagates(self, org_stub):
        client, stubber = org_stub
        stubber.add_client_error("list_roots", service_error_code="AccessDeniedException")

        with pytest.raises(ClientError) as exc_info:
            fetch_all(paginator_pages(client, "list_roots"))

        assert exc_info.value.response["Error"]["Code"] == "AccessDeniedException"
