"""
org_inventory/parallel/pagination.py - 커서 기반 페이지네이션 어댑터

모든 리소스 수집 함수가 같은 페이지네이션 계약을 공유하도록
`page_fn(cursor) -> (items, next_cursor)` 하나만 구현하면 되게 합니다.

boto3 API는 paginator_pages()로 page_fn을 만들어 넘깁니다.

Example:
    from org_inventory.parallel.pagination import fetch_all, paginator_pages

    org = global_client(session, "organizations")
    accounts = fetch_all(paginator_pages(org, "list_accounts"))

    iam = global_client(session, "iam")
    roles = fetch_all(paginator_pages(iam, "list_roles", PathPrefix="/ops/"))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from ..exceptions import PaginationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20


def fetch_all(page_fn: Callable[[Any], tuple[Iterable[T], Any]]) -> list[T]:
    """커서가 없어질 때까지 page_fn을 반복 호출하여 모든 항목을 이어붙임

    첫 호출은 cursor=None으로 시작하며, 반환된 next_cursor가 비어 있으면
    (None 또는 빈 문자열) 종료합니다. 동시성 없이 순차 실행합니다.

    Args:
        page_fn: cursor -> (items, next_cursor)

    Returns:
        페이지 순서대로 이어붙인 전체 항목

    Raises:
        PaginationError: API가 직전과 같은 커서를 다시 반환한 경우
    """
    items: list[T] = []
    cursor: Any = None
    pages = 0

    while True:
        page_items, next_cursor = page_fn(cursor)
        pages += 1
        if page_items:
            items.extend(page_items)

        if not next_cursor:
            break
        if next_cursor == cursor:
            raise PaginationError(next_cursor, pages)
        cursor = next_cursor

    logger.debug(f"페이지네이션 완료: {pages}페이지, {len(items)}개 항목")
    return items


def paginator_pages(
    client: Any,
    operation_name: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    **params: Any,
) -> Callable[[Any], tuple[list[Any], Any]]:
    """boto3 paginator로 page_fn을 만드는 헬퍼

    한 번의 page_fn 호출은 최대 page_size개 항목을 돌려주고, 다음 커서로
    botocore의 resume_token을 씁니다. 요청/응답 토큰 이름과 결과 키는
    서비스 모델에서 오므로 API마다 지정할 필요가 없습니다.

    Args:
        client: boto3 client
        operation_name: paginator 이름 (예: "list_accounts")
        page_size: page_fn 호출당 최대 항목 수 (Organizations 상한 20)
        **params: 매 요청에 전달할 파라미터 (예: ParentId)

    Returns:
        fetch_all에 넘길 page_fn
    """
    paginator = client.get_paginator(operation_name)

    def page_fn(cursor: Any) -> tuple[list[Any], Any]:
        config: dict[str, Any] = {"MaxItems": page_size, "PageSize": page_size}
        if cursor:
            config["StartingToken"] = cursor
        page_iterator = paginator.paginate(PaginationConfig=config, **params)
        result = page_iterator.build_full_result()

        items: list[Any] = []
        for key in page_iterator.result_keys:
            items.extend(result.get(key.expression) or [])
        return items, page_iterator.resume_token

    return page_fn
