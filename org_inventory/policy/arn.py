"""
org_inventory/policy/arn.py - ARN 파서

ARN 형식: arn:{partition}:{service}:{region}:{account}:{resource}

resource 부분은 콜론을 포함할 수 있으므로 앞의 다섯 구분자만 나눕니다.
resource는 "type/path/name" 또는 "type:name" 형태이며, 구분자가 없으면
resource_type은 빈 문자열입니다 (예: IAM root, S3 버킷).

Example:
    arn = parse_arn("arn:aws:iam::123456789012:role/ops/ReadOnly")
    arn.account        # "123456789012"
    arn.resource_type  # "role"
    arn.resource_id    # "ops/ReadOnly"
    arn.name           # "ReadOnly"
    arn.path           # "/ops/"
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..exceptions import InventoryError

ARN_SEGMENTS = 6
ACCOUNT_ID_PATTERN = re.compile(r"^\d{12}$")


class ArnParseError(InventoryError):
    """ARN 형식이 아닐 때 발생"""

    def __init__(self, value: str, reason: str):
        super().__init__(f"잘못된 ARN ({reason}): {value!r}")
        self.value = value
        self.reason = reason


def is_account_id(value: str | None) -> bool:
    """12자리 숫자 계정 ID인지 확인"""
    return bool(value) and ACCOUNT_ID_PATTERN.match(value or "") is not None


@dataclass(frozen=True)
class Arn:
    """파싱된 ARN"""

    partition: str
    service: str
    region: str
    account: str
    resource: str

    @property
    def resource_type(self) -> str:
        head, sep, _ = self._split_resource()
        return head if sep else ""

    @property
    def resource_id(self) -> str:
        head, sep, tail = self._split_resource()
        return tail if sep else head

    @property
    def name(self) -> str:
        """resource_id의 마지막 경로 세그먼트"""
        return self.resource_id.rstrip("/").rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        """IAM 경로 (없으면 "/")"""
        if not self.resource_type:
            return "/"
        parts = self.resource_id.rstrip("/").split("/")[:-1]
        return "/" + "".join(f"{p}/" for p in parts if p)

    @property
    def has_numeric_account(self) -> bool:
        return is_account_id(self.account)

    def _split_resource(self) -> tuple[str, str, str]:
        if "/" in self.resource:
            return self.resource.partition("/")
        return self.resource.partition(":")

    def __str__(self) -> str:
        return f"arn:{self.partition}:{self.service}:{self.region}:{self.account}:{self.resource}"


def parse_arn(value: str) -> Arn:
    """ARN 문자열 파싱

    Raises:
        ArnParseError: 세그먼트가 6개 미만이거나 arn 접두사/partition/service가 없는 경우
    """
    if not isinstance(value, str):
        raise ArnParseError(str(value), "문자열 아님")

    parts = value.split(":", ARN_SEGMENTS - 1)
    if len(parts) < ARN_SEGMENTS:
        raise ArnParseError(value, f"세그먼트 {len(parts)}개")

    prefix, partition, service, region, account, resource = parts
    if prefix != "arn":
        raise ArnParseError(value, "arn 접두사 없음")
    if not partition:
        raise ArnParseError(value, "partition 없음")
    if not service:
        raise ArnParseError(value, "service 없음")

    return Arn(partition=partition, service=service, region=region, account=account, resource=resource)


def is_arn(value: str) -> bool:
    try:
        parse_arn(value)
    except ArnParseError:
        return False
    return True
