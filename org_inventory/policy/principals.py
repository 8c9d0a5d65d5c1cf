"""
org_inventory/policy/principals.py - 정책 Principal 분류 및 추출

정책 문서의 Principal 참조를 문자열 구조만으로 분류합니다 (네트워크 호출 없음).
실제 존재 여부 확인은 verify 모듈의 몫입니다.

분류 우선순위:
    (a) "*"                                        -> WILDCARD
    (b) IAM ARN + 12자리 계정 + user/role/group     -> IAM_USER / IAM_ROLE / IAM_GROUP
    (c) CloudFront OAI ARN                         -> CLOUDFRONT_OAI
    (d) 계정 위치가 숫자가 아닌 ARN                  -> KNOWN_SERVICE_ARN
        그 외 IAM/STS ARN (assumed-role, root 등)    -> UNKNOWN_IAM
    (e) 타입이 Service                             -> SERVICE
    (f) 타입이 AWS + 12자리 숫자                    -> AWS_ACCOUNT
    (g) 나머지                                     -> OPAQUE
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from ..exceptions import SetupError
from .arn import Arn, ArnParseError, is_account_id, parse_arn

logger = logging.getLogger(__name__)

WILDCARD = "*"
SERVICE_SUFFIX = ".amazonaws.com"
CLOUDFRONT_ACCOUNT = "cloudfront"
CLOUDFRONT_OAI_PREFIX = "user/CloudFront Origin Access Identity"

# 계정 위치에 서비스 이름이 오는 ARN의 알려진 서비스
KNOWN_SERVICE_ACCOUNTS = frozenset(
    {
        "cloudfront",
        "lambda",
        "s3",
        "apigateway",
        "sqs",
        "sns",
        "events",
        "logs",
        "cognito-identity",
        "elasticloadbalancing",
    }
)

# 계정 ID가 박힌 ARN 중 IAM 엔티티로 취급할 서비스
_IAM_SERVICES = ("iam", "sts")

POLICY_PRINCIPAL_KEYS = ("Principal", "NotPrincipal")


class PrincipalKind(Enum):
    """Principal 분류"""

    WILDCARD = "wildcard"
    SERVICE = "service"
    AWS_ACCOUNT = "aws_account"
    IAM_USER = "iam_user"
    IAM_ROLE = "iam_role"
    IAM_GROUP = "iam_group"
    CLOUDFRONT_OAI = "cloudfront_oai"
    KNOWN_SERVICE_ARN = "known_service_arn"
    UNKNOWN_IAM = "unknown_iam"
    OPAQUE = "opaque"

    @property
    def is_iam_entity(self) -> bool:
        return self in _IAM_ENTITY_KINDS


_IAM_ENTITY_KINDS = frozenset({PrincipalKind.IAM_USER, PrincipalKind.IAM_ROLE, PrincipalKind.IAM_GROUP})

_IAM_RESOURCE_KINDS = {
    "user": PrincipalKind.IAM_USER,
    "role": PrincipalKind.IAM_ROLE,
    "group": PrincipalKind.IAM_GROUP,
}


@dataclass(frozen=True)
class Principal:
    """분류된 Principal

    Attributes:
        raw: 정책에 적힌 원본 값
        principal_type: 정책의 Principal 타입 키 (AWS, Service, Federated 등)
        kind: 분류 결과
        account_id: 참조하는 계정 (서비스 ARN이면 서비스 이름, 없으면 None)
        display: 표시용 이름
        arn: ARN이면 파싱 결과
    """

    raw: str
    principal_type: str
    kind: PrincipalKind
    account_id: str | None = None
    display: str = ""
    arn: Arn | None = None

    @property
    def key(self) -> tuple[str, str]:
        """중복 제거 키 (타입, 값)"""
        return (self.principal_type, self.raw)


def _service_display(value: str) -> str:
    if value.endswith(SERVICE_SUFFIX):
        return value[: -len(SERVICE_SUFFIX)]
    return value


def _classify_arn(principal_type: str, value: str, arn: Arn) -> Principal | None:
    if arn.service in _IAM_SERVICES and arn.has_numeric_account:
        kind = _IAM_RESOURCE_KINDS.get(arn.resource_type) if arn.service == "iam" else None
        if kind is not None:
            return Principal(value, principal_type, kind, arn.account, f"IAM {arn.resource_type}", arn)
        label = arn.resource_type or arn.resource_id
        return Principal(value, principal_type, PrincipalKind.UNKNOWN_IAM, arn.account, f"Unknown IAM ({label})", arn)

    if arn.service == "iam" and arn.account == CLOUDFRONT_ACCOUNT and arn.resource.startswith(CLOUDFRONT_OAI_PREFIX):
        return Principal(value, principal_type, PrincipalKind.CLOUDFRONT_OAI, CLOUDFRONT_ACCOUNT, "CloudFront OAI", arn)

    if arn.account and not arn.account.isdigit():
        display = f"AWS Service ({arn.account})" if arn.account in KNOWN_SERVICE_ACCOUNTS else "AWS Service"
        return Principal(value, principal_type, PrincipalKind.KNOWN_SERVICE_ARN, arn.account, display, arn)

    return None


def classify(principal_type: str, value: str) -> Principal:
    """Principal 분류 (순수 함수)

    Args:
        principal_type: 정책의 Principal 타입 키 (대소문자 무관)
        value: Principal 값

    Returns:
        Principal
    """
    if value == WILDCARD:
        return Principal(value, principal_type, PrincipalKind.WILDCARD, None, "Any")

    arn: Arn | None = None
    try:
        arn = parse_arn(value)
    except ArnParseError:
        arn = None

    if arn is not None:
        principal = _classify_arn(principal_type, value, arn)
        if principal is not None:
            return principal

    normalized_type = principal_type.strip().lower()
    if normalized_type == "service":
        return Principal(value, principal_type, PrincipalKind.SERVICE, None, _service_display(value), arn)

    if normalized_type == "aws" and is_account_id(value):
        return Principal(value, principal_type, PrincipalKind.AWS_ACCOUNT, value, "AWS Account")

    account_id = arn.account if arn is not None and arn.account else None
    return Principal(value, principal_type, PrincipalKind.OPAQUE, account_id, principal_type, arn)


def _iter_principal_values(block: Any) -> list[tuple[str, str]]:
    """Principal 블록에서 (타입, 값) 목록 추출"""
    if isinstance(block, str):
        # "Principal": "*" 형태
        return [("AWS", block)]
    if not isinstance(block, dict):
        return []

    pairs: list[tuple[str, str]] = []
    for principal_type, values in block.items():
        if isinstance(values, str):
            pairs.append((principal_type, values))
        elif isinstance(values, list):
            pairs.extend((principal_type, v) for v in values if isinstance(v, str))
    return pairs


def extract_principals(policy: dict[str, Any]) -> list[Principal]:
    """정책 문서의 모든 Principal / NotPrincipal 추출

    Statement는 단일 객체 또는 목록일 수 있습니다. (타입, 값)이 같은 항목은
    처음 나온 것만 남깁니다.
    """
    statements = policy.get("Statement", [])
    if isinstance(statements, dict):
        statements = [statements]
    elif not isinstance(statements, list):
        statements = []

    seen: set[tuple[str, str]] = set()
    principals: list[Principal] = []
    for statement in statements or []:
        if not isinstance(statement, dict):
            continue
        for key in POLICY_PRINCIPAL_KEYS:
            for principal_type, value in _iter_principal_values(statement.get(key)):
                if (principal_type, value) in seen:
                    continue
                seen.add((principal_type, value))
                principals.append(classify(principal_type, value))

    logger.debug(f"Principal {len(principals)}개 추출")
    return principals


def load_policy_document(path: str | Path) -> dict[str, Any]:
    """JSON 정책 파일 로드 (setup 단계)

    Raises:
        SetupError: 파일이 없거나 UTF-8 JSON이 아니거나, Statement가 없거나 객체/목록이 아닌 경우
    """
    policy_path = Path(path)
    if not policy_path.is_file():
        raise SetupError("policy", f"정책 파일을 찾을 수 없습니다: {policy_path}")

    try:
        with open(policy_path, encoding="utf-8") as f:
            document = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SetupError("policy", f"정책 파일 JSON 파싱 실패: {policy_path}", cause=e) from e
    except OSError as e:
        raise SetupError("policy", f"정책 파일을 읽을 수 없습니다: {policy_path}", cause=e) from e

    if not isinstance(document, dict) or "Statement" not in document:
        raise SetupError("policy", f"Statement가 없는 정책 문서입니다: {policy_path}")
    if not isinstance(document["Statement"], (dict, list)):
        raise SetupError("policy", f"Statement는 객체 또는 목록이어야 합니다: {policy_path}")

    return document
