"""
org_inventory/policy - 정책 Principal 분류 및 검증

구성:
- arn: ARN 파서
- principals: Principal 분류 (순수 함수) + 정책 문서에서 추출
- iam: IAM 엔티티 존재 확인
- verify: Principal 존재 검증

사용 예시:
    from org_inventory.policy import PrincipalVerifier, extract_principals, load_policy_document

    policy = load_policy_document("bucket-policy.json")
    verifier = PrincipalVerifier(broker, accounts)
    for result in verifier.verify_all(extract_principals(policy)):
        print(result.to_dict())
"""

from .arn import Arn, ArnParseError, is_arn, parse_arn
from .iam import IamEntityChecker
from .principals import (
    KNOWN_SERVICE_ACCOUNTS,
    Principal,
    PrincipalKind,
    classify,
    extract_principals,
    load_policy_document,
)
from .verify import CrossAccountConfig, PrincipalVerifier, VerificationResult

__all__: list[str] = [
    # ARN
    "Arn",
    "ArnParseError",
    "parse_arn",
    "is_arn",
    # Principals
    "Principal",
    "PrincipalKind",
    "KNOWN_SERVICE_ACCOUNTS",
    "classify",
    "extract_principals",
    "load_policy_document",
    # Verification
    "IamEntityChecker",
    "CrossAccountConfig",
    "PrincipalVerifier",
    "VerificationResult",
]
