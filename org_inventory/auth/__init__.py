"""
교차 계정 인증 모듈 (org_inventory/auth)

구성:
- IdentityCache: 현재 자격증명의 계정 ID 메모이즈
- CredentialBroker: 계정별 AssumeRole + write-once 캐시
- AccountCredentialCache: single-flight 계정 키 캐시

사용 예시:
    from org_inventory.auth import CredentialBroker

    broker = CredentialBroker(boto3.Session())
    resolution = broker.resolve("111111111111", "OrganizationAccountAccessRole")

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
    실제 사용 시점에만 하위 모듈(boto3 의존)이 로드됩니다.
"""

__all__ = [
    # Types
    "Account",
    "AccountStatus",
    "DelegatedCredentials",
    "CredentialResolution",
    "ResolutionKind",
    "AuthError",
    "IdentityResolutionError",
    "CredentialUnavailableError",
    # Cache
    "AccountCredentialCache",
    "CacheEntry",
    # Identity / Broker
    "IdentityCache",
    "CredentialBroker",
    "build_role_arn",
]

# Lazy import 매핑 테이블
_IMPORT_MAPPING = {
    "Account": (".types", "Account"),
    "AccountStatus": (".types", "AccountStatus"),
    "DelegatedCredentials": (".types", "DelegatedCredentials"),
    "CredentialResolution": (".types", "CredentialResolution"),
    "ResolutionKind": (".types", "ResolutionKind"),
    "AuthError": (".types", "AuthError"),
    "IdentityResolutionError": (".types", "IdentityResolutionError"),
    "CredentialUnavailableError": (".types", "CredentialUnavailableError"),
    "AccountCredentialCache": (".cache", "AccountCredentialCache"),
    "CacheEntry": (".cache", "CacheEntry"),
    "IdentityCache": (".identity", "IdentityCache"),
    "CredentialBroker": (".broker", "CredentialBroker"),
    "build_role_arn": (".broker", "build_role_arn"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
