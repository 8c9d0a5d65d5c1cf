"""
org_inventory/parallel/client.py - boto3 client 팩토리

fan-out 워커가 만드는 모든 client는 같은 재시도/타임아웃/연결 풀 정책을 따릅니다.
연결 풀 크기는 워커 수보다 커야 워커끼리 연결을 기다리지 않습니다.

IAM, Organizations, STS는 글로벌 서비스라 global_client()로 고정 리전에서 만듭니다.

Example:
    ec2 = get_client(session, "ec2", region_name=region)
    org = global_client(session, "organizations")
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Literal, cast

from botocore.config import Config

from ..config import settings

if TYPE_CHECKING:
    import boto3

RetryMode = Literal["legacy", "standard", "adaptive"]

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_MAX_POOL_CONNECTIONS = 25


@dataclass(frozen=True)
class ClientOptions:
    """botocore Config로 변환되는 client 옵션

    Attributes:
        max_attempts: botocore 최대 시도 횟수 (첫 호출 포함)
        retry_mode: adaptive면 쓰로틀링 시 클라이언트 측 속도 조절
        connect_timeout: 연결 타임아웃(초)
        read_timeout: 읽기 타임아웃(초)
        max_pool_connections: HTTP 연결 풀 크기
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_mode: RetryMode = "adaptive"
    connect_timeout: int = 10
    read_timeout: int = 30
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS

    @classmethod
    def from_settings(cls) -> ClientOptions:
        return cls(
            connect_timeout=settings.API_CONNECT_TIMEOUT,
            read_timeout=settings.API_TIMEOUT,
            max_pool_connections=max(DEFAULT_MAX_POOL_CONNECTIONS, settings.MAX_WORKERS + 5),
        )

    def to_config(self) -> Config:
        return Config(
            retries={"max_attempts": self.max_attempts, "mode": self.retry_mode},  # pyright: ignore[reportArgumentType]
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            max_pool_connections=self.max_pool_connections,
        )


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    config: Config | None = None,
    **overrides: Any,
) -> Any:
    """재시도 정책이 적용된 boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름
        region_name: 리전 (None이면 세션 기본값)
        config: 추가 botocore Config (기본 정책 위에 병합)
        **overrides: ClientOptions 필드 덮어쓰기 (max_attempts, read_timeout 등)

    Returns:
        boto3 client
    """
    options = ClientOptions.from_settings()
    if overrides:
        options = replace(options, **overrides)

    merged = options.to_config()
    if config is not None:
        merged = merged.merge(config)

    # boto3-stubs의 Literal 서비스명 요구 우회
    return session.client(cast(Any, service_name), region_name=region_name, config=merged)  # pyright: ignore[reportCallIssue]


def global_client(session: boto3.Session, service_name: str, **overrides: Any) -> Any:
    """글로벌 서비스(IAM, Organizations, STS) client 생성"""
    return get_client(session, service_name, region_name=settings.GLOBAL_SERVICE_REGION, **overrides)
