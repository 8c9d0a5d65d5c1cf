"""
org_inventory/config.py - 전역 설정

환경 변수(ORG_INVENTORY_*)에서 한 번 읽어 불변 Settings로 고정합니다.
실행 중에는 설정이 바뀌지 않으므로 모든 모듈이 `settings` 싱글톤을 공유합니다.

환경 변수:
    ORG_INVENTORY_DEFAULT_REGION     기본 리전 (기본: us-east-1)
    ORG_INVENTORY_ROLE_NAME          대상 계정에서 Assume할 역할 이름
    ORG_INVENTORY_SESSION_DURATION   AssumeRole 세션 유지 시간(초)
    ORG_INVENTORY_MAX_WORKERS        Fan-out 최대 동시 스레드 수
    ORG_INVENTORY_RETRY_COUNT        재시도 가능한 에러의 최대 재시도 횟수
    ORG_INVENTORY_API_TIMEOUT        boto3 읽기 타임아웃(초)
    ORG_INVENTORY_LOG_LEVEL          로그 레벨 (DEBUG, INFO, WARNING, ...)
    ORG_INVENTORY_DEBUG              true면 DEBUG 로그 강제

Usage:
    from org_inventory.config import settings

    broker = CredentialBroker(session, duration_seconds=settings.SESSION_DURATION_SECONDS)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from .exceptions import ConfigError

VERSION = "0.1.0"

ENV_PREFIX = "ORG_INVENTORY_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def get_env_str(name: str, default: str) -> str:
    """접두사가 붙은 환경 변수 문자열 조회 (빈 값이면 기본값)"""
    value = os.environ.get(f"{ENV_PREFIX}{name}", "").strip()
    return value or default


def get_env_int(name: str, default: int) -> int:
    """환경 변수 정수 조회

    파싱 실패 시 경고를 남기고 기본값을 사용합니다.
    """
    raw = os.environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("환경 변수 %s%s 값이 정수가 아님: %r", ENV_PREFIX, name, raw)
        return default


def get_env_bool(name: str, default: bool = False) -> bool:
    """환경 변수 불리언 조회 (1/true/yes/on, 0/false/no/off)"""
    raw = os.environ.get(f"{ENV_PREFIX}{name}")
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


@dataclass(frozen=True)
class LogConfig:
    """로깅 설정

    Attributes:
        level: 루트 로거 레벨 이름
        fmt: 로그 포맷
        datefmt: 시간 포맷
        quiet_loggers: WARNING으로 고정할 노이즈 로거 목록
    """

    level: str = "WARNING"
    fmt: str = "%(message)s"
    datefmt: str = "[%X]"
    quiet_loggers: tuple[str, ...] = (
        "botocore.credentials",
        "botocore.httpchecksum",
        "botocore.loaders",
        "botocore.session",
        "urllib3.connectionpool",
    )

    @property
    def level_no(self) -> int:
        """logging 모듈 레벨 값 (알 수 없는 이름이면 WARNING)"""
        value = logging.getLevelName(self.level.upper())
        return value if isinstance(value, int) else logging.WARNING


def _load_log_config() -> LogConfig:
    level = "DEBUG" if get_env_bool("DEBUG") else get_env_str("LOG_LEVEL", "WARNING")
    return LogConfig(level=level)


@dataclass(frozen=True)
class Settings:
    """실행 전체에서 공유하는 불변 설정

    Attributes:
        DEFAULT_REGION: 리전을 지정하지 않았을 때 사용하는 리전
        DEFAULT_ROLE_NAME: 교차 계정 접근 시 Assume할 역할
        SESSION_DURATION_SECONDS: AssumeRole DurationSeconds (STS 최소값 900)
        MAX_WORKERS: Fan-out 스레드 풀 크기
        API_RETRY_COUNT: Fan-out 단위 작업 재시도 횟수
        API_CONNECT_TIMEOUT: boto3 연결 타임아웃(초)
        API_TIMEOUT: boto3 읽기 타임아웃(초)
        SESSION_NAME_PREFIX: AssumeRole 세션 이름 접두사 (CloudTrail 추적용)
        GLOBAL_SERVICE_REGION: IAM/Organizations/STS 호출에 사용하는 리전
        LOG: 로깅 설정
    """

    DEFAULT_REGION: str = field(default_factory=lambda: get_env_str("DEFAULT_REGION", "us-east-1"))
    DEFAULT_ROLE_NAME: str = field(
        default_factory=lambda: get_env_str("ROLE_NAME", "OrganizationAccountAccessRole")
    )
    SESSION_DURATION_SECONDS: int = field(default_factory=lambda: max(900, get_env_int("SESSION_DURATION", 900)))
    MAX_WORKERS: int = field(default_factory=lambda: get_env_int("MAX_WORKERS", 20))
    API_RETRY_COUNT: int = field(default_factory=lambda: get_env_int("RETRY_COUNT", 3))
    API_CONNECT_TIMEOUT: int = 10
    API_TIMEOUT: int = field(default_factory=lambda: get_env_int("API_TIMEOUT", 30))
    SESSION_NAME_PREFIX: str = "org-inventory"
    GLOBAL_SERVICE_REGION: str = "us-east-1"
    LOG: LogConfig = field(default_factory=_load_log_config)

    def __post_init__(self) -> None:
        if self.MAX_WORKERS < 1:
            raise ConfigError("MAX_WORKERS", f"1 이상이어야 합니다: {self.MAX_WORKERS}")
        if self.API_RETRY_COUNT < 0:
            raise ConfigError("RETRY_COUNT", f"음수일 수 없습니다: {self.API_RETRY_COUNT}")


settings = Settings()


def get_default_region() -> str:
    """기본 리전 반환"""
    return settings.DEFAULT_REGION


def get_version() -> str:
    """패키지 버전 반환"""
    return VERSION
