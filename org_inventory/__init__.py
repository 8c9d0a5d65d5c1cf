# org_inventory/__init__.py
"""
org_inventory - AWS Organization 멀티 계정 인벤토리 코어

조직의 여러 계정 x 리전에서 리소스를 병렬 수집하고, 정책 문서의
Principal 참조를 분류/검증하는 코어 패키지입니다.

아키텍처:
    org_inventory/
    ├── auth/           # 현재 계정 캐시, Credential Broker
    ├── parallel/       # Fan-out 실행기, 페이지네이션, 에러 분류
    ├── policy/         # ARN 파서, Principal 분류/검증
    ├── organization.py # Organizations 계정/OU 조회
    ├── commands.py     # 명령 단위 진입점
    ├── progress.py     # Rich Progress 추적기
    ├── console.py      # Rich 콘솔, 로깅 설정
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    import boto3
    from org_inventory.commands import collect_inventory
    from org_inventory.console import setup_logging

    setup_logging()

    def fetch(account, region, resolution):
        ...

    result = collect_inventory(boto3.Session(), ["ap-northeast-2"], fetch)
    print(result.get_error_summary())
"""

from org_inventory import auth, config, exceptions, parallel, policy
from org_inventory.config import get_version

__version__ = get_version()

__all__: list[str] = [
    # 서브패키지
    "auth",
    "parallel",
    "policy",
    # 모듈
    "config",
    "exceptions",
]
