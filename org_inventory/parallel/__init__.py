"""
org_inventory/parallel - 병렬 처리 모듈

조직의 여러 계정 x 리전에 같은 수집 함수를 병렬로 안전하게 실행합니다.

주요 구성 요소:
- FanOutExecutor: 계정 x 리전 Fan-out 실행기
- fan_out: 간편한 Fan-out 함수
- fetch_all / paginator_pages: 페이지네이션 어댑터
- ErrorCollector / try_or_default: 부분 실패 수집

Example (권장 - fan_out):
    from org_inventory.parallel import fan_out, fetch_all, get_client, paginator_pages

    def collect_volumes(account, region, resolution):
        session = broker.session_for(resolution, region, account.id)
        ec2 = get_client(session, "ec2", region_name=region)
        return fetch_all(paginator_pages(ec2, "describe_volumes"))

    result = fan_out(broker, accounts, regions, collect_volumes, max_workers=20)

    all_volumes = result.get_flat_data()
    print(f"성공: {result.success_count}, 실패: {result.failure_count}")

    if result.failure_count > 0:
        print(result.get_error_summary())

Example (Progress tracking 사용):
    from org_inventory.parallel import fan_out, quiet_mode
    from org_inventory.progress import parallel_progress

    with parallel_progress("리소스 수집") as tracker:
        with quiet_mode():
            result = fan_out(broker, accounts, regions, collect_volumes, progress_tracker=tracker)

    success, failed, total = tracker.stats
    print(f"완료: {success}개 성공, {failed}개 실패")

Example (상세 제어 - Executor):
    from org_inventory.parallel import FanOutExecutor, ParallelConfig

    config = ParallelConfig(max_workers=30)
    executor = FanOutExecutor(broker, "ReadOnlyAccess", config)
    result = executor.run(accounts, regions, collect_volumes)
"""

from .client import ClientOptions, get_client, global_client
from .decorators import RetryConfig, categorize_error, get_error_code, is_retryable
from .errors import (
    LOOKUP_FAILED,
    CollectedError,
    ErrorCollector,
    ErrorSeverity,
    is_lookup_failed,
    try_or_default,
)
from .executor import FanOutExecutor, ParallelConfig, fan_out
from .pagination import fetch_all, paginator_pages
from .quiet import is_quiet, quiet_mode, set_quiet
from .types import ErrorCategory, FanOutResult, FanOutUnit, TaskError, UnitFailure

__all__: list[str] = [
    # Executor
    "FanOutExecutor",
    "ParallelConfig",
    "fan_out",
    # Pagination
    "fetch_all",
    "paginator_pages",
    # Client (retry 적용)
    "ClientOptions",
    "get_client",
    "global_client",
    # Decorators
    "RetryConfig",
    "categorize_error",
    "get_error_code",
    "is_retryable",
    # Error handling
    "ErrorCollector",
    "ErrorSeverity",
    "CollectedError",
    "try_or_default",
    "LOOKUP_FAILED",
    "is_lookup_failed",
    # Quiet mode
    "quiet_mode",
    "is_quiet",
    "set_quiet",
    # Types
    "ErrorCategory",
    "FanOutResult",
    "FanOutUnit",
    "TaskError",
    "UnitFailure",
]
