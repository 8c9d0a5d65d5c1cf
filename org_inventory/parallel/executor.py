"""
org_inventory/parallel/executor.py - 계정 x 리전 Fan-out 실행기

조직의 여러 계정과 리전에 같은 수집 함수를 병렬로 실행하고 결과를 합칩니다.
ThreadPoolExecutor 기반이며, 실행은 두 단계로 나뉩니다.

1. 계정 단계: 활성 계정마다 한 번씩 Credential Broker로 자격증명을 해석
2. 단위 단계: 해석이 끝난 계정부터 (계정, 리전) 단위로 fetch 실행

한 단위의 실패는 해당 단위의 실패 1건으로만 기록되며 다른 단위를 취소하지 않습니다.
setup 단계(현재 계정 ID 확인) 실패만 호출자에게 전파됩니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수, 재시도)
- FanOutExecutor: 계정 x 리전 병렬 실행기
- fan_out: 간편 래퍼 함수

Example:
    from org_inventory.parallel import fan_out

    def collect_volumes(account, region, resolution):
        session = broker.session_for(resolution, region, account.id)
        ec2 = get_client(session, "ec2", region_name=region)
        return fetch_all(paginator_pages(ec2, "describe_volumes"))

    result = fan_out(broker, accounts, ["ap-northeast-2", "us-east-1"], collect_volumes)
    all_volumes = result.get_flat_data()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from ..auth.types import Account, CredentialResolution
from ..config import settings
from .decorators import RetryConfig, categorize_error, get_error_code, is_retryable
from .quiet import is_quiet, set_quiet
from .types import ErrorCategory, FanOutResult, FanOutUnit, TaskError, UnitFailure

if TYPE_CHECKING:
    from ..auth.broker import CredentialBroker
    from ..progress import ParallelTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_WORKERS_LIMIT = 100
CREDENTIAL_UNAVAILABLE_CODE = "CredentialUnavailable"


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


def _default_retry_config() -> RetryConfig:
    return RetryConfig(max_retries=settings.API_RETRY_COUNT)


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100, 초과 시 100으로 제한)
        retry_config: 재시도 설정
    """

    max_workers: int = field(default_factory=lambda: settings.MAX_WORKERS)
    retry_config: RetryConfig = field(default_factory=_default_retry_config)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > MAX_WORKERS_LIMIT:
            self.max_workers = MAX_WORKERS_LIMIT


@dataclass
class _UnitOutcome:
    """단위 작업 실행 결과 (내부용)"""

    unit: FanOutUnit
    records: list = field(default_factory=list)
    error: TaskError | None = None
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000


def _failed_outcome(
    unit: FanOutUnit,
    started: float | None = None,
    error: Exception | None = None,
    category: ErrorCategory | None = None,
    code: str | None = None,
    message: str | None = None,
    retries: int = 0,
) -> _UnitOutcome:
    """실패한 단위의 결과. error가 있으면 분류/코드/메시지를 예외에서 가져옴"""
    if error is not None:
        _clear_exception_chain(error)
    return _UnitOutcome(
        unit=unit,
        error=TaskError(
            identifier=unit.account.id,
            region=unit.region,
            category=category or (categorize_error(error) if error is not None else ErrorCategory.UNKNOWN),
            error_code=code or (get_error_code(error) if error is not None else "Unknown"),
            message=message or str(error),
            retries=retries,
            original_exception=error,
        ),
        duration_ms=0.0 if started is None else _elapsed_ms(started),
    )


def _active_accounts(accounts: Iterable[Account]) -> list[Account]:
    """활성 계정만 남기고 ID 기준 중복 제거 (첫 항목 유지)"""
    seen: set[str] = set()
    result: list[Account] = []
    for account in accounts:
        if account.id in seen:
            continue
        seen.add(account.id)
        if not account.is_active:
            logger.debug(f"비활성 계정 제외: {account.display_name} ({account.status.value})")
            continue
        result.append(account)
    return result


def _unique_regions(regions: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(r for r in regions if r))


class FanOutExecutor:
    """계정 x 리전 Fan-out 실행기

    특징:
    - 계정당 자격증명 해석 1회 (리전 수와 무관)
    - ThreadPoolExecutor 기반 병렬 처리 (max_workers로 동시성 제한)
    - 재시도 가능한 에러(쓰로틀링, 네트워크)는 지수 백오프 재시도
    - 단위별 실패 격리 (형제 단위 취소 없음)

    Example:
        executor = FanOutExecutor(broker, "OrganizationAccountAccessRole", ParallelConfig(max_workers=10))
        result = executor.run(accounts, regions, collect_volumes)

        print(f"수집: {len(result.records)}, 실패: {result.failure_count}")
        if result.failure_count:
            print(result.get_error_summary())
    """

    def __init__(
        self,
        broker: CredentialBroker,
        role_name: str | None = None,
        config: ParallelConfig | None = None,
    ):
        """초기화

        Args:
            broker: 실행 전체에서 공유하는 Credential Broker
            role_name: 대상 계정에서 Assume할 역할 이름 (None이면 기본 역할)
            config: 병렬 실행 설정 (None이면 기본값)
        """
        self.broker = broker
        self.role_name = role_name or settings.DEFAULT_ROLE_NAME
        self.config = config or ParallelConfig()
        self._retry_config = self.config.retry_config

    def run(
        self,
        accounts: Iterable[Account],
        regions: Iterable[str],
        fetch: Callable[[Account, str, CredentialResolution], Iterable[T] | None],
        progress_tracker: ParallelTracker | None = None,
    ) -> FanOutResult[T]:
        """모든 활성 계정 x 리전 조합에 fetch를 병렬 실행

        Args:
            accounts: 대상 계정 (비활성 계정은 조용히 제외)
            regions: 대상 리전
            fetch: (account, region, resolution) -> 레코드 iterable
            progress_tracker: 진행 상황 추적기 (선택사항).
                전달 시 set_total(단위 수) 후 단위마다 on_complete(success) 호출

        Returns:
            FanOutResult[T]: 성공 레코드 + 실패 단위 목록

        Raises:
            IdentityResolutionError: 현재 계정 ID를 확인할 수 없는 경우 (단위 실행 전)
        """
        active = _active_accounts(accounts)
        region_list = _unique_regions(regions)

        if not active or not region_list:
            logger.info("실행할 작업이 없습니다")
            if progress_tracker:
                progress_tracker.set_total(0)
            return FanOutResult()

        # setup: 현재 계정 확인 실패는 여기서 전파
        self.broker.prime()

        unit_count = len(active) * len(region_list)
        logger.info(
            f"Fan-out 시작: 계정 {len(active)}개 x 리전 {len(region_list)}개 = {unit_count}개 작업, "
            f"max_workers={self.config.max_workers}"
        )

        if progress_tracker:
            progress_tracker.set_total(unit_count)

        records: list[T] = []
        failures: list[UnitFailure] = []
        succeeded = 0
        started = time.monotonic()

        # 부모 스레드의 quiet 상태를 저장하여 워커 스레드에 전파
        parent_quiet = is_quiet()

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            resolve_futures: dict[Future[CredentialResolution], Account] = {
                executor.submit(self._resolve_single, account, parent_quiet): account for account in active
            }

            # 해석이 끝난 계정부터 리전 단위 작업 제출
            unit_futures: dict[Future[_UnitOutcome], FanOutUnit] = {}
            for future in as_completed(resolve_futures):
                account = resolve_futures[future]
                resolution = future.result()
                for region in region_list:
                    unit = FanOutUnit(account=account, region=region)
                    unit_futures[executor.submit(self._execute_single, fetch, unit, resolution, parent_quiet)] = unit

            for future in as_completed(unit_futures):
                unit = unit_futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    # 워커 밖에서 난 예외 (fetch 예외는 _execute_single에서 처리됨)
                    logger.error(f"작업 실행 중 예외 [{unit}]: {e}")
                    outcome = _failed_outcome(unit, error=e, category=ErrorCategory.UNKNOWN, code="ExecutorError")

                if outcome.error is None:
                    succeeded += 1
                    records.extend(outcome.records)
                else:
                    failures.append(UnitFailure(unit=unit, error=outcome.error))

                if progress_tracker:
                    progress_tracker.on_complete(outcome.success)

        result: FanOutResult[T] = FanOutResult(
            records=tuple(records),
            failed_units=tuple(failures),
            succeeded_units=succeeded,
        )

        total_time = _elapsed_ms(started)
        logger.info(
            f"Fan-out 완료: 성공 {result.success_count}, 실패 {result.failure_count}, "
            f"레코드 {len(result.records)}개, 총 {total_time:.0f}ms"
        )
        if failures:
            logger.warning(result.get_error_summary())

        return result

    def _resolve_single(self, account: Account, quiet: bool = False) -> CredentialResolution:
        """계정 단위 자격증명 해석 (워커 스레드 내에서 호출)

        Broker는 AssumeRole 실패를 Unavailable로 돌려주지만, 그 밖의 예외가 나도
        해당 계정만 Unavailable로 처리합니다.
        """
        set_quiet(quiet)
        try:
            return self.broker.resolve(account.id, self.role_name)
        except Exception as e:
            logger.error(f"계정 {account.id} 자격증명 해석 중 예외: {e}")
            _clear_exception_chain(e)
            return CredentialResolution.unavailable(f"{get_error_code(e)}: {e}")

    def _execute_single(
        self,
        fetch: Callable[[Account, str, CredentialResolution], Iterable[T] | None],
        unit: FanOutUnit,
        resolution: CredentialResolution,
        quiet: bool = False,
    ) -> _UnitOutcome:
        """단위 작업 실행 (워커 스레드 내에서 호출)

        Unavailable 계정은 fetch를 호출하지 않고 리전마다 실패 1건을 만듭니다.
        """
        set_quiet(quiet)
        started = time.monotonic()

        if resolution.is_unavailable:
            return _failed_outcome(
                unit,
                started,
                category=ErrorCategory.CREDENTIALS_UNAVAILABLE,
                code=CREDENTIAL_UNAVAILABLE_CODE,
                message=resolution.reason or f"계정 {unit.account.id} 자격증명을 얻을 수 없음",
            )

        return self._execute_with_retry(fetch, unit, resolution, started)

    def _execute_with_retry(
        self,
        fetch: Callable[[Account, str, CredentialResolution], Iterable[T] | None],
        unit: FanOutUnit,
        resolution: CredentialResolution,
        started: float,
    ) -> _UnitOutcome:
        """fetch 실행, 재시도 가능한 에러는 RetryConfig 간격으로 다시 시도

        쓰로틀링/네트워크 이외의 에러나 재시도 소진 시 마지막 예외로 실패를 만듭니다.
        """
        policy = self._retry_config
        attempt = 0
        while True:
            try:
                data = fetch(unit.account, unit.region, resolution)
                # generator 내부 에러도 이 단위의 실패로 잡히도록 여기서 소비
                records = [] if data is None else list(data)
            except Exception as e:
                if is_retryable(e) and attempt < policy.max_retries:
                    wait = policy.get_delay(attempt)
                    logger.debug(f"[{unit}] {get_error_code(e)}, {wait:.2f}초 후 재시도 ({attempt + 1}/{policy.max_retries})")
                    time.sleep(wait)
                    attempt += 1
                    continue
                logger.warning(f"[{unit}] 수집 실패: {get_error_code(e)}")
                return _failed_outcome(unit, started, error=e, retries=attempt)

            return _UnitOutcome(unit=unit, records=records, duration_ms=_elapsed_ms(started))


def fan_out(
    broker: CredentialBroker,
    accounts: Iterable[Account],
    regions: Sequence[str] | Iterable[str],
    fetch: Callable[[Account, str, CredentialResolution], Iterable[T] | None],
    role_name: str | None = None,
    max_workers: int | None = None,
    progress_tracker: ParallelTracker | None = None,
) -> FanOutResult[T]:
    """Fan-out 편의 함수

    FanOutExecutor를 간단하게 사용할 수 있는 래퍼입니다.

    Example (progress_tracker 사용):
        from org_inventory.progress import parallel_progress

        with parallel_progress("EC2 인스턴스 수집") as tracker:
            with quiet_mode():
                result = fan_out(broker, accounts, regions, collect_instances, progress_tracker=tracker)

        success, failed, total = tracker.stats
        console.print(f"완료: {success}개 성공, {failed}개 실패")
    """
    config = ParallelConfig(max_workers=max_workers) if max_workers is not None else ParallelConfig()
    executor = FanOutExecutor(broker, role_name, config)
    return executor.run(accounts, regions, fetch, progress_tracker=progress_tracker)
