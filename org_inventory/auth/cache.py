"""
org_inventory/auth/cache.py - 계정별 자격증명 캐시

- CacheEntry: 캐시 항목 (값 + 생성 시각)
- AccountCredentialCache: 계정 ID를 키로 하는 메모리 캐시

설계 원칙:
- 실행(run) 단위로 생성하고 프로세스 종료 시 폐기 (파일 저장 없음)
- 키당 한 번만 기록 (write-once), 이후 읽기 전용
- 같은 계정을 여러 스레드가 동시에 처음 요청하면 한 스레드만 factory를 실행 (single-flight)
- 실행 중 만료 검사는 하지 않음 (세션 유지 시간이 실행 시간보다 길다고 가정)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """캐시 항목

    Attributes:
        value: 캐시된 값
        created_at: 생성 시간 (UTC)
    """

    value: T
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AccountCredentialCache(Generic[T]):
    """계정 ID 키 기반 write-once 캐시

    Thread-safe 구현. 키별 잠금으로 서로 다른 계정의 첫 해석은 병렬로 진행되고,
    같은 계정의 동시 요청은 직렬화됩니다.

    Example:
        cache = AccountCredentialCache()
        resolution = cache.get_or_create("111111111111", lambda: assume(...))
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}

    def _key_lock(self, account_id: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(account_id)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[account_id] = lock
            return lock

    def get(self, account_id: str) -> T | None:
        """캐시된 값 조회 (없으면 None)"""
        with self._lock:
            entry = self._entries.get(account_id)
        return entry.value if entry is not None else None

    def get_or_create(self, account_id: str, factory: Callable[[], T]) -> T:
        """캐시된 값을 반환하거나, 없으면 factory로 생성해 저장

        같은 account_id에 대해 factory는 최대 한 번만 성공적으로 실행됩니다.
        factory가 예외를 던지면 아무것도 저장하지 않고 예외를 전파합니다.

        Args:
            account_id: AWS 계정 ID
            factory: 캐시 미스 시 값을 만드는 함수

        Returns:
            캐시된 (또는 새로 만든) 값
        """
        cached = self.get(account_id)
        if cached is not None:
            return cached

        with self._key_lock(account_id):
            # 잠금 대기 중 다른 스레드가 채웠을 수 있음
            cached = self.get(account_id)
            if cached is not None:
                return cached

            value = factory()
            with self._lock:
                self._entries[account_id] = CacheEntry(value=value)
            return value

    def __contains__(self, account_id: object) -> bool:
        with self._lock:
            return account_id in self._entries

    def keys(self) -> list[str]:
        """캐시된 계정 ID 목록"""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        """모든 캐시 클리어 (테스트용)"""
        with self._lock:
            self._entries.clear()
            self._key_locks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
