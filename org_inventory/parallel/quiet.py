"""
org_inventory/parallel/quiet.py - fan-out 중 워커 로그 억제

계정 x 리전 워커가 AssumeRole 실패나 AccessDenied를 WARNING으로 남기면
Progress 표시가 깨집니다. quiet 상태인 스레드의 ERROR 미만 레코드는 버립니다.

quiet 상태는 스레드마다 따로 관리되므로 실행기가 워커로 직접 넘겨야 합니다
(set_quiet).

Example:
    with quiet_mode():
        fan_out(broker, accounts, regions, fetch, role_name="ReadOnly")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

_local = threading.local()


def is_quiet() -> bool:
    """현재 스레드가 quiet 상태인지"""
    return bool(getattr(_local, "quiet", False))


def set_quiet(value: bool) -> None:
    """현재 스레드의 quiet 상태 지정 (워커 진입 시 호출)"""
    _local.quiet = value


class _DropWhenQuiet(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True
        return not is_quiet()


class _RootHandlerGuard:
    """루트 핸들러에 필터를 붙이고 떼는 참조 카운터

    자식 로거에서 전파된 레코드는 루트 로거의 필터를 거치지 않으므로
    핸들러 각각에 필터를 붙입니다. 마지막 quiet_mode가 끝날 때
    붙였던 핸들러에서만 떼어냅니다.
    """

    def __init__(self) -> None:
        self._filter = _DropWhenQuiet()
        self._lock = threading.Lock()
        self._users = 0
        self._attached: list[logging.Handler] = []

    def acquire(self) -> None:
        with self._lock:
            self._users += 1
            if self._users > 1:
                return
            self._attached = list(logging.getLogger().handlers)
            for handler in self._attached:
                handler.addFilter(self._filter)

    def release(self) -> None:
        with self._lock:
            self._users -= 1
            if self._users > 0:
                return
            for handler in self._attached:
                handler.removeFilter(self._filter)
            self._attached = []


_guard = _RootHandlerGuard()


@contextmanager
def quiet_mode() -> Generator[None, None, None]:
    """현재 스레드를 quiet 상태로 두는 컨텍스트

    중첩과 여러 스레드의 동시 진입을 허용하며, 종료 시 진입 전 상태로 되돌립니다.
    """
    previous = is_quiet()
    set_quiet(True)
    _guard.acquire()
    try:
        yield
    finally:
        set_quiet(previous)
        _guard.release()
