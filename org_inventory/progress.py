"""
org_inventory/progress.py - fan-out 진행률 표시

계정 x 리전 단위가 끝날 때마다 성공/실패를 따로 세어 rich Progress 막대에 반영합니다.
Progress 없이 만든 tracker는 카운터로만 동작합니다 (테스트, 비대화형 실행).

Example:
    with parallel_progress("리소스 수집") as tracker:
        with quiet_mode():
            result = fan_out(broker, accounts, regions, fetch, progress_tracker=tracker)

    ok, failed, total = tracker.stats
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from .console import console as default_console

if TYPE_CHECKING:
    from rich.console import Console


class SuccessFailColumn(ProgressColumn):
    """"12✓ 3✗" 형태의 성공/실패 카운트 열"""

    def __init__(self, tracker: ParallelTracker) -> None:
        super().__init__()
        self._tracker = tracker

    def render(self, task: Task) -> Text:
        ok, failed, _ = self._tracker.stats
        return Text.assemble((f"{ok}✓", "green"), " ", (f"{failed}✗", "red"))


class ParallelTracker:
    """fan-out 단위 완료 카운터

    실행기는 단위 수가 정해지면 set_total()을 한 번, 단위가 끝날 때마다 on_complete()를 부릅니다.
    """

    def __init__(
        self,
        progress: Progress | None = None,
        task_id: TaskID | None = None,
        description: str = "",
    ) -> None:
        self._progress = progress
        self._task_id = task_id
        self.description = description
        self._lock = threading.Lock()
        self._counts = {"ok": 0, "failed": 0, "total": 0}

    def _bind(self, progress: Progress, task_id: TaskID) -> None:
        self._progress = progress
        self._task_id = task_id

    def _push(self, **fields: int) -> None:
        # 호출자가 self._lock 보유
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, **fields)

    def set_total(self, total: int) -> None:
        with self._lock:
            self._counts["total"] = total
            self._push(total=total)

    def on_complete(self, success: bool) -> None:
        with self._lock:
            self._counts["ok" if success else "failed"] += 1
            self._push(completed=self._counts["ok"] + self._counts["failed"])

    @property
    def stats(self) -> tuple[int, int, int]:
        """(성공, 실패, 전체)"""
        with self._lock:
            return self._counts["ok"], self._counts["failed"], self._counts["total"]

    @property
    def success_count(self) -> int:
        return self.stats[0]

    @property
    def failed_count(self) -> int:
        return self.stats[1]

    @property
    def total_count(self) -> int:
        return self.stats[2]


def _columns(tracker: ParallelTracker) -> list[ProgressColumn]:
    return [
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        SuccessFailColumn(tracker),
        TextColumn("/"),
        MofNCompleteColumn(),
        BarColumn(bar_width=40),
        TimeElapsedColumn(),
    ]


def _final_description(description: str, failed: int) -> str:
    if failed:
        return f"[yellow]{description} 완료 ({failed}개 실패)"
    return f"[green]{description} 완료"


@contextmanager
def parallel_progress(
    description: str,
    console: Console | None = None,
) -> Generator[ParallelTracker, None, None]:
    """진행률 막대를 띄우고 연결된 tracker를 넘겨주는 컨텍스트

    Args:
        description: 막대 앞에 표시할 작업 이름
        console: 출력 대상 (기본: org_inventory.console.console)
    """
    tracker = ParallelTracker(description=description)
    progress = Progress(*_columns(tracker), console=console or default_console, expand=False)

    with progress:
        task_id = progress.add_task(f"[cyan]{description}", total=None)
        tracker._bind(progress, task_id)
        try:
            yield tracker
        finally:
            _, failed, total = tracker.stats
            if total:
                progress.update(task_id, description=_final_description(description, failed))
