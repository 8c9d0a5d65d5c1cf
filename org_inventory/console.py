"""
org_inventory/console.py - Rich 콘솔과 로깅 설정

라이브러리 모듈은 `logging.getLogger(__name__)`만 사용하고,
핸들러 설치는 진입점에서 setup_logging()을 한 번 호출해 처리합니다.
"""

from __future__ import annotations

import logging
import platform

from rich.console import Console
from rich.logging import RichHandler

from .config import LogConfig, settings


def get_console() -> Console:
    """Rich Console 인스턴스를 생성하고 반환합니다."""
    is_windows = platform.system().lower() == "windows"

    return Console(
        stderr=True,
        color_system="auto",
        highlight=True,
        soft_wrap=True,
        markup=True,
        emoji=not is_windows,
    )


# 전역 콘솔 인스턴스
console = get_console()

_HANDLER_NAME = "org_inventory.rich"


def setup_logging(config: LogConfig | None = None, console_: Console | None = None) -> logging.Logger:
    """루트 로거에 RichHandler를 설치합니다.

    여러 번 호출해도 핸들러는 하나만 유지되며, 레벨만 갱신됩니다.

    Args:
        config: 로깅 설정 (None이면 settings.LOG)
        console_: 출력할 Console (None이면 전역 console)

    Returns:
        설정된 루트 로거
    """
    config = config or settings.LOG
    root = logging.getLogger()
    root.setLevel(config.level_no)

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            handler.setLevel(config.level_no)
            return root

    handler = RichHandler(console=console_ or console, rich_tracebacks=True, show_path=False)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(config.level_no)
    handler.setFormatter(logging.Formatter(config.fmt, datefmt=config.datefmt))
    root.addHandler(handler)
    return root
