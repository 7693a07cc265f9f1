"""표준화된 로거 모듈.

프로젝트 전체에서 일관된 로깅 형식을 제공합니다.
`configure_logging()`으로 루트 로거가 구성된 경우 전파만 하고,
단독 실행(스크립트, 테스트)에서는 stdout 핸들러를 직접 붙입니다.
"""

import logging
import os
import sys

_LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level() -> int:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return logging.getLevelNamesMapping().get(level_name, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """표준화된 로거를 반환합니다.

    Args:
        name: 로거 이름 (일반적으로 __name__ 사용).

    Returns:
        설정된 로거 인스턴스.
    """
    logger = logging.getLogger(name)

    if logging.getLogger().handlers:
        return logger

    if not logger.handlers:
        level = _resolve_level()
        logger.setLevel(level)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)

    return logger
