# app/core/logging.py
import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """
    이름에 해당하는 로거를 반환합니다.
    루트 로거에 핸들러가 없으면 설정된 레벨로 basicConfig를 먼저 수행합니다.
    """
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
    return logging.getLogger(name)
