"""
loguru 日志配置
"""
import sys

from loguru import logger

from quote_engine.core.config import settings


def _with_request_id(record) -> bool:
    record["extra"].setdefault("request_id", "-")
    return True


def configure_logging(app_name: str = None, log_dir: str = None, level: str = None):
    """配置loguru日志"""
    app_name = app_name or settings.APP_NAME
    log_dir = log_dir or settings.LOG_DIR
    level = level or settings.LOG_LEVEL

    # 移除默认处理器
    logger.remove()

    # 控制台输出格式
    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<blue>[{extra[request_id]}]</blue> - "
        "<level>{message}</level>"
    )

    # 文件输出格式
    file_format = (
        "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
        "{level: <8} | "
        "{name}:{function}:{line} | "
        "[{extra[request_id]}] | "
        "{message}"
    )

    logger.add(
        sys.stderr,
        format=console_format,
        level=level,
        colorize=True,
        filter=_with_request_id
    )

    # 一般日志
    logger.add(
        f"{log_dir}/{app_name}_{{time:YYYY-MM-DD}}.log",
        format=file_format,
        level=level,
        rotation="00:00",
        retention="30 days",
        compression="gz",
        filter=_with_request_id
    )

    # 错误日志
    logger.add(
        f"{log_dir}/{app_name}_error_{{time:YYYY-MM-DD}}.log",
        format=file_format,
        level="ERROR",
        rotation="00:00",
        retention="60 days",
        compression="gz",
        filter=_with_request_id
    )

    return logger
