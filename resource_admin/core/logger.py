"""日志配置：资源处理层的统一输出格式。

每条日志都会带上请求 ID；处理器通过 ``extra={"resource": ..., "mode": ...}``
附加资源名与权限动作，JSON 格式下以独立字段输出，便于按资源检索拒绝与删除记录。
"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from .config import get_settings

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# 处理器附加到 LogRecord 上的资源字段
RESOURCE_FIELDS = ("resource", "mode")


class _TZFormatter(logging.Formatter):
    """按 Settings.timezone 渲染时间戳。"""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        dt = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(_TZFormatter):
    """控制台格式：终端下按级别着色。"""

    RESET = "\033[0m"
    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }

    def __init__(self, fmt: str, datefmt: Optional[str] = None, use_colors: Optional[bool] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{message}{self.RESET}" if color else message


class JsonFormatter(_TZFormatter):
    """一行一个 JSON 对象，资源字段存在时一并输出。"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for name in RESOURCE_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class RequestIdFilter(logging.Filter):
    """把上下文中的请求 ID 写入每条 LogRecord。"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get() or "-"
        return True


def build_logging_config() -> dict:
    """根据配置生成 dictConfig；``LOG_JSON`` 打开时控制台与文件都输出 JSON。"""
    settings = get_settings()
    formatter_name = "json" if settings.log_json else "console"
    handler = {"level": settings.log_level, "filters": ["request_id"]}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": "resource_admin.core.logger.ColorFormatter",
                "fmt": "%(asctime)s - %(request_id)s - %(name)s - %(levelname)s - %(message)s",
            },
            "file": {
                "()": "resource_admin.core.logger._TZFormatter",
                "fmt": "%(asctime)s - %(request_id)s - %(name)s - %(levelname)s - %(message)s",
            },
            "json": {"()": "resource_admin.core.logger.JsonFormatter"},
        },
        "filters": {"request_id": {"()": "resource_admin.core.logger.RequestIdFilter"}},
        "handlers": {
            "console": {**handler, "class": "logging.StreamHandler", "formatter": formatter_name},
            "file": {
                **handler,
                "class": "logging.handlers.TimedRotatingFileHandler",
                "formatter": "json" if settings.log_json else "file",
                "filename": str(settings.log_file_path),
                "when": "midnight",
                "backupCount": 14,
                "encoding": "utf-8",
                "delay": True,
            },
        },
        "loggers": {
            "resource_admin": {
                "handlers": ["console", "file"],
                "level": settings.log_level,
                "propagate": False,
            },
        },
    }


def setup_logging() -> None:
    """初始化日志系统；日志目录不存在时自动创建。"""
    get_settings().log_directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config())


logger = logging.getLogger("resource_admin")


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)
