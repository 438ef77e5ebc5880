"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出

homie.sync 的日志事件默认携带 account_id / sync_mode，
级别可由 HOMIE_SYNC_LOG_LEVEL 单独调整。
任何事件中的密钥字段在渲染前被遮蔽。
"""

import logging
import os
from collections.abc import MutableMapping
from typing import Any

import structlog

from homie.sync import SyncConfig

SYNC_LOGGER_NAME = "homie.sync"

# 渲染前遮蔽的字段名（小写比较）
SECRET_FIELDS = frozenset({"remote_api_key", "api_key", "apikey", "authorization"})
REDACTED = "***"


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """遮蔽密钥字段"""
    for key in event_dict:
        if key.lower() in SECRET_FIELDS and event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


class SyncContextInjector:
    """为 homie.sync 下的事件补充默认的账号与同步模式

    事件自带同名字段时保留事件的值。
    """

    def __init__(self, account_id: str, sync_mode: str) -> None:
        self._defaults = {"account_id": account_id, "sync_mode": sync_mode}

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        name = event_dict.get("logger") or ""
        if name == SYNC_LOGGER_NAME or name.startswith(SYNC_LOGGER_NAME + "."):
            for key, value in self._defaults.items():
                event_dict.setdefault(key, value)
        return event_dict


def _level(raw: str | None, default: int) -> int:
    if not raw:
        return default
    return getattr(logging, raw.upper(), default)


def setup_logging(config: SyncConfig | None = None) -> None:
    """初始化 structlog 配置

    环境变量：
    - HOMIE_LOG_FORMAT: "json" 结构化输出；"dev"（默认）可读输出
    - HOMIE_LOG_LEVEL: 根日志级别，默认 INFO
    - HOMIE_SYNC_LOG_LEVEL: homie.sync 日志级别，未设置时跟随根级别

    Args:
        config: 同步配置，提供 sync 事件的默认上下文
    """
    log_format = os.environ.get("HOMIE_LOG_FORMAT", "dev")
    root_level = _level(os.environ.get("HOMIE_LOG_LEVEL"), logging.INFO)
    sync_level = _level(os.environ.get("HOMIE_SYNC_LOG_LEVEL"), root_level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if config is not None:
        shared_processors.append(SyncContextInjector(config.account_id, config.sync_mode))
    shared_processors += [
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(root_level)
    logging.getLogger(SYNC_LOGGER_NAME).setLevel(sync_level)
