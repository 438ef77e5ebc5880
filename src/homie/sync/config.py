"""SyncConfig -- 远端同步配置加载

从环境变量加载配置，不硬编码远端地址与账号。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class SyncConfig(BaseModel):
    """同步配置 -- 从环境变量加载

    环境变量:
        HOMIE_REMOTE_URL: 远端 REST 基础地址
        HOMIE_REMOTE_KEY: 远端访问密钥
        HOMIE_ACCOUNT_ID: 当前账号 ID
        HOMIE_SYNC_MODE: 同步模式（rest/offline）
        HOMIE_REMOTE_TIMEOUT_S: 请求超时（秒，默认 10）
    """

    remote_base_url: str = Field(
        default="http://localhost:54321",
        description="远端 REST（PostgREST 风格）基础 URL",
    )
    remote_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="远端访问密钥",
    )
    account_id: str = Field(
        default="local",
        description="当前账号 ID（任务 owner_id）",
    )
    sync_mode: Literal["rest", "offline"] = Field(
        default="offline",
        description="同步模式：rest / offline（进程内远端）",
    )
    timeout_s: int = Field(
        default=10,
        ge=1,
        description="远端请求超时（秒）",
    )


def load_sync_config() -> SyncConfig:
    """从环境变量加载同步配置

    环境变量映射:
        HOMIE_REMOTE_URL -> remote_base_url
        HOMIE_REMOTE_KEY -> remote_api_key
        HOMIE_ACCOUNT_ID -> account_id (默认 "local")
        HOMIE_SYNC_MODE -> sync_mode (默认 "offline")
        HOMIE_REMOTE_TIMEOUT_S -> timeout_s (默认 10)

    Returns:
        SyncConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("HOMIE_REMOTE_URL"):
        kwargs["remote_base_url"] = val

    if val := os.environ.get("HOMIE_REMOTE_KEY"):
        kwargs["remote_api_key"] = SecretStr(val)

    if val := os.environ.get("HOMIE_ACCOUNT_ID"):
        kwargs["account_id"] = val

    if val := os.environ.get("HOMIE_SYNC_MODE"):
        kwargs["sync_mode"] = val

    if val := os.environ.get("HOMIE_REMOTE_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="HOMIE_REMOTE_TIMEOUT_S",
                value=val,
                fallback=10,
            )

    return SyncConfig(**kwargs)
