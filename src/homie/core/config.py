"""配置常量模块 -- 可通过环境变量覆盖

包含离线缓存路径、日历时区、周起始日、周期任务生成批量等可配置常量。
"""

import os
from pathlib import Path
from zoneinfo import ZoneInfo


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("HOMIE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取离线缓存 SQLite 数据库路径"""
    return os.environ.get(
        "HOMIE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "homie.db"),
    )


def get_timezone() -> ZoneInfo:
    """获取日历时区（同日判断、周期推算均在此时区内进行）"""
    return ZoneInfo(os.environ.get("HOMIE_TIMEZONE", "UTC"))


def get_week_start() -> int:
    """获取一周起始日（0=周一 ... 6=周日）"""
    return int(os.environ.get("HOMIE_WEEK_START", "0")) % 7


# 新建周期任务时立即生成的实例数量
INITIAL_OCCURRENCE_BATCH: int = int(
    os.environ.get("HOMIE_INITIAL_OCCURRENCE_BATCH", "10")
)

# 完成一次实例后，保证至少保留的未完成未来实例数量
TOPUP_MIN_PENDING: int = int(os.environ.get("HOMIE_TOPUP_MIN_PENDING", "3"))

# 启动/合并后默认补齐的天数
DEFAULT_WINDOW_DAYS: int = 7

# upcoming 查询默认天数
UPCOMING_DEFAULT_DAYS: int = 30

# 单次生成最大推算步数（防止超远 horizon 死循环）
MAX_GENERATION_STEPS: int = 5000

# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("HOMIE_SSE_HEARTBEAT_INTERVAL", "15")
)
