"""配置常量模块 -- 可通过环境变量覆盖

包含本地数据库路径、SSE 心跳间隔、变更广播队列容量等可配置常量。
后端选择（sqlite / rest）见 daybook.remote.config。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("DAYBOOK_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取本地 SQLite 数据库路径"""
    return os.environ.get(
        "DAYBOOK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "daybook.db"),
    )


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("DAYBOOK_SSE_HEARTBEAT_INTERVAL", "15")
)

# 每个变更订阅者的队列容量（写满即丢弃该订阅者）
HUB_QUEUE_SIZE: int = int(os.environ.get("DAYBOOK_HUB_QUEUE_SIZE", "100"))

# 首页「即将到期」列表条数
UPCOMING_LIMIT: int = int(os.environ.get("DAYBOOK_UPCOMING_LIMIT", "5"))

# 周视图展示的工作日数量（周一至周五）
WORK_WEEK_LENGTH: int = 5
