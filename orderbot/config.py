"""
Config: 调度器与 CLI 的运行时配置

从环境变量读取（前缀 ORDERBOT_），缺省值即参考行为：1s 一个 tick，每单 10 个 tick。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


@dataclass(slots=True)
class SchedulerSettings:
    """时钟 / 派单常量与 CLI 展示选项。

    - tick_interval_ms: tick 间隔（毫秒）
    - processing_duration_ticks: 派单时 remaining 的初始值
    - status_limit: status 每个列表最多展示的条数
    - log_level: 日志级别名称（如 INFO / DEBUG）
    """

    tick_interval_ms: int = 1_000
    processing_duration_ticks: int = 10
    status_limit: int = 50
    log_level: str = "WARNING"

    @property
    def tick_interval_sec(self) -> float:
        return self.tick_interval_ms / 1000.0

    @classmethod
    def from_env(cls) -> SchedulerSettings:
        """读取环境变量并校验，未设置的项取缺省值。"""

        settings = cls(
            tick_interval_ms=int(os.getenv("ORDERBOT_TICK_INTERVAL_MS", "1000")),
            processing_duration_ticks=int(
                os.getenv("ORDERBOT_PROCESSING_DURATION_TICKS", "10"),
            ),
            status_limit=int(os.getenv("ORDERBOT_STATUS_LIMIT", "50")),
            log_level=os.getenv("ORDERBOT_LOG_LEVEL", "WARNING").strip().upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """数值项必须为正，日志级别必须是 logging 认识的名字；否则抛 ValueError。"""
        if self.tick_interval_ms <= 0:
            raise ValueError("ORDERBOT_TICK_INTERVAL_MS must be positive")
        if self.processing_duration_ticks <= 0:
            raise ValueError("ORDERBOT_PROCESSING_DURATION_TICKS must be positive")
        if self.status_limit <= 0:
            raise ValueError("ORDERBOT_STATUS_LIMIT must be positive")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown ORDERBOT_LOG_LEVEL: {self.log_level}")
