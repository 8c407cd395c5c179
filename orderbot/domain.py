"""
Domain models: 统一的订单 / Bot 定义

只在此处定义 Order 与 Worker，其他模块一律从这里导入，避免重复定义。
两者都是不可变值：状态迁移通过 dataclasses.replace 生成新值。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Set


OrderStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED"]

PENDING: OrderStatus = "PENDING"
IN_PROGRESS: OrderStatus = "IN_PROGRESS"
COMPLETED: OrderStatus = "COMPLETED"

OrderId = int
WorkerId = int


@dataclass(frozen=True)
class Order:
    """订单实体

    - id: 唯一递增整数，由 OrderLedger 负责生成
    - item: 展示用名称（如 "Food 3"）
    - status: 'PENDING' | 'IN_PROGRESS' | 'COMPLETED'（默认 PENDING）
    - priority: True 表示 VIP
    - assigned_worker: 处理该单的 Bot id；完成后保留作历史记录，被驱逐时清空
    - remaining: 剩余 tick 数，仅在 IN_PROGRESS 时有值
    """

    id: OrderId
    item: str
    priority: bool = False
    status: OrderStatus = PENDING
    assigned_worker: Optional[WorkerId] = None
    remaining: Optional[int] = None

    @property
    def kind(self) -> str:
        return "VIP" if self.priority else "NORMAL"


@dataclass(frozen=True)
class Worker:
    """Bot 实体：id 唯一且不复用，name 由加入时的池大小决定。"""

    id: WorkerId
    name: str


def busy_worker_ids(orders: Iterable[Order]) -> Set[WorkerId]:
    """返回当前正被 IN_PROGRESS 订单占用的 Bot id 集合。

    Bot 是否空闲只由订单推导，不单独存储忙碌标记。
    """
    return {
        o.assigned_worker
        for o in orders
        if o.status == IN_PROGRESS and o.assigned_worker is not None
    }
