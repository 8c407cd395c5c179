"""
OrderLedger: 线程安全的订单台账

设计要点：
- 按提交顺序保存全部订单（list），订单永不删除；提交顺序即同优先级内的 FIFO 依据。
- 订单是不可变值：状态变化由 mutate() 用新值整体替换。
- 线程安全：与 WorkerPool / Dispatcher / CountdownClock 共用同一把 RLock，
  保证一次派单或一次 tick 对外表现为原子操作。
- 新单提交后调用 on_change（由 Scheduler 接到 Dispatcher）。
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Set, Tuple

from .domain import Order, OrderId, WorkerId, busy_worker_ids

logger = logging.getLogger(__name__)


class OrderLedger:
    """订单集合与生命周期状态的唯一持有者。

    线程安全约定：
    - self._orders: List[Order]     # 提交顺序
    - self._lock: threading.RLock   # 保护所有共享状态，可与其他组件共享
    - 所有公有方法在进入后获取 self._lock
    """

    def __init__(
        self,
        lock: Optional[threading.RLock] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._orders: List[Order] = []
        self._lock = lock if lock is not None else threading.RLock()
        self._on_change = on_change
        self._next_id: OrderId = 1

    # -------------------- 写入 API --------------------

    def submit(self, item: Optional[str] = None, priority: bool = False) -> OrderId:
        """追加一张 PENDING 新单并返回其 id；随后触发重新派单。

        item 为空时按台账长度生成 "Food N"。
        """
        with self._lock:
            oid = self._next_id
            self._next_id += 1
            label = item if item is not None else f"Food {len(self._orders) + 1}"
            order = Order(id=oid, item=label, priority=bool(priority))
            self._orders.append(order)
        logger.info("Order %s (%s, %s) submitted", oid, label, order.kind)
        if self._on_change is not None:
            self._on_change()
        return oid

    def mutate(
        self,
        predicate: Callable[[Order], bool],
        transform: Callable[[Order], Order],
    ) -> List[Order]:
        """对所有满足 predicate 的订单应用 transform，返回替换后的新值。

        - 整个遍历在锁内完成，读者看不到中间状态
        - transform 不得改变 id 与 priority
        - 不触发 on_change：调用方（Dispatcher / Clock / Pool）自行负责
        """
        changed: List[Order] = []
        with self._lock:
            for idx, order in enumerate(self._orders):
                if not predicate(order):
                    continue
                new = transform(order)
                assert new.id == order.id and new.priority == order.priority, (
                    f"order {order.id}: identity and priority are immutable"
                )
                self._orders[idx] = new
                changed.append(new)
        return changed

    # -------------------- 查询/快照 API --------------------

    def snapshot(self) -> Tuple[Order, ...]:
        """按提交顺序返回全部订单（不可变值的元组）。"""
        with self._lock:
            return tuple(self._orders)

    def get(self, order_id: OrderId) -> Optional[Order]:
        with self._lock:
            for order in self._orders:
                if order.id == order_id:
                    return order
            return None

    def busy_worker_ids(self) -> Set[WorkerId]:
        with self._lock:
            return busy_worker_ids(self._orders)

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)
