"""
WorkerPool: 有序的 Bot 池

职责：
- +bot：在队尾追加一个 Bot，名称由加入后的池大小决定（"Bot N"）
- -bot：只移除最新（队尾）的 Bot；移除前把它正在处理的订单退回 PENDING
- id 单调递增，被移除的 id 不复用
- 成员变化后调用 on_change（由 Scheduler 接到 Dispatcher）
"""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from .domain import IN_PROGRESS, PENDING, Worker, WorkerId
from .ledger import OrderLedger

logger = logging.getLogger(__name__)


class WorkerPool:
    def __init__(
        self,
        ledger: OrderLedger,
        lock: Optional[threading.RLock] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.ledger = ledger
        self._workers: List[Worker] = []
        self._lock = lock if lock is not None else threading.RLock()
        self._on_change = on_change
        self._next_id: WorkerId = 1

    def add_worker(self) -> Worker:
        """创建一个新 Bot 放到队尾，然后触发重新派单。"""
        with self._lock:
            wid = self._next_id
            self._next_id += 1
            worker = Worker(id=wid, name=f"Bot {len(self._workers) + 1}")
            self._workers.append(worker)
        logger.info("Worker %s (%s) added", worker.id, worker.name)
        if self._on_change is not None:
            self._on_change()
        return worker

    def remove_worker(self) -> Optional[Worker]:
        """移除最新的 Bot。池为空时什么也不做，返回 None。

        移除前先把该 Bot 的 IN_PROGRESS 订单退回 PENDING
        （assigned_worker / remaining 一并清空），订单本身不删除。
        """
        with self._lock:
            if not self._workers:
                return None
            worker = self._workers[-1]
            evicted = self.ledger.mutate(
                lambda o: o.status == IN_PROGRESS and o.assigned_worker == worker.id,
                lambda o: replace(o, status=PENDING, assigned_worker=None, remaining=None),
            )
            assert len(evicted) <= 1, f"worker {worker.id} held {len(evicted)} active orders"
            self._workers.pop()
        for order in evicted:
            logger.info("Order %s returned to pending after worker %s was removed", order.id, worker.id)
        logger.info("Worker %s (%s) removed", worker.id, worker.name)
        if self._on_change is not None:
            self._on_change()
        return worker

    def snapshot(self) -> Tuple[Worker, ...]:
        """按加入顺序返回全部 Bot。"""
        with self._lock:
            return tuple(self._workers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._workers)
