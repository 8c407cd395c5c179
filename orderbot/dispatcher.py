"""
Dispatcher: 把 PENDING 订单派给空闲 Bot

取单优先级：VIP 优先；同级按提交顺序（FIFO）。
选 Bot：按池顺序取第一个空闲 Bot（空闲 = 没有 IN_PROGRESS 订单指向它）。
每次触发都循环到不动点：没有待处理订单或没有空闲 Bot 为止。
不抢占：已在处理的订单只会因 -bot 被打断。
"""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from .domain import IN_PROGRESS, PENDING, Order, Worker, busy_worker_ids
from .ledger import OrderLedger
from .pool import WorkerPool

logger = logging.getLogger(__name__)


def select_next_order(orders: Iterable[Order]) -> Optional[Order]:
    """返回下一张应派出的订单：第一张 VIP PENDING，否则第一张 PENDING。"""
    first_normal: Optional[Order] = None
    for order in orders:
        if order.status != PENDING:
            continue
        if order.priority:
            return order
        if first_normal is None:
            first_normal = order
    return first_normal


def select_available_worker(
    workers: Sequence[Worker], orders: Iterable[Order]
) -> Optional[Worker]:
    busy = busy_worker_ids(orders)
    for worker in workers:
        if worker.id not in busy:
            return worker
    return None


class Dispatcher:
    def __init__(
        self,
        ledger: OrderLedger,
        pool: WorkerPool,
        processing_duration_ticks: int = 10,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.ledger = ledger
        self.pool = pool
        self.processing_duration_ticks = processing_duration_ticks
        self._lock = lock if lock is not None else threading.RLock()

    def run(self) -> List[Order]:
        """执行一次完整派单（锁内循环到不动点），返回本次派出的订单。"""
        dispatched: List[Order] = []
        with self._lock:
            while True:
                orders = self.ledger.snapshot()
                order = select_next_order(orders)
                if order is None:
                    break
                worker = select_available_worker(self.pool.snapshot(), orders)
                if worker is None:
                    break
                dispatched.extend(self._assign(order, worker))
        for order in dispatched:
            logger.info(
                "Order %s (%s) dispatched to worker %s", order.id, order.kind, order.assigned_worker
            )
        return dispatched

    def _assign(self, order: Order, worker: Worker) -> List[Order]:
        assert worker.id not in self.ledger.busy_worker_ids(), f"worker {worker.id} is busy"
        return self.ledger.mutate(
            lambda o: o.id == order.id,
            lambda o: replace(
                o,
                status=IN_PROGRESS,
                assigned_worker=worker.id,
                remaining=self.processing_duration_ticks,
            ),
        )
