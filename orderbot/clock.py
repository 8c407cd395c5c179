"""
CountdownClock: 倒计时时钟的线程执行体

职责：
- 每隔固定间隔（默认 1s）tick 一次：所有 IN_PROGRESS 订单 remaining - 1
- remaining 到 0 时置为 COMPLETED 并清空 remaining；assigned_worker 保留作历史记录
- tick 后回调 on_tick(completed)，由 Scheduler 决定是否重新派单
- 支持启动/停止（均幂等）；stop 返回后不会再有 tick，remaining 原地冻结
"""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, Any, List, Optional

from .domain import COMPLETED, IN_PROGRESS, Order
from .ledger import OrderLedger

logger = logging.getLogger(__name__)

# 等待共享锁时复查停止信号的间隔（秒）
_LOCK_POLL_SEC = 0.05


def _advance(order: Order) -> Order:
    assert order.remaining is not None and order.remaining > 0
    remaining = order.remaining - 1
    if remaining == 0:
        return replace(order, status=COMPLETED, remaining=None)
    return replace(order, remaining=remaining)


class CountdownClock:
    """周期驱动器（线程友好）。

    内部字段：
    - ledger: OrderLedger
    - interval_sec: float = 1.0
    - _thread: Optional[threading.Thread]，未启动或已停止时为 None
    - _stop_event: threading.Event，每次 start 新建一个
    - _lifecycle: threading.Lock，串行化 start/stop
    """

    def __init__(
        self,
        ledger: OrderLedger,
        interval_sec: float = 1.0,
        lock: Optional[threading.RLock] = None,
        on_tick: Optional[Callable[[List[Order]], None]] = None,
    ) -> None:
        """初始化时钟，但不启动线程。"""
        self.ledger = ledger
        self.interval_sec = interval_sec
        self._lock = lock if lock is not None else threading.RLock()
        self._on_tick = on_tick

        self._ticks = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lifecycle = threading.Lock()

    def start(self) -> None:
        """启动 tick 线程；已在运行时什么也不做。"""
        with self._lifecycle:
            if self._thread is not None:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name="CountdownClock", daemon=True
            )
            self._thread.start()
        logger.debug("Clock started (interval %.3fs)", self.interval_sec)

    def stop(self, join: bool = True) -> None:
        """请求停止；join=True 时等待线程结束，返回后保证不再 tick。"""
        with self._lifecycle:
            thread = self._thread
            self._thread = None
            self._stop_event.set()
        if thread is None:
            return
        if join and thread is not threading.current_thread():
            thread.join()
        logger.debug("Clock stopped after %d ticks", self._ticks)

    @property
    def running(self) -> bool:
        with self._lifecycle:
            return self._thread is not None

    def status(self) -> Dict[str, Any]:
        """返回状态快照：{running, ticks, interval_sec}。"""
        return {
            "running": self.running,
            "ticks": self._ticks,
            "interval_sec": self.interval_sec,
        }

    def tick(self) -> List[Order]:
        """推进一个时间单位，返回本次 tick 完成的订单。"""
        with self._lock:
            advanced = self.ledger.mutate(
                lambda o: o.status == IN_PROGRESS and o.remaining is not None and o.remaining > 0,
                _advance,
            )
            self._ticks += 1
        completed = [o for o in advanced if o.status == COMPLETED]
        logger.debug("Tick %d advanced %d orders", self._ticks, len(advanced))
        for order in completed:
            logger.info("Order %s completed by worker %s", order.id, order.assigned_worker)
        if self._on_tick is not None:
            self._on_tick(completed)
        return completed

    # -------------------- 内部逻辑 --------------------

    def _run(self, stop_event: threading.Event) -> None:
        """线程主体：等待一个间隔，未被停止则 tick。

        取共享锁时分段等待并复查 stop_event：持锁方（如 batch 内）调用 stop()
        时本线程会放弃这次 tick 并退出，join 不会卡死。
        """
        while not stop_event.wait(self.interval_sec):
            while not self._lock.acquire(timeout=_LOCK_POLL_SEC):
                if stop_event.is_set():
                    return
            try:
                if stop_event.is_set():
                    return
                self.tick()
            finally:
                self._lock.release()
