"""
Scheduler: 系统管理类

职责：
- 用同一把 RLock 装配 OrderLedger / WorkerPool / Dispatcher / CountdownClock
- 任一台账或 Bot 池变化后同步跑一次 Dispatcher；tick 完成订单后也重新派单
- 提供 CLI 需要的入口：新建订单、加/减 Bot、状态查询、时钟启停、优雅退出
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .clock import CountdownClock
from .config import SchedulerSettings
from .dispatcher import Dispatcher
from .domain import COMPLETED, IN_PROGRESS, PENDING, Order, OrderId, Worker, WorkerId
from .ledger import OrderLedger
from .pool import WorkerPool

logger = logging.getLogger(__name__)


class Scheduler:
    """系统管理者。

    内部字段：
    - settings: SchedulerSettings
    - ledger / pool / dispatcher / clock: 共用 self._lock
    """

    def __init__(self, settings: Optional[SchedulerSettings] = None) -> None:
        """初始化各组件，时钟不自动启动（调用 start()）。"""
        self.settings = settings if settings is not None else SchedulerSettings.from_env()
        self._lock = threading.RLock()
        self._batch_depth = 0
        self.ledger = OrderLedger(lock=self._lock, on_change=self._dispatch)
        self.pool = WorkerPool(self.ledger, lock=self._lock, on_change=self._dispatch)
        self.dispatcher = Dispatcher(
            self.ledger,
            self.pool,
            processing_duration_ticks=self.settings.processing_duration_ticks,
            lock=self._lock,
        )
        self.clock = CountdownClock(
            self.ledger,
            interval_sec=self.settings.tick_interval_sec,
            lock=self._lock,
            on_tick=self._on_tick,
        )

    # -------------------- 命令 --------------------

    def submit_order(self, item: Optional[str] = None, priority: bool = False) -> OrderId:
        return self.ledger.submit(item, priority)

    def add_worker(self) -> WorkerId:
        return self.pool.add_worker().id

    def remove_worker(self) -> Optional[WorkerId]:
        """移除最新 Bot，返回其 id；池为空时返回 None（不是错误）。"""
        worker = self.pool.remove_worker()
        return None if worker is None else worker.id

    @contextmanager
    def batch(self) -> Iterator["Scheduler"]:
        """批量执行命令：块内持锁、暂缓派单，退出时统一跑一次 Dispatcher。

        用于让多条命令落在同一个逻辑派单轮次里（如先后提交普通单与 VIP 单）。
        """
        with self._lock:
            self._batch_depth += 1
            try:
                yield self
            finally:
                self._batch_depth -= 1
                if self._batch_depth == 0:
                    self.dispatcher.run()

    # -------------------- 查询 --------------------

    def orders(self) -> Tuple[Order, ...]:
        return self.ledger.snapshot()

    def workers(self) -> Tuple[Worker, ...]:
        return self.pool.snapshot()

    def snapshot(self) -> Tuple[Tuple[Order, ...], Tuple[Worker, ...]]:
        """在同一次持锁内读取订单与 Bot，保证两者出自同一时刻。"""
        with self._lock:
            return self.ledger.snapshot(), self.pool.snapshot()

    def status(self) -> Dict[str, Any]:
        """返回系统快照，供 CLI 渲染。

        - orders: 全部订单（提交顺序，含倒计时）
        - bots: 全部 Bot
        - active: PENDING + IN_PROGRESS，VIP 在前，附处理中的 Bot 名称
        - completed: 已完成订单
        """
        limit = self.settings.status_limit
        orders, workers = self.snapshot()
        names = {w.id: w.name for w in workers}
        active = sorted(
            (o for o in orders if o.status in (PENDING, IN_PROGRESS)),
            key=lambda o: not o.priority,
        )
        completed = [o for o in orders if o.status == COMPLETED]
        return {
            "orders": list(orders[-limit:]),
            "bots": list(workers),
            "active": [
                (o, names.get(o.assigned_worker) if o.status == IN_PROGRESS else None)
                for o in active[:limit]
            ],
            "completed": completed[-limit:],
            "completed_count": len(completed),
            "clock": self.clock.status(),
        }

    # -------------------- 时钟生命周期 --------------------

    def start(self) -> None:
        self.clock.start()

    def stop(self) -> None:
        self.clock.stop(join=True)

    def shutdown(self) -> None:
        """优雅关闭：停止时钟并等待线程退出；订单与 Bot 状态原样保留。"""
        self.stop()

    # -------------------- CLI / CMD I/O --------------------

    def handle_cmd(self, line: str) -> Dict[str, Any]:
        """解析并执行一条命令行，返回结构化结果（不直接打印）。

        认可指令（大小写统一转小写处理）：
        - "new-normal" / "nn"      -> 创建普通订单
        - "new-vip" / "nv"         -> 创建 VIP 订单
        - "+bot" / "add-bot"        -> 新增一个 Bot
        - "-bot" / "remove-bot"     -> 移除最新 Bot（池为空时为空操作）
        - "tick"                    -> 手动推进一个 tick
        - "status"                  -> 返回系统快照
        - "clear" / "cls"          -> 清屏
        - "exit" / "quit"          -> 请求退出（由外层 CLI 决定是否终止进程）

        返回值格式：{"ok": bool, "cmd": str, "data": Any | None, "error": str | None}
        未知命令：ok=False，并附带 error 与 usage。
        """
        cmd = (line or "").strip().lower()
        if not cmd:
            return {"ok": False, "cmd": cmd, "error": "empty command", "usage": self.help_text()}
        if cmd in ("help", "h", "?"):
            return {"ok": True, "cmd": cmd, "data": self.help_text()}
        if cmd in ("new-normal", "nn", "new-vip", "nv"):
            oid = self.submit_order(priority=cmd in ("new-vip", "nv"))
            order = self.ledger.get(oid)
            return {"ok": True, "cmd": cmd, "data": f"Order {oid} ({order.item}, {order.kind}) -> {order.status}"}
        if cmd in ("+bot", "add-bot"):
            wid = self.add_worker()
            return {"ok": True, "cmd": cmd, "data": f"Bot {wid} added ({len(self.pool)} total)"}
        if cmd in ("-bot", "remove-bot"):
            wid = self.remove_worker()
            if wid is None:
                return {"ok": True, "cmd": cmd, "data": "no bot to remove"}
            return {"ok": True, "cmd": cmd, "data": f"Bot {wid} removed ({len(self.pool)} left)"}
        if cmd == "tick":
            completed = self.clock.tick()
            return {"ok": True, "cmd": cmd, "data": f"tick: {len(completed)} order(s) completed"}
        if cmd == "status":
            return {"ok": True, "cmd": cmd, "data": self.status()}
        if cmd in ("clear", "cls"):
            return {"ok": True, "cmd": cmd, "data": {"clear": True}}
        if cmd in ("exit", "quit"):
            return {"ok": True, "cmd": cmd, "data": {"exit": True}}
        logger.debug("Unknown command %r", cmd)
        return {"ok": False, "cmd": cmd, "error": f"unknown command: {cmd}", "usage": self.help_text()}

    def help_text(self) -> str:
        """返回 CLI 帮助文本，供外层打印。"""
        return (
            "Commands:\n"
            "  new-normal | nn   - 新建普通订单\n"
            "  new-vip    | nv   - 新建 VIP 订单\n"
            "  +bot       | add-bot   - 增加一个 Bot\n"
            "  -bot       | remove-bot- 移除最新 Bot\n"
            "  tick               - 手动推进一个 tick\n"
            "  clear | cls        - 清屏\n"
            "  status             - 查看系统状态\n"
            "  help|h|?           - 帮助\n"
            "  exit|quit          - 退出\n"
        )

    # -------------------- 回调 --------------------

    def _dispatch(self) -> None:
        # batch 内暂缓；_batch_depth 只在持锁时读写
        with self._lock:
            if self._batch_depth == 0:
                self.dispatcher.run()

    def _on_tick(self, completed: List[Order]) -> None:
        """有订单完成时，空出的 Bot 立即参与下一轮派单。"""
        if completed:
            self._dispatch()
