from __future__ import annotations

import logging
import sys
from typing import Any, Dict

from .config import SchedulerSettings
from .scheduler import Scheduler


_CLEAR = "\033[2J\033[H"

ORDER_HEADERS = ["ID", "Item", "Type", "Status", "Countdown"]
BOT_HEADERS = ["ID", "Name"]
ACTIVE_HEADERS = ["ID", "Item", "Type", "Status", "Handling by"]
COMPLETED_HEADERS = ["ID", "Item", "Status"]


def _clear_screen() -> None:
    sys.stdout.write(_CLEAR)
    sys.stdout.flush()


def _format_table(headers: list[str], rows: list[list[str]], empty: str = "<empty>") -> str:
    """四个视图共用的纯文本表格；没有行时只输出 empty 占位。"""
    if not rows:
        return empty
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]

    def fmt_row(cols: list[str]) -> str:
        return " | ".join(col.ljust(w) for col, w in zip(cols, widths)).rstrip()

    lines = [fmt_row(headers), "-+-".join("-" * w for w in widths)]
    lines.extend(fmt_row(r) for r in rows)
    return "\n".join(lines)


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _render_status(data: Dict[str, Any]) -> str:
    # My Orders
    order_rows = [[str(o.id), o.item, o.kind, o.status, _cell(o.remaining)] for o in data.get("orders", [])]
    orders = _format_table(ORDER_HEADERS, order_rows)

    # Bots
    bot_rows = [[str(b.id), b.name] for b in data.get("bots", [])]
    bots = _format_table(BOT_HEADERS, bot_rows, empty="<none>")

    # Pending / In progress（VIP 在前）
    active_rows = [[str(o.id), o.item, o.kind, o.status, _cell(name)] for o, name in data.get("active", [])]
    active = _format_table(ACTIVE_HEADERS, active_rows)

    # Completed
    completed = data.get("completed", [])
    compl_rows = [[str(o.id), o.item, o.status] for o in completed]
    compl = _format_table(COMPLETED_HEADERS, compl_rows, empty="<none>")

    clock = data.get("clock", {})
    parts = [
        "== My Orders ==\n" + orders,
        "\n== Bots ==\n" + bots,
        "\n== Pending ==\n" + active,
        f"\n== Completed ({data.get('completed_count', len(completed))}) ==\n" + compl,
        f"\nclock: {'running' if clock.get('running') else 'stopped'}, ticks={clock.get('ticks', 0)}",
    ]
    return "\n".join(parts)


def print_result(res: Dict[str, Any]) -> None:
    if not isinstance(res, dict):
        print(res)
        return
    if res.get("ok") is False:
        print(f"ERR: {res.get('error')}")
        if "usage" in res:
            print(res["usage"])
    else:
        data = res.get("data")
        if isinstance(data, str):
            print(data)
        elif isinstance(data, dict) and data.get("clear"):
            _clear_screen()
        elif isinstance(data, dict) and data.get("orders") is not None:
            print(_render_status(data))
        else:
            print(res)


def _configure_logging(settings: SchedulerSettings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def repl(sched: Scheduler) -> None:
    sched.start()
    print("Type 'help' to see commands. Type 'exit' to quit.")
    try:
        while True:
            try:
                line = input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break
            res = sched.handle_cmd(line)
            data = res.get("data")
            if isinstance(data, dict) and data.get("exit"):
                break
            print_result(res)
    finally:
        sched.shutdown()


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    settings = SchedulerSettings.from_env()
    _configure_logging(settings)
    sched = Scheduler(settings)
    if not argv:
        repl(sched)
        return 0
    # one-shot mode: join argv to a single command
    res = sched.handle_cmd(" ".join(argv))
    print_result(res)
    sched.shutdown()
    return 0 if res.get("ok") else 1


if __name__ == "__main__":
    raise SystemExit(main())
