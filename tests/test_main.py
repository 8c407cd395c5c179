from __future__ import annotations

from orderbot import main as cli
from orderbot.domain import IN_PROGRESS


def test_handle_cmd_order_and_bot_commands(sched) -> None:
    assert sched.handle_cmd("+bot")["ok"] is True
    res = sched.handle_cmd("NV")

    assert res["ok"] is True
    assert "VIP" in res["data"]
    assert sched.orders()[0].status == IN_PROGRESS

    assert sched.handle_cmd("-bot")["ok"] is True
    empty = sched.handle_cmd("remove-bot")
    assert empty == {"ok": True, "cmd": "remove-bot", "data": "no bot to remove"}


def test_handle_cmd_tick_and_status(sched) -> None:
    sched.handle_cmd("add-bot")
    sched.handle_cmd("nn")
    for _ in range(10):
        sched.handle_cmd("tick")

    data = sched.handle_cmd("status")["data"]

    assert data["completed_count"] == 1


def test_handle_cmd_rejects_unknown_and_empty(sched) -> None:
    for line in ("", "fly"):
        res = sched.handle_cmd(line)
        assert res["ok"] is False
        assert "usage" in res


def test_handle_cmd_control_words(sched) -> None:
    assert sched.handle_cmd("cls")["data"] == {"clear": True}
    assert sched.handle_cmd("quit")["data"] == {"exit": True}
    assert "Commands:" in sched.handle_cmd("?")["data"]


def test_render_status_lists_every_view(sched) -> None:
    sched.add_worker()
    sched.submit_order("Fries")
    sched.submit_order("Cola", priority=True)

    text = cli._render_status(sched.status())

    assert "== My Orders ==" in text
    assert "Bot 1" in text
    assert "Fries" in text and "Cola" in text
    assert "clock: stopped" in text


def test_main_one_shot_mode(capsys, monkeypatch) -> None:
    monkeypatch.delenv("ORDERBOT_LOG_LEVEL", raising=False)

    assert cli.main(["new-vip"]) == 0
    assert "VIP" in capsys.readouterr().out

    assert cli.main(["bogus"]) == 1
    assert "ERR: unknown command: bogus" in capsys.readouterr().out


def test_format_table_pads_columns_and_uses_empty_placeholder() -> None:
    text = cli._format_table(["ID", "Name"], [["1", "Bot 1"], ["22", "B"]])

    assert text.splitlines() == [
        "ID | Name",
        "---+------",
        "1  | Bot 1",
        "22 | B",
    ]
    assert cli._format_table(cli.BOT_HEADERS, [], empty="<none>") == "<none>"
    assert cli._format_table(cli.ORDER_HEADERS, []) == "<empty>"


def test_empty_status_renders_placeholders(sched) -> None:
    text = cli._render_status(sched.status())

    assert "== My Orders ==\n<empty>" in text
    assert "== Bots ==\n<none>" in text
    assert "== Completed (0) ==\n<none>" in text


def test_clear_command_writes_ansi_reset(sched, capsys) -> None:
    cli.print_result(sched.handle_cmd("clear"))

    assert capsys.readouterr().out == "\033[2J\033[H"
