import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from notifications import telegram_bot
from notifications.telegram_bot import split_message


def test_split_short_message():
    assert split_message("hello") == ["hello"]


def test_split_prefers_paragraph_boundaries():
    msg = "a" * 30 + "\n\n" + "b" * 30

    parts = split_message(msg, max_length=40)

    assert parts == ["a" * 30, "b" * 30]


def test_split_keeps_pre_blocks_balanced():
    rows = "\n".join(f"| row {i:<3} |" for i in range(40))
    msg = f"<b>Table</b>\n<pre>\n{rows}\n</pre>"

    parts = split_message(msg, max_length=120)

    assert len(parts) > 1
    for part in parts:
        assert len(part) <= 120 + len("</pre>")
        assert part.count("<pre>") == part.count("</pre>")


def test_split_without_newlines():
    parts = split_message("x" * 95, max_length=40)

    assert [len(p) for p in parts] == [40, 40, 15]


def test_send_alert_routes_by_channel():
    with patch.object(telegram_bot, "settings") as settings, patch.object(
        telegram_bot, "_send_v2", new_callable=AsyncMock
    ) as send:
        settings.TELEGRAM_TOKEN = "token"
        settings.TRANSACTION_ALERTS_GROUP_CHATID = "-100"
        settings.SYSTEM_ERROR_ALERTS_GROUP_CHATID = "-200"

        asyncio.run(telegram_bot.send_alert("hi", channel="error"))

    send.assert_awaited_once_with("-200", "hi")


def test_send_alert_without_chat_is_dropped():
    with patch.object(telegram_bot, "settings") as settings, patch.object(
        telegram_bot, "_send_v2", new_callable=AsyncMock
    ) as send:
        settings.TELEGRAM_TOKEN = "token"
        settings.TRANSACTION_ALERTS_GROUP_CHATID = None

        asyncio.run(telegram_bot.send_alert("hi"))

    send.assert_not_awaited()


def test_send_alert_network_failure_is_logged():
    with patch.object(telegram_bot, "settings") as settings, patch.object(
        telegram_bot,
        "_send_v2",
        new_callable=AsyncMock,
        side_effect=aiohttp.ClientError("down"),
    ):
        settings.TELEGRAM_TOKEN = "token"
        settings.TRANSACTION_ALERTS_GROUP_CHATID = "-100"

        asyncio.run(telegram_bot.send_alert("hi"))


def test_send_alert_unknown_channel():
    with pytest.raises(ValueError):
        asyncio.run(telegram_bot.send_alert("hi", channel="nope"))
