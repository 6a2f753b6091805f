import logging

import aiohttp

from core.config import settings

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000  # Telegram caps messages at 4096 characters


async def send_alert(message, channel="transaction"):
    """Post an operator alert to the configured Telegram group."""
    if channel == "transaction":
        g_id = settings.TRANSACTION_ALERTS_GROUP_CHATID
    elif channel == "error":
        g_id = settings.SYSTEM_ERROR_ALERTS_GROUP_CHATID
    else:
        raise ValueError(f"Unknown alert channel: {channel}")

    if not g_id or not settings.TELEGRAM_TOKEN:
        logger.info("No %s alert chat configured, alert dropped", channel)
        return

    try:
        await _send_v2(g_id, message)
    except aiohttp.ClientError as e:
        logger.error("Error sending alert: %s", e, exc_info=True)


def split_message(msg: str, max_length: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split a long HTML message, keeping <pre> blocks balanced."""
    parts = []
    while msg:
        if len(msg) <= max_length:
            parts.append(msg)
            break

        split_index = msg[:max_length].rfind("\n\n")
        if split_index == -1:
            split_index = msg[:max_length].rfind("\n")
        if split_index <= 0:
            split_index = max_length

        current = msg[:split_index]
        rest = msg[split_index:].lstrip()
        if current.count("<pre>") > current.count("</pre>"):
            current += "</pre>"
            rest = "<pre>" + rest
        parts.append(current)
        msg = rest
    return parts


async def _send_v2(chat_id, msg, parse_mode="HTML"):
    """
    Send message via Telegram API, automatically split if message is too long
    Args:
        chat_id: Chat ID to send message to
        msg: Message content
        parse_mode: "HTML" or "MarkdownV2"
    """
    base_url = f"https://api.telegram.org/bot{settings.TELEGRAM_TOKEN}/sendMessage"

    async with aiohttp.ClientSession() as session:
        for i, message_part in enumerate(split_message(msg), 1):
            payload = {
                "chat_id": chat_id,
                "text": message_part,
                "parse_mode": parse_mode,
            }
            async with session.post(base_url, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(f"Failed to send message part {i}: {error_text}")
