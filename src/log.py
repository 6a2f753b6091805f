import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import seqlog

from core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging_to_console(level=logging.INFO):
    root = logging.getLogger()
    root.setLevel(level)
    if not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    ):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    # httpx logs every RPC call at INFO, including the bot token in the URL
    logging.getLogger("httpx").setLevel(logging.WARNING)


def setup_logging_to_file(
    app: str, level=logging.INFO, logger: Optional[logging.Logger] = None
):
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(settings.LOG_DIR, f"{app}.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)

    target = logger or logging.getLogger()
    target.addHandler(handler)

    if settings.SEQ_SERVER_URL:
        seqlog.log_to_seq(
            server_url=settings.SEQ_SERVER_URL,
            api_key=settings.SEQ_SERVER_API_KEY,
            level=level,
            batch_size=10,
            auto_flush_timeout=10,
            override_root_logger=False,
        )
        seqlog.set_global_log_properties(
            Application=app, Environment=settings.ENVIRONMENT_NAME
        )
