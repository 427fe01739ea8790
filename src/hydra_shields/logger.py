import logging
from typing import List

import notifiers.logging

from hydra_shields import config

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"


def configure_logging(*loggers: logging.Logger) -> None:
    logging.basicConfig(format=LOG_FORMAT, level=logging.INFO)
    logging.getLogger().setLevel(config.OVERRIDE_LOGGING)
    for logger in loggers:
        logger.setLevel(config.OVERRIDE_LOGGING)


def get_log_handlers(logger: logging.Logger) -> List[logging.Handler]:
    """Forward warnings and errors to telegram if a bot token is configured"""
    if config.TELEGRAM_TOKEN is None:
        return []
    handler = notifiers.logging.NotificationHandler(
        "telegram",
        defaults={
            "token": config.TELEGRAM_TOKEN,
            "chat_id": config.TELEGRAM_CHAT_ID,
        },
    )
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(f"hydra-shields: {LOG_FORMAT}"))
    logger.addHandler(handler)
    return [handler]
