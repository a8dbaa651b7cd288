# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/4 18:30
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Entry point of the translator bot
"""
import json

from loguru import logger

from mybot.client import TranslatorBot
from mybot.runtime import BotRuntime
from settings import settings, LOG_DIR
from utils import init_log


def main() -> None:
    """Start the bot."""
    init_log(
        runtime=LOG_DIR.joinpath("runtime.log"),
        error=LOG_DIR.joinpath("error.log"),
        serialize=LOG_DIR.joinpath("serialize.log"),
    )

    sp = settings.model_dump(mode="json")
    s = json.dumps(sp, indent=2, ensure_ascii=False)
    logger.success(f"Loading settings: {s}")

    if settings.is_dev_local:
        logger.warning("🪄 Development mode: messages are not persisted")

    token = settings.DISCORD_TOKEN.get_secret_value()
    if not token:
        logger.critical("DISCORD_TOKEN is not configured")
        raise SystemExit(1)

    bot = TranslatorBot(BotRuntime.from_settings(settings))

    # discord.py installs its own signal handling and closes the bot on Ctrl-C
    bot.run(token, log_handler=None)


if __name__ == "__main__":
    main()
