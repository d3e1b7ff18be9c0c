from __future__ import annotations

import logging
from datetime import datetime
from functools import partial
from zoneinfo import ZoneInfo

from telegram.ext import Application

from birthday_reminders.birthday_service import BirthdayService
from birthday_reminders.birthday_store import JsonBirthdayStore
from birthday_reminders.bot_handlers import HandlerDependencies, build_handlers
from birthday_reminders.category_store import CategoryOverlayStore
from birthday_reminders.config_store import ensure_default_config, load_config
from birthday_reminders.diagnostics import configure_diagnostics
from birthday_reminders.lifecycle import NotificationLifecycle
from birthday_reminders.scheduler import RUNTIME_WEB, PollingNotificationScheduler, select_scheduler
from birthday_reminders.settings import load_settings
from birthday_reminders.telegram_display import TelegramNotificationDisplay

LOGGER = logging.getLogger(__name__)


def configure_logging(dev_mode: bool) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    configure_diagnostics(dev_mode)


async def start_scheduler(application: Application) -> None:
    lifecycle: NotificationLifecycle = application.bot_data["lifecycle"]
    await lifecycle.reschedule_all()

    scheduler = lifecycle.scheduler
    if isinstance(scheduler, PollingNotificationScheduler):
        if application.job_queue is None:
            raise RuntimeError("Polling delivery needs python-telegram-bot[job-queue]")
        await scheduler.start(application.job_queue)


def main() -> None:
    settings = load_settings()
    ensure_default_config(settings.reminder_config_path)
    config = load_config(settings.reminder_config_path)

    configure_logging(config.dev_mode)

    # Telegram can only stand in for the polling display; native delivery needs a host platform.
    if config.notification_runtime != RUNTIME_WEB:
        raise ValueError("The Telegram shell only supports notification_runtime = \"web\"")

    tz = ZoneInfo(config.timezone)
    clock = partial(datetime.now, tz)

    application = Application.builder().token(settings.telegram_bot_token).build()

    storage = JsonBirthdayStore(settings.birthday_store_path)
    categories = CategoryOverlayStore(settings.category_store_path)
    display = TelegramNotificationDisplay(bot=application.bot, chat_id=settings.telegram_allowed_chat_id)
    scheduler = select_scheduler(
        config.notification_runtime,
        storage=storage,
        clock=clock,
        leap_day_rule=config.leap_day_rule,
        display=display,
    )
    lifecycle = NotificationLifecycle(scheduler=scheduler, storage=storage)
    service = BirthdayService(
        storage=storage,
        categories=categories,
        lifecycle=lifecycle,
        clock=clock,
        leap_day_rule=config.leap_day_rule,
    )

    application.bot_data["settings"] = settings
    application.bot_data["lifecycle"] = lifecycle
    application.bot_data["handler_deps"] = HandlerDependencies(
        settings=settings,
        service=service,
        scheduler=scheduler,
        categories=categories,
        clock=clock,
        leap_day_rule=config.leap_day_rule,
    )

    for handler in build_handlers():
        application.add_handler(handler)

    # Application.stop() shuts the job queue down, which also ends the poll job.
    application.post_init = start_scheduler
    LOGGER.info("Starting birthday reminders in %s mode", config.notification_runtime)
    application.run_polling()


if __name__ == "__main__":
    main()
