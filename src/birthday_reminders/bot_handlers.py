from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from telegram import Update
from telegram.ext import CallbackContext, CommandHandler

from birthday_reminders.birthday_service import BirthdayService
from birthday_reminders.categories import ORPHANED_CATEGORY_ID
from birthday_reminders.category_store import CategoryOverlayStore
from birthday_reminders.category_workflow import category_counts
from birthday_reminders.date_logic import age, days_until, next_occurrence
from birthday_reminders.models import PendingNotification
from birthday_reminders.scheduler import NotificationScheduler
from birthday_reminders.settings import Settings


@dataclass(frozen=True)
class HandlerDependencies:
    settings: Settings
    service: BirthdayService
    scheduler: NotificationScheduler
    categories: CategoryOverlayStore
    clock: Callable[[], datetime]
    leap_day_rule: str


@dataclass(frozen=True)
class BirthdayListRow:
    name: str
    days_until: int
    next_date: date
    turning_age: int | None
    category_name: str


def is_authorized(update: Update, settings: Settings) -> bool:
    effective_user = update.effective_user
    effective_chat = update.effective_chat
    if effective_user is None or effective_chat is None:
        return False
    return (
        effective_user.id == settings.telegram_allowed_user_id
        and effective_chat.id == settings.telegram_allowed_chat_id
    )


async def _deny_unauthorized(update: Update) -> None:
    if update.effective_message:
        await update.effective_message.reply_text("This bot is restricted to its configured owner.")


def _render_help() -> str:
    return (
        "Commands:\n"
        "/upcoming - Show tracked birthdays sorted by soonest\n"
        "/pending - Show the scheduled messages that fire next\n"
        "/categories - Show birthdays per category\n"
        "/help - Show this help message"
    )


def _render_list_message(rows: list[BirthdayListRow]) -> str:
    lines = [f"Tracked birthdays ({len(rows)})", "Sorted by soonest:"]

    for index, row in enumerate(rows, start=1):
        lines.append(f"{index}. {row.name}")
        details = [
            f"In {row.days_until}d",
            f"Next {row.next_date.isoformat()}",
        ]
        if row.turning_age is not None:
            details.append(f"Turning {row.turning_age}")
        details.append(row.category_name)
        lines.append(f"   {' | '.join(details)}")
        lines.append("")

    return "\n".join(lines).rstrip()


def _render_pending_message(pending: list[PendingNotification], scheduled_count: int) -> str:
    lines = [f"Scheduled messages ({scheduled_count})", "Next to fire:"]
    for index, entry in enumerate(pending, start=1):
        lines.append(f"{index}. {entry.fire_at.strftime('%Y-%m-%d %H:%M')} | {entry.title}")
        if entry.body:
            lines.append(f"   {entry.body.splitlines()[0]}")
    return "\n".join(lines)


def _render_category_counts(counts: dict[str, int], names: dict[str, str]) -> str:
    lines = ["Birthdays per category:"]
    for category_id, count in counts.items():
        label = "Uncategorized" if category_id == ORPHANED_CATEGORY_ID else names.get(category_id, category_id)
        lines.append(f"- {label}: {count}")
    return "\n".join(lines)


async def help_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return
    await update.effective_message.reply_text(_render_help())


async def upcoming_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    birthdays = await deps.service.load_birthdays()
    if not birthdays:
        await update.effective_message.reply_text("No birthdays are currently tracked.")
        return

    today = deps.clock().date()
    names = {category.id: category.name for category in deps.categories.visible_categories()}

    rows: list[BirthdayListRow] = []
    for birthday in birthdays:
        next_date = next_occurrence(birthday.birth_date, today, deps.leap_day_rule)
        rows.append(
            BirthdayListRow(
                name=birthday.name,
                days_until=days_until(birthday.birth_date, today, deps.leap_day_rule),
                next_date=next_date,
                turning_age=age(birthday.birth_date, next_date, deps.leap_day_rule),
                category_name=names.get(birthday.category or "", "Uncategorized"),
            )
        )

    rows.sort(key=lambda row: (row.days_until, row.name.lower()))
    await update.effective_message.reply_text(_render_list_message(rows))


async def pending_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    pending = await deps.scheduler.get_pending_notifications()
    if not pending:
        await update.effective_message.reply_text("No scheduled messages are pending.")
        return

    count = await deps.scheduler.get_scheduled_count()
    await update.effective_message.reply_text(_render_pending_message(pending[:10], count))


async def categories_command(update: Update, context: CallbackContext) -> None:
    deps: HandlerDependencies = context.application.bot_data["handler_deps"]
    if not is_authorized(update, deps.settings):
        await _deny_unauthorized(update)
        return

    visible = deps.categories.visible_categories()
    counts = category_counts(await deps.service.load_birthdays(), visible)
    if not counts:
        await update.effective_message.reply_text("No birthdays are currently tracked.")
        return
    names = {category.id: category.name for category in visible}
    await update.effective_message.reply_text(_render_category_counts(counts, names))


def build_handlers() -> list:
    return [
        CommandHandler("help", help_command),
        CommandHandler("upcoming", upcoming_command),
        CommandHandler("pending", pending_command),
        CommandHandler("categories", categories_command),
    ]
