from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

BIRTHDAY_STORE_FILENAME = "birthdays.json"
CATEGORY_STORE_FILENAME = "categories.json"
CONFIG_FILENAME = "reminders.toml"


@dataclass(frozen=True)
class Settings:
    """Telegram credentials plus the data directory holding every store.

    Both JSON stores live side by side under ``data_dir``; the TOML config
    defaults to the same directory unless REMINDER_CONFIG_PATH points elsewhere.
    """

    telegram_bot_token: str
    telegram_allowed_user_id: int
    telegram_allowed_chat_id: int
    data_dir: Path
    reminder_config_path: Path

    @property
    def birthday_store_path(self) -> Path:
        return self.data_dir / BIRTHDAY_STORE_FILENAME

    @property
    def category_store_path(self) -> Path:
        return self.data_dir / CATEGORY_STORE_FILENAME


def _required_env(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if value is None or not value.strip():
        raise ValueError(f"Missing required environment variable: {name}")
    return value.strip()


def _required_int(environ: Mapping[str, str], name: str) -> int:
    value = _required_env(environ, name)
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer id, got {value!r}") from exc


def load_settings(environ: Mapping[str, str] | None = None, cwd: Path | None = None) -> Settings:
    environ = os.environ if environ is None else environ
    root = cwd or Path.cwd()

    data_dir = Path(environ.get("BIRTHDAY_REMINDERS_DATA_DIR") or root / "data")
    reminder_config_path = Path(environ.get("REMINDER_CONFIG_PATH") or data_dir / CONFIG_FILENAME)

    return Settings(
        telegram_bot_token=_required_env(environ, "TELEGRAM_BOT_TOKEN"),
        telegram_allowed_user_id=_required_int(environ, "TELEGRAM_ALLOWED_USER_ID"),
        telegram_allowed_chat_id=_required_int(environ, "TELEGRAM_ALLOWED_CHAT_ID"),
        data_dir=data_dir,
        reminder_config_path=reminder_config_path,
    )
