from __future__ import annotations

import os
import tempfile
import tomllib
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from birthday_reminders.date_logic import ALLOWED_LEAP_DAY_RULES, DEFAULT_LEAP_DAY_RULE
from birthday_reminders.scheduler import RUNTIME_NATIVE, RUNTIME_WEB

ALLOWED_RUNTIMES = {RUNTIME_NATIVE, RUNTIME_WEB}


@dataclass(frozen=True)
class AppConfig:
    timezone: str
    leap_day_rule: str = DEFAULT_LEAP_DAY_RULE
    notification_runtime: str = RUNTIME_WEB
    dev_mode: bool = False


def _toml_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def validate_config(config: AppConfig) -> AppConfig:
    timezone = config.timezone.strip()
    if not timezone:
        raise ValueError("timezone must not be empty")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {timezone}") from exc

    leap_day_rule = config.leap_day_rule.strip().lower()
    if leap_day_rule not in ALLOWED_LEAP_DAY_RULES:
        raise ValueError(f"leap_day_rule must be one of {sorted(ALLOWED_LEAP_DAY_RULES)}")

    runtime = config.notification_runtime.strip().lower()
    if runtime not in ALLOWED_RUNTIMES:
        raise ValueError(f"notification_runtime must be one of {sorted(ALLOWED_RUNTIMES)}")

    if not isinstance(config.dev_mode, bool):
        raise ValueError("dev_mode must be true or false")

    return AppConfig(
        timezone=timezone,
        leap_day_rule=leap_day_rule,
        notification_runtime=runtime,
        dev_mode=config.dev_mode,
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("rb") as file_obj:
        data = tomllib.load(file_obj)

    config = AppConfig(
        timezone=str(data.get("timezone", "")),
        leap_day_rule=str(data.get("leap_day_rule", DEFAULT_LEAP_DAY_RULE)),
        notification_runtime=str(data.get("notification_runtime", RUNTIME_WEB)),
        dev_mode=data.get("dev_mode", False),
    )
    return validate_config(config)


def render_config(config: AppConfig) -> str:
    validated = validate_config(config)

    lines = [
        f'timezone = "{_toml_escape(validated.timezone)}"',
        f'leap_day_rule = "{validated.leap_day_rule}"',
        "",
        "# web polls once a minute; native hands fire times to the OS scheduler.",
        f'notification_runtime = "{validated.notification_runtime}"',
        "",
        "# Log collaborator failures (calendar, notifications) on the diagnostics channel.",
        f"dev_mode = {'true' if validated.dev_mode else 'false'}",
    ]
    return "\n".join(lines) + "\n"


def save_config_atomic(path: Path, config: AppConfig) -> None:
    rendered = render_config(config)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    ) as temp_file:
        temp_file.write(rendered)
        temp_name = temp_file.name

    os.replace(temp_name, path)


def ensure_default_config(path: Path) -> None:
    if path.exists():
        return
    save_config_atomic(path, AppConfig(timezone="America/Los_Angeles"))
