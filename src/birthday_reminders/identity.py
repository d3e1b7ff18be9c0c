from __future__ import annotations

import hashlib
import uuid
from datetime import datetime


def generate_id() -> str:
    return str(uuid.uuid4())


def slugify(name: str) -> str:
    pieces = name.strip().lower().split()
    return "-".join(pieces)


def category_id_for(name: str, now: datetime | None = None) -> str:
    moment = now or datetime.now()
    timestamp = int(moment.timestamp() * 1000)
    return f"{slugify(name)}-{timestamp}"


def stable_notification_id(birthday_id: str, message_id: str) -> int:
    """Positive 32-bit id derived from the pair, identical across restarts."""
    seed = f"{birthday_id}-{message_id}"
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") & 0x7FFFFFFF
