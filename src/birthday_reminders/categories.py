from __future__ import annotations

from birthday_reminders.models import DEFAULT_CATEGORY, BirthdayCategory

BIRTHDAY_CATEGORIES: tuple[BirthdayCategory, ...] = (
    BirthdayCategory(id="family", name="Family", icon="family_restroom", color="#4CAF50"),
    BirthdayCategory(id="friends", name="Friends", icon="groups", color="#2196F3"),
    BirthdayCategory(id="colleagues", name="Colleagues", icon="business_center", color="#FF9800"),
    BirthdayCategory(id="romantic", name="Partner/Ex", icon="favorite", color="#E91E63"),
    BirthdayCategory(id="acquaintances", name="Acquaintances", icon="handshake", color="#9C27B0"),
    BirthdayCategory(id="other", name="Other", icon="stars", color="#607D8B"),
)

ORPHANED_CATEGORY_ID = "__orphaned__"


def normalize_category(category_id: str | None, visible_ids: set[str]) -> str:
    if category_id and category_id in visible_ids:
        return category_id
    return DEFAULT_CATEGORY
