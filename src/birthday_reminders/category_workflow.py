from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from birthday_reminders.birthday_service import BirthdayService
from birthday_reminders.categories import ORPHANED_CATEGORY_ID
from birthday_reminders.category_store import CategoryOverlayStore
from birthday_reminders.models import Birthday, BirthdayCategory

LOGGER = logging.getLogger(__name__)


class ReassignmentRequiredError(RuntimeError):
    def __init__(self, category_id: str, affected: list[Birthday]) -> None:
        super().__init__(
            f"Category {category_id} is used by {len(affected)} birthdays; choose reassign or delete-orphan"
        )
        self.category_id = category_id
        self.affected = affected


@dataclass(frozen=True)
class Reassign:
    new_category_id: str


@dataclass(frozen=True)
class DeleteOrphan:
    pass


Disposition = Reassign | DeleteOrphan


def compute_affected(category_id: str, birthdays: list[Birthday]) -> list[Birthday]:
    return [birthday for birthday in birthdays if birthday.category == category_id]


def find_orphans(birthdays: list[Birthday], categories: list[BirthdayCategory]) -> list[Birthday]:
    visible_ids = {category.id for category in categories}
    return [birthday for birthday in birthdays if birthday.category and birthday.category not in visible_ids]


def category_counts(birthdays: list[Birthday], categories: list[BirthdayCategory]) -> dict[str, int]:
    """Birthdays per visible category; unresolved references share one synthetic bucket.

    Birthdays without a category are left out, matching find_orphans.
    """
    visible_ids = {category.id for category in categories}
    counts: dict[str, int] = {}
    for birthday in birthdays:
        if not birthday.category:
            continue
        key = birthday.category if birthday.category in visible_ids else ORPHANED_CATEGORY_ID
        counts[key] = counts.get(key, 0) + 1
    return counts


class CategoryDeletionWorkflow:
    def __init__(self, *, categories: CategoryOverlayStore, birthdays: BirthdayService) -> None:
        self._categories = categories
        self._birthdays = birthdays

    async def affected(self, category_id: str) -> list[Birthday]:
        return compute_affected(category_id, await self._birthdays.load_birthdays())

    async def orphans(self) -> list[Birthday]:
        return find_orphans(await self._birthdays.load_birthdays(), self._categories.visible_categories())

    async def delete(self, category_id: str, disposition: Disposition | None = None) -> list[Birthday]:
        """Soft-delete ``category_id``, migrating its birthdays first when asked to.

        Returns the birthdays that referenced the category. Raises
        ReassignmentRequiredError, changing nothing, when birthdays still use
        it and no disposition was given.
        """
        affected = await self.affected(category_id)
        if not affected:
            self._categories.soft_delete(category_id)
            return []

        if disposition is None:
            raise ReassignmentRequiredError(category_id, affected)

        if isinstance(disposition, Reassign):
            if disposition.new_category_id == category_id:
                raise ValueError("Cannot reassign birthdays to the category being deleted")
            await self._reassign(affected, disposition.new_category_id)

        self._categories.soft_delete(category_id)
        LOGGER.info("Deleted category %s affecting %s birthdays", category_id, len(affected))
        return affected

    async def reassign_orphans(self, new_category_id: str) -> list[Birthday]:
        orphans = await self.orphans()
        if orphans:
            await self._reassign(orphans, new_category_id)
        return orphans

    async def _reassign(self, birthdays: list[Birthday], new_category_id: str) -> None:
        if new_category_id not in self._categories.visible_ids():
            raise ValueError(f"Unknown target category: {new_category_id}")

        for birthday in birthdays:
            await self._birthdays.update_birthday(replace(birthday, category=new_category_id))
        await self._birthdays.lifecycle.reschedule_all()
