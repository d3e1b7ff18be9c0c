import asyncio
from datetime import date, datetime

import pytest

from birthday_reminders.birthday_service import BirthdayService
from birthday_reminders.categories import ORPHANED_CATEGORY_ID
from birthday_reminders.category_store import CategoryOverlayStore
from birthday_reminders.category_workflow import (
    CategoryDeletionWorkflow,
    DeleteOrphan,
    Reassign,
    ReassignmentRequiredError,
    category_counts,
    compute_affected,
    find_orphans,
)
from birthday_reminders.lifecycle import NotificationLifecycle
from birthday_reminders.models import Birthday, BirthdayCategory
from birthday_reminders.scheduler import PollingNotificationScheduler
from fakes import FakeDisplay, FakeStorage, fixed_clock

NOW = datetime(2026, 5, 1, 12, 0)


def _birthday(birthday_id: str, category: str | None) -> Birthday:
    return Birthday(
        id=birthday_id,
        name=f"Person {birthday_id}",
        birth_date=date(1990, 1, 1),
        category=category,
        zodiac_sign="Capricorn",
    )


def _workflow(birthdays: list[Birthday]) -> tuple[CategoryDeletionWorkflow, CategoryOverlayStore, FakeStorage]:
    storage = FakeStorage(birthdays)
    categories = CategoryOverlayStore()
    scheduler = PollingNotificationScheduler(display=FakeDisplay(), storage=storage, clock=fixed_clock(NOW))
    service = BirthdayService(
        storage=storage,
        categories=categories,
        lifecycle=NotificationLifecycle(scheduler=scheduler, storage=storage),
        clock=fixed_clock(NOW),
    )
    return CategoryDeletionWorkflow(categories=categories, birthdays=service), categories, storage


def _family_birthdays() -> list[Birthday]:
    return [
        _birthday("1", "family"),
        _birthday("2", "family"),
        _birthday("3", "family"),
        _birthday("4", "colleagues"),
    ]


def test_compute_affected_matches_exactly() -> None:
    birthdays = [_birthday("1", "family"), _birthday("2", "family-2"), _birthday("3", None)]

    assert [birthday.id for birthday in compute_affected("family", birthdays)] == ["1"]


def test_delete_unused_category_proceeds_immediately() -> None:
    workflow, categories, _storage = _workflow([_birthday("1", "friends")])

    assert asyncio.run(workflow.delete("colleagues")) == []
    assert "colleagues" not in categories.visible_ids()


def test_delete_used_category_requires_disposition() -> None:
    workflow, categories, storage = _workflow(_family_birthdays())

    with pytest.raises(ReassignmentRequiredError) as excinfo:
        asyncio.run(workflow.delete("family"))

    assert len(excinfo.value.affected) == 3
    assert "family" in categories.visible_ids()
    assert [birthday.category for birthday in storage.birthdays].count("family") == 3


def test_reassign_moves_birthdays_then_deletes() -> None:
    workflow, categories, storage = _workflow(_family_birthdays())

    affected = asyncio.run(workflow.delete("family", Reassign("friends")))

    assert len(affected) == 3
    assert [birthday.category for birthday in storage.birthdays] == ["friends", "friends", "friends", "colleagues"]
    assert "family" not in categories.visible_ids()


def test_delete_orphan_leaves_references_untouched() -> None:
    workflow, categories, storage = _workflow(_family_birthdays())

    asyncio.run(workflow.delete("family", DeleteOrphan()))

    assert [birthday.category for birthday in storage.birthdays] == ["family", "family", "family", "colleagues"]
    orphans = asyncio.run(workflow.orphans())
    assert [birthday.id for birthday in orphans] == ["1", "2", "3"]


def test_reassign_to_unknown_category_changes_nothing() -> None:
    workflow, categories, storage = _workflow(_family_birthdays())

    with pytest.raises(ValueError):
        asyncio.run(workflow.delete("family", Reassign("nowhere")))

    assert "family" in categories.visible_ids()
    assert storage.birthdays[0].category == "family"


def test_reassign_to_same_category_rejected() -> None:
    workflow, _categories, _storage = _workflow(_family_birthdays())

    with pytest.raises(ValueError):
        asyncio.run(workflow.delete("family", Reassign("family")))


def test_reassign_orphans_after_orphaning_delete() -> None:
    workflow, _categories, storage = _workflow(_family_birthdays())

    async def scenario() -> list[Birthday]:
        await workflow.delete("family", DeleteOrphan())
        return await workflow.reassign_orphans("other")

    moved = asyncio.run(scenario())

    assert len(moved) == 3
    assert [birthday.category for birthday in storage.birthdays] == ["other", "other", "other", "colleagues"]


def test_find_orphans_ignores_missing_category() -> None:
    categories = [BirthdayCategory(id="friends", name="Friends", icon="groups", color="#2196F3")]
    birthdays = [_birthday("1", "friends"), _birthday("2", "ghost"), _birthday("3", None)]

    assert [birthday.id for birthday in find_orphans(birthdays, categories)] == ["2"]


def test_category_counts_groups_orphans() -> None:
    categories = [BirthdayCategory(id="friends", name="Friends", icon="groups", color="#2196F3")]
    birthdays = [_birthday("1", "friends"), _birthday("2", "ghost"), _birthday("3", "friends")]

    assert category_counts(birthdays, categories) == {"friends": 2, ORPHANED_CATEGORY_ID: 1}


def test_category_counts_skips_unset_categories_like_find_orphans() -> None:
    categories = [BirthdayCategory(id="friends", name="Friends", icon="groups", color="#2196F3")]
    birthdays = [_birthday("1", "friends"), _birthday("2", None), _birthday("3", "")]

    assert category_counts(birthdays, categories) == {"friends": 1}
    assert find_orphans(birthdays, categories) == []
