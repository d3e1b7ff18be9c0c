from pathlib import Path

from birthday_reminders.categories import BIRTHDAY_CATEGORIES
from birthday_reminders.category_store import CategoryOverlayStore
from birthday_reminders.models import BirthdayCategory

FAMILY = BirthdayCategory(id="family", name="Family", icon="family_restroom", color="#4CAF50")


def test_visible_lists_defaults_then_custom() -> None:
    store = CategoryOverlayStore()
    store.add_custom(BirthdayCategory(id="gym-1", name="Gym", icon="fitness_center", color="#000000"))
    store.add_custom(BirthdayCategory(id="book-club-2", name="Book club", icon="book", color="#111111"))

    ids = [category.id for category in store.visible_categories()]

    assert ids == [category.id for category in BIRTHDAY_CATEGORIES] + ["gym-1", "book-club-2"]


def test_deleted_default_disappears_and_restore_brings_it_back() -> None:
    store = CategoryOverlayStore(catalog=(FAMILY,))
    store.soft_delete("family")

    assert store.visible_categories() == []

    store.restore("family")

    assert store.visible_categories() == [FAMILY]


def test_soft_delete_is_idempotent() -> None:
    store = CategoryOverlayStore(catalog=(FAMILY,))
    store.soft_delete("family")
    store.soft_delete("family")

    assert store.deleted_ids() == ["family"]


def test_restore_unknown_id_is_noop() -> None:
    store = CategoryOverlayStore(catalog=(FAMILY,))
    store.restore("missing")

    assert store.deleted_ids() == []
    assert store.visible_categories() == [FAMILY]


def test_override_replaces_fields_but_keeps_provenance() -> None:
    store = CategoryOverlayStore(catalog=(FAMILY,))
    custom = BirthdayCategory(id="gym-1", name="Gym", icon="fitness_center", color="#000000")
    store.add_custom(custom)

    store.update(BirthdayCategory(id="family", name="Relatives", icon="home", color="#123456"))
    store.update(BirthdayCategory(id="gym-1", name="Climbing", icon="terrain", color="#654321"))
    store.update(BirthdayCategory(id="family", name="Kin", icon="home", color="#123456"))

    visible = store.visible_categories()

    assert [category.name for category in visible] == ["Kin", "Climbing"]
    assert store.custom_ids() == ["gym-1"]
    assert store.is_custom("gym-1") is True
    assert store.is_custom("family") is False


def test_deleted_id_excluded_even_when_overridden() -> None:
    store = CategoryOverlayStore(catalog=(FAMILY,))
    store.update(BirthdayCategory(id="family", name="Relatives", icon="home", color="#123456"))
    store.soft_delete("family")

    assert store.get("family") is None
    assert "family" not in store.visible_ids()


def test_layers_persist_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "categories.json"
    store = CategoryOverlayStore(path)
    store.add_custom(BirthdayCategory(id="gym-1", name="Gym", icon="fitness_center", color="#000000"))
    store.update(BirthdayCategory(id="friends", name="Pals", icon="groups", color="#2196F3"))
    store.soft_delete("colleagues")

    reloaded = CategoryOverlayStore(path)

    assert reloaded.custom_ids() == ["gym-1"]
    assert reloaded.deleted_ids() == ["colleagues"]
    assert reloaded.get("friends").name == "Pals"


def test_corrupt_layers_file_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "categories.json"
    path.write_text("not json", encoding="utf-8")

    store = CategoryOverlayStore(path)

    assert [category.id for category in store.visible_categories()] == [
        category.id for category in BIRTHDAY_CATEGORIES
    ]
