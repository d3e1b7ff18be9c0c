from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from birthday_reminders.categories import BIRTHDAY_CATEGORIES
from birthday_reminders.diagnostics import report_failure
from birthday_reminders.models import BirthdayCategory


@dataclass
class CategoryLayers:
    custom: list[BirthdayCategory] = field(default_factory=list)
    modified: list[BirthdayCategory] = field(default_factory=list)
    deleted_ids: list[str] = field(default_factory=list)


def _category_from_dict(row: dict[str, Any]) -> BirthdayCategory:
    return BirthdayCategory(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        icon=str(row.get("icon", "")),
        color=str(row.get("color", "")),
    )


def _category_to_dict(category: BirthdayCategory) -> dict[str, str]:
    return {"id": category.id, "name": category.name, "icon": category.icon, "color": category.color}


def load_layers(path: Path) -> CategoryLayers:
    if not path.exists():
        return CategoryLayers()

    try:
        with path.open("r", encoding="utf-8") as file_obj:
            data = json.load(file_obj)
        return CategoryLayers(
            custom=[_category_from_dict(row) for row in data.get("custom_categories", [])],
            modified=[_category_from_dict(row) for row in data.get("modified_categories", [])],
            deleted_ids=[str(value) for value in data.get("deleted_category_ids", [])],
        )
    except (OSError, ValueError, KeyError, AttributeError, TypeError):
        report_failure("Failed to load category layers from %s", path)
        return CategoryLayers()


def save_layers_atomic(path: Path, layers: CategoryLayers) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "custom_categories": [_category_to_dict(category) for category in layers.custom],
        "modified_categories": [_category_to_dict(category) for category in layers.modified],
        "deleted_category_ids": list(layers.deleted_ids),
    }

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    ) as temp_file:
        json.dump(payload, temp_file, indent=2, ensure_ascii=False)
        temp_file.write("\n")
        temp_name = temp_file.name

    os.replace(temp_name, path)


class CategoryOverlayStore:
    """Visible categories = (catalog + custom) with overrides applied, minus tombstones.

    The built-in catalog is never written; edits land in the override layer and
    deletions in the tombstone list, so every change stays reversible.
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        catalog: tuple[BirthdayCategory, ...] = BIRTHDAY_CATEGORIES,
    ) -> None:
        self._path = path
        self._catalog = catalog
        self._layers = load_layers(path) if path is not None else CategoryLayers()

    def _save(self) -> None:
        if self._path is not None:
            save_layers_atomic(self._path, self._layers)

    def visible_categories(self) -> list[BirthdayCategory]:
        overrides = {category.id: category for category in self._layers.modified}
        deleted = set(self._layers.deleted_ids)

        visible: list[BirthdayCategory] = []
        for base in [*self._catalog, *self._layers.custom]:
            if base.id in deleted:
                continue
            override = overrides.get(base.id)
            if override is not None:
                base = replace(base, name=override.name, icon=override.icon, color=override.color)
            visible.append(base)
        return visible

    def visible_ids(self) -> set[str]:
        return {category.id for category in self.visible_categories()}

    def get(self, category_id: str) -> BirthdayCategory | None:
        for category in self.visible_categories():
            if category.id == category_id:
                return category
        return None

    def custom_ids(self) -> list[str]:
        return [category.id for category in self._layers.custom]

    def deleted_ids(self) -> list[str]:
        return list(self._layers.deleted_ids)

    def is_custom(self, category_id: str) -> bool:
        return category_id in self.custom_ids()

    def add_custom(self, category: BirthdayCategory) -> None:
        self._layers.custom.append(category)
        self._save()

    def update(self, category: BirthdayCategory) -> None:
        for index, existing in enumerate(self._layers.modified):
            if existing.id == category.id:
                self._layers.modified[index] = category
                break
        else:
            self._layers.modified.append(category)
        self._save()

    def soft_delete(self, category_id: str) -> None:
        if category_id in self._layers.deleted_ids:
            return
        self._layers.deleted_ids.append(category_id)
        self._save()

    def restore(self, category_id: str) -> None:
        if category_id not in self._layers.deleted_ids:
            return
        self._layers.deleted_ids = [value for value in self._layers.deleted_ids if value != category_id]
        self._save()
