"""
Resource metadata store.

Admin-edited categories and per-file overrides (display name, category,
order), kept as two JSON documents in the key-value store.
"""

import json
import logging
from typing import List, Optional

from src.resources.catalog import DEFAULT_CATEGORIES, UNCATEGORIZED
from src.utils.storage import KeyValueStore, StoreError
import config.settings as settings

logger = logging.getLogger(__name__)


class ResourceMetadataStore:
    """
    Category list and file overrides.

    Missing or unreadable documents fall back to the default categories
    and no overrides, so the resources page keeps working.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        categories_key: str = settings.RESOURCE_CATEGORIES_KEY,
        files_key: str = settings.RESOURCE_METADATA_KEY
    ):
        self.kv = kv
        self.categories_key = categories_key
        self.files_key = files_key

    def load(self) -> dict:
        """
        Returns:
            {"categories": [...], "files": {filename: {...}}}
        """
        try:
            categories_json = self.kv.get(self.categories_key)
            files_json = self.kv.get(self.files_key)
            categories = json.loads(categories_json) if categories_json else list(DEFAULT_CATEGORIES)
            files = json.loads(files_json) if files_json else {}
        except (StoreError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to load resource metadata, using defaults: {e}")
            return {"categories": list(DEFAULT_CATEGORIES), "files": {}}

        if not isinstance(categories, list):
            categories = list(DEFAULT_CATEGORIES)
        if not isinstance(files, dict):
            files = {}

        dropped = [name for name, overrides in files.items() if not isinstance(overrides, dict)]
        for name in dropped:
            logger.warning(f"Dropping malformed metadata for {name}")
            del files[name]
        return {"categories": categories, "files": files}

    def save(self, metadata: dict) -> None:
        self.kv.put(self.categories_key, json.dumps(metadata["categories"]))
        self.kv.put(self.files_key, json.dumps(metadata["files"]))
        logger.debug(
            f"Saved resource metadata: {len(metadata['categories'])} categories, "
            f"{len(metadata['files'])} file overrides"
        )

    def create_category(self, category: str) -> List[str]:
        metadata = self.load()
        if not category or category in metadata["categories"]:
            raise ValueError("Category already exists or invalid")

        metadata["categories"].append(category)
        self.save(metadata)
        logger.info(f"Created category '{category}'")
        return metadata["categories"]

    def rename_category(self, old_name: str, new_name: str) -> List[str]:
        """Rename a category and move every file that was in it."""
        if not old_name or not new_name:
            raise ValueError("Invalid category names")

        metadata = self.load()
        if old_name not in metadata["categories"]:
            raise KeyError(f"Category not found: {old_name}")

        metadata["categories"] = [new_name if c == old_name else c for c in metadata["categories"]]
        for overrides in metadata["files"].values():
            if overrides.get("category") == old_name:
                overrides["category"] = new_name

        self.save(metadata)
        logger.info(f"Renamed category '{old_name}' to '{new_name}'")
        return metadata["categories"]

    def update_file(
        self,
        filename: str,
        display_name: Optional[str] = None,
        category: Optional[str] = None,
        order: Optional[int] = None
    ) -> dict:
        """Apply the given overrides; None leaves a field unchanged."""
        if not filename:
            raise ValueError("Filename required")

        metadata = self.load()
        overrides = metadata["files"].setdefault(filename, {})
        if display_name is not None:
            overrides["displayName"] = display_name
        if category is not None:
            overrides["category"] = category
        if order is not None:
            overrides["order"] = int(order)

        self.save(metadata)
        return overrides

    def reorder(self, category: str, filenames: List[str]) -> None:
        """Place the files in `category` in the given order."""
        if not category or not isinstance(filenames, list):
            raise ValueError("Invalid reorder data")

        metadata = self.load()
        for index, filename in enumerate(filenames):
            overrides = metadata["files"].setdefault(filename, {})
            overrides["order"] = index
            overrides["category"] = category

        self.save(metadata)

    def delete_category(self, category: str) -> List[str]:
        """Drop a category; its files move to Uncategorized at order 0."""
        if category == UNCATEGORIZED:
            raise ValueError("Cannot delete Uncategorized category")

        metadata = self.load()
        if not category or category not in metadata["categories"]:
            raise KeyError(f"Category not found: {category}")

        for overrides in metadata["files"].values():
            if overrides.get("category") == category:
                overrides["category"] = UNCATEGORIZED
                overrides["order"] = 0

        metadata["categories"] = [c for c in metadata["categories"] if c != category]
        self.save(metadata)
        logger.info(f"Deleted category '{category}'")
        return metadata["categories"]

    def reorder_categories(self, ordered: List[str]) -> List[str]:
        """Replace the category order. Must be a permutation of the current list."""
        if not isinstance(ordered, list):
            raise ValueError("Invalid categories array")

        metadata = self.load()
        current = metadata["categories"]
        if len(set(ordered)) != len(set(current)) or set(ordered) != set(current):
            raise ValueError("Category list mismatch")

        metadata["categories"] = list(ordered)
        self.save(metadata)
        return metadata["categories"]

    def forget_file(self, filename: str) -> None:
        metadata = self.load()
        if metadata["files"].pop(filename, None) is not None:
            self.save(metadata)
