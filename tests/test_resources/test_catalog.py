"""
Unit tests for the resource catalog and metadata store.
"""

import json
import pytest
from src.resources.catalog import (
    ResourceCatalog,
    DEFAULT_CATEGORIES,
    UNCATEGORIZED,
    format_bytes,
    group_by_category,
    merge_with_metadata,
)
from src.resources.metadata import ResourceMetadataStore
from src.resources.object_store import LocalObjectStore
from src.models.resource import ResourceFile
from src.utils.storage import FileKeyValueStore, InMemoryKeyValueStore


@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (512, "512 B"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (1048576, "1 MB"),
    (1234567, "1.18 MB"),
])
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


def test_merge_prefers_admin_metadata_then_defaults_then_key():
    objects = [
        {"key": "Zylkene.pdf", "size": 2048},
        {"key": "Puppy essentials.pdf", "size": 10},
        {"key": "New handout.pdf", "size": 0},
    ]
    metadata = {
        "categories": list(DEFAULT_CATEGORIES),
        "files": {"Zylkene.pdf": {"displayName": "Zylkene guide", "order": 7}}
    }

    files = merge_with_metadata(objects, metadata)

    assert files[0] == ResourceFile("Zylkene.pdf", "Zylkene guide", "Health & Medical", "2 KB", 7)
    assert files[1].display_name == "Puppy Essentials"
    assert files[1].category == "Puppy Training"
    assert files[2].display_name == "New handout"
    assert files[2].category == UNCATEGORIZED
    assert files[2].order == 0


def test_merge_keeps_explicit_zero_order():
    objects = [{"key": "Whistle recall.pdf", "size": 1}]
    metadata = {"files": {"Whistle recall.pdf": {"order": 0}}}
    assert merge_with_metadata(objects, metadata)[0].order == 0


def test_group_by_category_orders_and_drops_empty():
    files = [
        ResourceFile("b.pdf", "B", "Health & Medical", order=2),
        ResourceFile("a.pdf", "A", "Health & Medical", order=1),
        ResourceFile("c.pdf", "C", UNCATEGORIZED),
        ResourceFile("d.pdf", "D", "Puppy Training"),
        ResourceFile("e.pdf", "E", "Ad hoc"),
    ]

    grouped = group_by_category(files, list(DEFAULT_CATEGORIES))

    assert list(grouped) == ["Puppy Training", "Health & Medical", UNCATEGORIZED, "Ad hoc"]
    assert [f.filename for f in grouped["Health & Medical"]] == ["a.pdf", "b.pdf"]


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def metadata_store(kv):
    return ResourceMetadataStore(kv)


def test_metadata_defaults_when_absent_or_corrupted(kv, metadata_store):
    assert metadata_store.load() == {"categories": list(DEFAULT_CATEGORIES), "files": {}}

    kv.put("resource_metadata", "{broken")
    assert metadata_store.load()["files"] == {}


def test_create_category(metadata_store):
    categories = metadata_store.create_category("Agility")
    assert categories[-1] == "Agility"

    with pytest.raises(ValueError):
        metadata_store.create_category("Agility")
    with pytest.raises(ValueError):
        metadata_store.create_category("")


def test_rename_category_moves_files(kv, metadata_store):
    metadata_store.update_file("x.pdf", category="Health & Medical")

    categories = metadata_store.rename_category("Health & Medical", "Health")

    assert "Health" in categories and "Health & Medical" not in categories
    assert json.loads(kv.get("resource_metadata"))["x.pdf"]["category"] == "Health"

    with pytest.raises(KeyError):
        metadata_store.rename_category("Nope", "Other")


def test_update_file_only_touches_given_fields(metadata_store):
    metadata_store.update_file("x.pdf", display_name="X", order=3)
    overrides = metadata_store.update_file("x.pdf", category="Puppy Training")

    assert overrides == {"displayName": "X", "order": 3, "category": "Puppy Training"}


def test_reorder_assigns_positions_and_category(metadata_store):
    metadata_store.reorder("Puppy Training", ["b.pdf", "a.pdf"])

    files = metadata_store.load()["files"]
    assert files["b.pdf"] == {"order": 0, "category": "Puppy Training"}
    assert files["a.pdf"] == {"order": 1, "category": "Puppy Training"}


def test_delete_category_moves_files_to_uncategorized(metadata_store):
    metadata_store.reorder("Zoo", ["a.pdf", "b.pdf"])
    metadata_store.create_category("Zoo")

    categories = metadata_store.delete_category("Zoo")

    assert "Zoo" not in categories
    files = metadata_store.load()["files"]
    assert files["b.pdf"] == {"order": 0, "category": UNCATEGORIZED}


def test_delete_category_guards(metadata_store):
    with pytest.raises(ValueError):
        metadata_store.delete_category(UNCATEGORIZED)
    with pytest.raises(KeyError):
        metadata_store.delete_category("Missing")


def test_reorder_categories_requires_permutation(metadata_store):
    reversed_categories = list(reversed(DEFAULT_CATEGORIES))
    assert metadata_store.reorder_categories(reversed_categories) == reversed_categories

    with pytest.raises(ValueError, match="mismatch"):
        metadata_store.reorder_categories(reversed_categories[:-1])


def test_catalog_lists_downloads_and_deletes(tmp_path, metadata_store):
    (tmp_path / "Zylkene.pdf").write_bytes(b"%PDF-zylkene")
    (tmp_path / "notes.txt").write_text("ignored")
    (tmp_path / "Extra.pdf").write_bytes(b"%PDF-extra")
    metadata_store.update_file("Extra.pdf", category="Health & Medical", order=5)

    catalog = ResourceCatalog(LocalObjectStore(tmp_path), metadata_store)
    listing = catalog.list_resources()

    assert listing["total"] == 2
    assert list(listing["byCategory"]) == ["Health & Medical"]
    assert [f["filename"] for f in listing["byCategory"]["Health & Medical"]] == ["Zylkene.pdf", "Extra.pdf"]
    assert catalog.download("Zylkene.pdf") == b"%PDF-zylkene"
    assert catalog.download("missing.pdf") is None

    catalog.delete("Extra.pdf")

    assert not (tmp_path / "Extra.pdf").exists()
    assert "Extra.pdf" not in metadata_store.load()["files"]


def test_object_store_rejects_path_traversal(tmp_path):
    store = LocalObjectStore(tmp_path)
    with pytest.raises(ValueError):
        store.get("../secret.pdf")


def test_metadata_load_drops_non_dict_overrides():
    kv = InMemoryKeyValueStore()
    kv.put("resource_metadata", json.dumps({"Zylkene.pdf": "oops", "Extra.pdf": {"order": 2}}))

    files = ResourceMetadataStore(kv).load()["files"]

    assert files == {"Extra.pdf": {"order": 2}}


def test_metadata_load_non_utf8_document_falls_back_to_defaults(tmp_path):
    kv = FileKeyValueStore(tmp_path)
    kv.put("resource_metadata", "{}")
    (tmp_path / "kv" / "resource_metadata.json").write_bytes(b"\xff\xfe{garbage")

    metadata = ResourceMetadataStore(kv).load()

    assert metadata == {"categories": list(DEFAULT_CATEGORIES), "files": {}}


@pytest.mark.parametrize("order, expected", [("3", 3), ("first", 0), ([1], 0), (2.9, 2)])
def test_merge_coerces_override_order(order, expected):
    metadata = {"categories": [], "files": {"Zylkene.pdf": {"order": order}}}

    files = merge_with_metadata([{"key": "Zylkene.pdf", "size": 1}], metadata)

    assert files[0].order == expected


def test_merge_ignores_non_string_name_and_category():
    metadata = {"categories": [], "files": {"Zylkene.pdf": {"displayName": 42, "category": ["Health"]}}}

    files = merge_with_metadata([{"key": "Zylkene.pdf", "size": 1}], metadata)

    assert files[0].display_name == "Zylkene"
    assert files[0].category == "Health & Medical"


def test_list_resources_with_malformed_overrides(tmp_path):
    (tmp_path / "Zylkene.pdf").write_bytes(b"%PDF-a")
    (tmp_path / "Extra.pdf").write_bytes(b"%PDF-b")
    kv = InMemoryKeyValueStore()
    kv.put("resource_metadata", json.dumps({
        "Zylkene.pdf": ["not", "a", "dict"],
        "Extra.pdf": {"category": "Health & Medical", "order": "second"}
    }))

    listing = ResourceCatalog(LocalObjectStore(tmp_path), ResourceMetadataStore(kv)).list_resources()

    assert listing["total"] == 2
    assert [f["filename"] for f in listing["byCategory"]["Health & Medical"]] == ["Extra.pdf", "Zylkene.pdf"]


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
