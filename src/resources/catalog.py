"""
Resource catalog.

Lists the PDFs in the resources bucket, overlaid with the category,
display name and ordering an admin assigned to each file.
"""

import logging
from typing import Dict, List, Optional

from src.models.resource import ResourceFile

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

DEFAULT_CATEGORIES = [
    "Puppy Training",
    "Basic Training & Lead Work",
    "Advanced Skills & Recall",
    "Behaviour & Emotional Issues",
    "Gundog & Show Training",
    "Health & Medical",
    "Enrichment & Socialisation",
]

# Initial mapping of bucket objects to display names and categories
RESOURCE_FILES = [
    ResourceFile("Puppy essentials.pdf", "Puppy Essentials", "Puppy Training", order=0),
    ResourceFile("Puppie weekly social chart.pdf", "Puppy Weekly Social Chart", "Puppy Training", order=1),
    ResourceFile("Puppies and older dogs together.pdf", "Puppies and Older Dogs Together", "Puppy Training", order=2),
    ResourceFile("Car sick Puppies.pdf", "Car Sick Puppies", "Puppy Training", order=3),
    ResourceFile("The Name Game.pdf", "The Name Game", "Puppy Training", order=4),

    ResourceFile("Getting started with the clicker.pdf", "Getting Started with the Clicker", "Basic Training & Lead Work", order=0),
    ResourceFile("Reward your dog.pdf", "Reward Your Dog", "Basic Training & Lead Work", order=1),
    ResourceFile("The Sit Position from a stand.pdf", "Sit Position from a Stand", "Basic Training & Lead Work", order=2),
    ResourceFile("The Sit Position from a down.pdf", "Sit Position from a Down", "Basic Training & Lead Work", order=3),
    ResourceFile("Loose lead diagram.pdf", "Loose Lead Diagram", "Basic Training & Lead Work", order=4),
    ResourceFile("why dogs pull.pdf", "Why Dogs Pull", "Basic Training & Lead Work", order=5),
    ResourceFile("Lets go for a walk.pdf", "Let's Go for a Walk", "Basic Training & Lead Work", order=6),
    ResourceFile("Dont walk the dog.pdf", "Don't Walk the Dog", "Basic Training & Lead Work", order=7),
    ResourceFile("Relaxed down on lead.pdf", "Relaxed Down on Lead", "Basic Training & Lead Work", order=8),

    ResourceFile("The stop whistle.pdf", "The Stop Whistle", "Advanced Skills & Recall", order=0),
    ResourceFile("Whistle recall.pdf", "Whistle Recall", "Advanced Skills & Recall", order=1),
    ResourceFile("Standard gundog whistle Cues.pdf", "Standard Gundog Whistle Cues", "Advanced Skills & Recall", order=2),
    ResourceFile("Teaching and progressing the leave.pdf", "Teaching and Progressing the Leave", "Advanced Skills & Recall", order=3),
    ResourceFile("The whiplash turn.pdf", "The Whiplash Turn", "Advanced Skills & Recall", order=4),
    ResourceFile("Engage-Disengage.pdf", "Engage-Disengage", "Advanced Skills & Recall", order=5),

    ResourceFile("Resource Guarding.pdf", "Resource Guarding", "Behaviour & Emotional Issues", order=0),
    ResourceFile("resourceguardingandfoodgame.pdf", "Resource Guarding and Food Game", "Behaviour & Emotional Issues", order=1),
    ResourceFile("Dogs who are scared of people.pdf", "Dogs Scared of People", "Behaviour & Emotional Issues", order=2),
    ResourceFile("Helping nervous and Shy Dogs.pdf", "Helping Nervous and Shy Dogs", "Behaviour & Emotional Issues", order=3),
    ResourceFile("My dog doesn_t want to go out.pdf", "My Dog Doesn't Want to Go Out", "Behaviour & Emotional Issues", order=4),
    ResourceFile("Modifying and managing behaviour problems.pdf", "Modifying and Managing Behaviour Problems", "Behaviour & Emotional Issues", order=5),
    ResourceFile("Ladder of aggression.pdf", "Ladder of Aggression", "Behaviour & Emotional Issues", order=6),

    ResourceFile("Handling your gundog.pdf", "Handling Your Gundog", "Gundog & Show Training", order=0),
    ResourceFile("Training for the show ring.pdf", "Training for the Show Ring", "Gundog & Show Training", order=1),

    ResourceFile("Fluoxetine For Dogs.pdf", "Fluoxetine for Dogs", "Health & Medical", order=0),
    ResourceFile("Zylkene.pdf", "Zylkene", "Health & Medical", order=1),
    ResourceFile("COGNITIVE DYSFUNCTION.pdf", "Cognitive Dysfunction", "Health & Medical", order=2),

    ResourceFile("KONG STUFFING RECIPES.pdf", "Kong Stuffing Recipes", "Enrichment & Socialisation", order=0),
    ResourceFile("The two toy or treat game.pdf", "The Two Toy or Treat Game", "Enrichment & Socialisation", order=1),
    ResourceFile("Good dog handling.pdf", "Good Dog Handling", "Enrichment & Socialisation", order=2),
    ResourceFile("Parallel walking.pdf", "Parallel Walking", "Enrichment & Socialisation", order=3),
    ResourceFile("Full page photo.pdf", "Full Page Photo", "Enrichment & Socialisation", order=4),
    ResourceFile("Automatic Check In.pdf", "Automatic Check In", "Enrichment & Socialisation", order=5),
]


def get_resource_by_filename(filename: str) -> Optional[ResourceFile]:
    for resource in RESOURCE_FILES:
        if resource.filename == filename:
            return resource
    return None


def format_bytes(size: int) -> str:
    """Human readable size, e.g. 1536 -> "1.5 KB"."""
    if not size or size <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1

    formatted = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{formatted} {units[unit]}"


def _strip_pdf(filename: str) -> str:
    return filename[:-len(".pdf")] if filename.lower().endswith(".pdf") else filename


def _as_order(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _text(value) -> Optional[str]:
    return value if isinstance(value, str) else None


def merge_with_metadata(objects: List[dict], metadata: dict) -> List[ResourceFile]:
    """
    Overlay bucket objects with admin metadata and the default table.

    Precedence per field: admin metadata, then RESOURCE_FILES, then a
    fallback derived from the object key.

    Args:
        objects: Bucket listing entries with "key" and "size"
        metadata: {"categories": [...], "files": {filename: {...}}}

    Returns:
        One ResourceFile per object, in listing order
    """
    overrides = metadata.get("files") or {}
    merged = []

    for obj in objects:
        key = obj["key"]
        base = get_resource_by_filename(key)
        custom = overrides.get(key)
        if not isinstance(custom, dict):
            custom = {}

        order = custom.get("order")
        if order is None:
            order = base.order if base else 0
        order = _as_order(order)

        merged.append(ResourceFile(
            filename=key,
            display_name=_text(custom.get("displayName")) or (base.display_name if base else _strip_pdf(key)),
            category=_text(custom.get("category")) or (base.category if base else UNCATEGORIZED),
            size=format_bytes(obj.get("size", 0)),
            order=order
        ))

    return merged


def group_by_category(files: List[ResourceFile], categories: List[str]) -> Dict[str, List[ResourceFile]]:
    """
    Group files by category, each bucket sorted by order.

    Known categories come first in their configured order, then
    Uncategorized, then any category only seen on a file. Empty buckets
    are dropped.
    """
    grouped: Dict[str, List[ResourceFile]] = {category: [] for category in categories}
    grouped.setdefault(UNCATEGORIZED, [])

    for resource in files:
        grouped.setdefault(resource.category or UNCATEGORIZED, []).append(resource)

    return {
        category: sorted(bucket, key=lambda r: _as_order(r.order))
        for category, bucket in grouped.items()
        if bucket
    }


class ResourceCatalog:
    """
    Read and delete access to the resources bucket.

    Combines an object store listing with the metadata kept in the
    key-value store.
    """

    def __init__(self, object_store, metadata_store):
        """
        Args:
            object_store: Bucket exposing list(), get(key) and delete(key)
            metadata_store: ResourceMetadataStore
        """
        self.object_store = object_store
        self.metadata_store = metadata_store

    def list_resources(self) -> dict:
        """All files, grouped view and category list."""
        metadata = self.metadata_store.load()
        files = merge_with_metadata(self.object_store.list(), metadata)
        by_category = group_by_category(files, metadata["categories"])

        logger.info(f"Listed {len(files)} resources in {len(by_category)} categories")
        return {
            "files": [f.to_dict() for f in files],
            "byCategory": {
                category: [f.to_dict() for f in bucket]
                for category, bucket in by_category.items()
            },
            "categories": metadata["categories"],
            "total": len(files)
        }

    def download(self, filename: str) -> Optional[bytes]:
        """File contents, or None if the object does not exist."""
        return self.object_store.get(filename)

    def delete(self, filename: str) -> None:
        """Remove the object and forget its metadata."""
        if not filename:
            raise ValueError("Filename required")
        self.object_store.delete(filename)
        self.metadata_store.forget_file(filename)
        logger.info(f"Deleted resource {filename}")
