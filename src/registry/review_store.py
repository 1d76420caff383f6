"""
Review Store - the single cached reviews document.

Reads and writes the ReviewCollection held under one key in the
key-value store, and hosts the admin path for manually entered reviews.
"""

import json
import logging
import time
import uuid
from dataclasses import replace
from typing import Optional

from src.models.review import Review, ReviewCollection, ReviewSourceTag
from src.utils.storage import KeyValueStore
import config.settings as settings

logger = logging.getLogger(__name__)


class ReviewNotFoundError(KeyError):
    """Raised when a manual review id (or the whole document) is missing."""


class ReviewStore:
    """
    Persistence for the reviews document.

    Every save is a full-document replace. There is no locking: two
    overlapping refreshes both read a snapshot and the later save wins.
    """

    def __init__(self, kv: KeyValueStore, key: str = settings.REVIEWS_KEY):
        """
        Initialize review store.

        Args:
            kv: Backing key-value store
            key: Key holding the reviews document
        """
        self.kv = kv
        self.key = key

    def load(self) -> Optional[ReviewCollection]:
        """
        Load the cached collection.

        Returns:
            ReviewCollection, or None if nothing is cached or the stored
            document is corrupted

        Raises:
            StoreError: If the store itself cannot be read
        """
        try:
            raw = self.kv.get(self.key)
        except UnicodeDecodeError as e:
            logger.error(f"Reviews document is not valid UTF-8, treating as empty: {e}")
            return None

        if raw is None:
            logger.info(f"No reviews document cached under {self.key}")
            return None

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to parse reviews document, treating as empty: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Reviews document is not an object ({type(data).__name__}), treating as empty")
            return None

        collection = ReviewCollection.from_dict(data)
        logger.debug(
            f"Loaded {len(collection.google_reviews)} Google and "
            f"{len(collection.manual_reviews)} manual reviews"
        )
        return collection

    def load_or_empty(self) -> ReviewCollection:
        return self.load() or ReviewCollection.empty()

    def save(self, collection: ReviewCollection) -> None:
        """
        Replace the cached document.

        Raises:
            StoreError: If the write fails
        """
        self.kv.put(self.key, json.dumps(collection.to_dict()))
        logger.info(
            f"Saved reviews document: {len(collection.google_reviews)} Google, "
            f"{len(collection.manual_reviews)} manual"
        )

    def add_manual_review(
        self,
        author: str,
        rating,
        text: str,
        date: str,
        url: Optional[str] = None
    ) -> Review:
        """
        Add a hand-entered review to the front of the manual bucket.

        Raises:
            ValueError: If a required field is missing or rating is not a number
        """
        if not author or not rating or not text or not date:
            raise ValueError("Missing required fields")

        review = Review(
            id=f"fb_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}",
            source=ReviewSourceTag.MANUAL,
            author=author,
            rating=int(rating),
            text=text,
            date=date,
            url=url or settings.DEFAULT_MANUAL_REVIEW_URL
        )

        collection = self.load_or_empty()
        collection.manual_reviews.insert(0, review)
        collection.touch()
        self.save(collection)

        logger.info(f"Added manual review {review.id} by {author}")
        return review

    def update_manual_review(self, review_id: str, **fields) -> Review:
        """
        Overwrite the given fields of a manual review.

        Only truthy values replace the stored ones, so blank form fields
        leave the review unchanged.

        Raises:
            ReviewNotFoundError: If nothing is cached or the id is unknown
        """
        collection = self._require_collection()

        for index, review in enumerate(collection.manual_reviews):
            if review.id == review_id:
                break
        else:
            raise ReviewNotFoundError(f"Review not found: {review_id}")

        changes = {
            name: fields[name]
            for name in ("author", "text", "date", "url")
            if fields.get(name)
        }
        if fields.get("rating"):
            changes["rating"] = int(fields["rating"])

        updated = replace(review, **changes)
        collection.manual_reviews[index] = updated
        collection.touch()
        self.save(collection)

        logger.info(f"Updated manual review {review_id}")
        return updated

    def delete_manual_review(self, review_id: str) -> None:
        """
        Remove a manual review. Unknown ids are a no-op once a document exists.

        Raises:
            ReviewNotFoundError: If nothing is cached
        """
        collection = self._require_collection()
        collection.manual_reviews = [r for r in collection.manual_reviews if r.id != review_id]
        collection.touch()
        self.save(collection)
        logger.info(f"Deleted manual review {review_id}")

    def _require_collection(self) -> ReviewCollection:
        collection = self.load()
        if collection is None:
            raise ReviewNotFoundError("No reviews found")
        return collection
