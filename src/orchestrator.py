"""
Review Refresh Orchestrator.

Runs one refresh cycle (load -> fetch -> merge -> save) and serves the
cached reviews to the site.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from src.accumulation.accumulator import ReviewAccumulator, sort_by_date_desc
from src.models.review import Review, ReviewCollection, ReviewSourceTag, utc_now_iso
from src.registry.review_store import ReviewStore
from src.utils.auth import require_session
from src.utils.storage import StoreError

logger = logging.getLogger(__name__)

SCHEDULED = "scheduled"
MANUAL = "manual"


@dataclass
class RefreshResult:
    success: bool
    message: str
    count: int = 0
    last_updated: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"success": self.success, "message": self.message}
        if self.success:
            data["count"] = self.count
            data["lastUpdated"] = self.last_updated
        return data


@dataclass
class ReviewsView:
    """What the reviews page receives."""
    success: bool = True
    reviews: List[Review] = field(default_factory=list)
    last_updated: Optional[str] = None
    google_count: int = 0
    manual_count: int = 0
    message: Optional[str] = None

    def to_dict(self) -> dict:
        if not self.success:
            return {"success": False, "message": self.message}
        data = {
            "reviews": [r.to_dict() for r in self.reviews],
            "lastUpdated": self.last_updated,
        }
        if self.message:
            data["message"] = self.message
        else:
            data["googleCount"] = self.google_count
            data["facebookCount"] = self.manual_count
        return data


class ReviewRefreshOrchestrator:
    """
    Coordinates the review cache.

    1. Load cached document → 2. Fetch from source → 3. Merge
    → 4. Stamp lastUpdated → 5. Save

    Source failures degrade to an empty fetch. Store failures end the
    cycle with a failed result and are not retried; the next scheduled
    run or manual call tries again.
    """

    def __init__(
        self,
        source,
        store: ReviewStore,
        accumulator: Optional[ReviewAccumulator] = None,
        session_secret: str = ""
    ):
        """
        Initialize orchestrator.

        Args:
            source: Review source exposing fetch() -> List[Review]
            store: Review store
            accumulator: Merge strategy (default ReviewAccumulator())
            session_secret: Secret used to verify admin session tokens
        """
        self.source = source
        self.store = store
        self.accumulator = accumulator or ReviewAccumulator()
        self.session_secret = session_secret

    def refresh(self, trigger: str = SCHEDULED, session_token: Optional[str] = None) -> RefreshResult:
        """
        Run one refresh cycle.

        Args:
            trigger: "scheduled" or "manual"
            session_token: Admin session token, required for manual triggers

        Returns:
            RefreshResult with the merged Google review count

        Raises:
            AuthenticationError: Manual trigger without a valid session
        """
        if trigger == MANUAL:
            require_session(session_token, self.session_secret)
        elif trigger != SCHEDULED:
            raise ValueError(f"Unknown refresh trigger: {trigger}")

        logger.info(f"Starting {trigger} review refresh")

        try:
            collection = self.store.load_or_empty()
        except StoreError as e:
            logger.error(f"Refresh failed loading cached reviews: {e}")
            return RefreshResult(success=False, message="Refresh failed")

        fresh = self._fetch()
        collection.google_reviews = self.accumulator.merge(collection.google_reviews, fresh)
        collection.touch()

        try:
            self.store.save(collection)
        except StoreError as e:
            logger.error(f"Refresh failed saving reviews: {e}")
            return RefreshResult(success=False, message="Refresh failed")

        count = len(collection.google_reviews)
        logger.info(f"Refresh complete: {count} unique Google reviews")
        return RefreshResult(
            success=True,
            message=f"Accumulated {count} unique Google reviews",
            count=count,
            last_updated=collection.last_updated
        )

    def _fetch(self) -> List[Review]:
        try:
            reviews = self.source.fetch() or []
        except Exception as e:
            logger.error(f"Review source failed, continuing with no new reviews: {e}")
            return []
        return [r for r in reviews if r.source == ReviewSourceTag.GOOGLE]

    def read_reviews(self) -> ReviewsView:
        """All cached reviews, newest first, with per-source counts."""
        try:
            collection = self.store.load()
        except StoreError as e:
            logger.error(f"Error loading reviews: {e}")
            return ReviewsView(success=False, message="Error loading reviews")

        if collection is None:
            return ReviewsView(message="No reviews cached yet")

        return ReviewsView(
            reviews=self._all_reviews(collection),
            last_updated=collection.last_updated,
            google_count=len(collection.google_reviews),
            manual_count=len(collection.manual_reviews)
        )

    @staticmethod
    def _all_reviews(collection: ReviewCollection) -> List[Review]:
        return sort_by_date_desc([*collection.google_reviews, *collection.manual_reviews])

    def export_report(self, output_dir: str) -> str:
        """
        Write every cached review to CSV, plus a metadata summary.

        Args:
            output_dir: Directory for reviews_<date>.csv and its _metadata.json

        Returns:
            Path to the generated CSV
        """
        collection = self.store.load_or_empty()
        reviews = self._all_reviews(collection)

        columns = ["id", "source", "author", "rating", "date", "text", "url"]
        rows = [r.to_dict() for r in reviews]
        df = pd.DataFrame(rows, columns=columns)

        stamp = utc_now_iso()[:10]
        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"reviews_{stamp}.csv")
        df.to_csv(output_path, index=False)

        if df.empty:
            average_rating = {}
        else:
            average_rating = {
                source: round(float(mean), 2)
                for source, mean in df.groupby("source")["rating"].mean().items()
            }

        metadata = {
            "generated_at": utc_now_iso(),
            "last_updated": collection.last_updated,
            "total_reviews": len(df),
            "google_count": len(collection.google_reviews),
            "manual_count": len(collection.manual_reviews),
            "average_rating": average_rating
        }
        metadata_path = output_path.replace(".csv", "_metadata.json")
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Exported {len(df)} reviews to {output_path}")
        return output_path


# Design Rationale and Trade-offs:
#
# 1. Why read-merge-write with no lock?
#    - One cron job and an occasional admin click; overlap is rare
#    - The key-value store offers no compare-and-swap
#    - Trade-off: two overlapping refreshes lose the earlier write. The next
#      cycle re-fetches the same reviews, so nothing is lost for long
#
# 2. Why report success when the fetch returned nothing?
#    - Fetch failures are logged in the source and are not fatal
#    - The cache is still valid and lastUpdated still moves forward
#    - Trade-off: "success" does not mean new reviews arrived
#
# 3. Why export with pandas?
#    - DataFrame.to_csv handles quoting of free-form review text
#    - Trade-off: a heavy dependency for a small table
