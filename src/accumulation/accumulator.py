"""
Review Accumulator.

Merges freshly fetched reviews into the previously cached set, dropping
duplicates of the same real-world review and ordering newest first.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, List

from src.models.review import Review
import config.settings as settings

logger = logging.getLogger(__name__)

# Places API publishTime can carry nanoseconds; datetime takes exactly six digits
_FRACTION_RE = re.compile(r"\.(\d+)")

OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def dedup_key(review: Review) -> str:
    """
    Heuristic fingerprint for "the same review fetched twice".

    author + first 100 chars of text + calendar day of the date. The
    upstream source has no stable review id, and re-fetches produce a new
    generated id and may change the timestamp precision.
    """
    author = str(review.author or "")
    text = str(review.text or "")[:settings.DEDUP_TEXT_PREFIX]
    day = str(review.date or "")[:10]
    return f"{author}-{text}-{day}"


def review_timestamp(review: Review) -> datetime:
    """
    Parse a review date for ordering.

    Accepts full ISO-8601 timestamps (with or without `Z`) and bare
    YYYY-MM-DD dates. Naive values are read as UTC. Anything unparsable
    sorts as the oldest possible review.
    """
    raw = review.date
    if not raw or not isinstance(raw, str):
        return OLDEST

    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    value = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], value)

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.debug(f"Unparsable review date {raw!r} on review {review.id}")
        return OLDEST

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_by_date_desc(reviews: Iterable[Review]) -> List[Review]:
    """Newest first. Stable, so equal dates keep their input order."""
    return sorted(reviews, key=review_timestamp, reverse=True)


def merge_reviews(
    existing: Iterable[Review],
    fresh: Iterable[Review],
    key_func: Callable[[Review], str] = dedup_key
) -> List[Review]:
    """
    Merge fresh reviews into existing ones.

    The first occurrence of each key wins, and existing reviews come
    first, so a re-fetched duplicate never replaces the cached record.

    Args:
        existing: Previously cached reviews
        fresh: Newly fetched reviews
        key_func: Derives the identity key of a review

    Returns:
        Deduplicated reviews sorted by date, newest first
    """
    seen = {}
    for review in [*(existing or []), *(fresh or [])]:
        if not isinstance(review, Review):
            logger.warning(f"Skipping non-review item {review!r}")
            continue
        key = key_func(review)
        if key not in seen:
            seen[key] = review

    return sort_by_date_desc(seen.values())


class ReviewAccumulator:
    """
    Accumulates Google reviews across refresh cycles.

    Pure in-memory transformation; reading and writing the store is the
    caller's job.
    """

    def __init__(self, key_func: Callable[[Review], str] = dedup_key):
        """
        Initialize accumulator.

        Args:
            key_func: Identity key strategy (defaults to the author/text/day key)
        """
        self.key_func = key_func

    def merge(self, existing: List[Review], fresh: List[Review]) -> List[Review]:
        """Merge and deduplicate. Never raises for list inputs of Reviews."""
        existing = list(existing or [])
        fresh = list(fresh or [])

        merged = merge_reviews(existing, fresh, key_func=self.key_func)

        duplicates = len(existing) + len(fresh) - len(merged)
        new_count = len(merged) - len(existing)
        logger.info(
            f"Merged {len(fresh)} fetched reviews into {len(existing)} cached: "
            f"{max(new_count, 0)} new, {duplicates} duplicates dropped, {len(merged)} total"
        )
        return merged


# Design Rationale and Trade-offs:
#
# 1. Why a heuristic key instead of the review id?
#    - Places ids are regenerated on every fetch (google_<index>_<ms>)
#    - author + text prefix + day survives timestamp precision changes
#    - Key derivation sits in dedup_key, so a stable upstream id can replace it
#    - Trade-off: a reviewer who edits the first 100 chars shows up twice
#
# 2. Why does the first occurrence win?
#    - Cached reviews keep their original id and fields across refreshes
#    - Consumers holding an id do not see it change
#    - Trade-off: edits made upstream to an already cached review are not picked up
#
# 3. Why sort unparsable dates to the end instead of raising?
#    - A bad date on one review must not block the write or the response
#    - Trade-off: such reviews drift to the bottom of the list
