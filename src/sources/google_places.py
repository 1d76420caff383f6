"""
Google Places review source.

Fetches the reviews Google exposes for the business listing through the
Places API (New). Fetch failures are never fatal: the refresh simply makes
no progress for that cycle.
"""

import logging
import time
from typing import List, Optional

import requests

from src.models.review import Review, ReviewSourceTag, utc_now_iso
import config.settings as settings

logger = logging.getLogger(__name__)

PLACES_ENDPOINT = "https://places.googleapis.com/v1/places/{place_id}"

REVIEW_FIELD_MASK = ",".join([
    "reviews.rating",
    "reviews.text.text",
    "reviews.originalText.text",
    "reviews.authorAttribution.displayName",
    "reviews.authorAttribution.uri",
    "reviews.publishTime",
])


class GooglePlacesSource:
    """
    Review source backed by the Places API.

    The API returns at most five reviews per place, so reviews are
    accumulated across refreshes rather than fetched in bulk.
    """

    def __init__(
        self,
        api_key: str,
        place_id: str = settings.PLACE_ID,
        timeout: float = settings.PLACES_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize source.

        Args:
            api_key: Google Places API key
            place_id: Place ID of the business listing
            timeout: HTTP timeout in seconds
            session: Optional requests session (injected in tests)
        """
        self.api_key = api_key
        self.place_id = place_id
        self.timeout = timeout
        self.session = session or requests.Session()

        if self.is_configured:
            logger.info(f"Initialized GooglePlacesSource for place {place_id}")
        else:
            logger.warning("Google Places API key not configured; fetches will return nothing")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key != settings.PLACES_API_PLACEHOLDER_KEY

    @property
    def endpoint(self) -> str:
        return PLACES_ENDPOINT.format(place_id=self.place_id)

    @property
    def review_url(self) -> str:
        return f"https://www.google.com/maps/place/?q=place_id:{self.place_id}"

    def _get(self, field_mask: str) -> requests.Response:
        return self.session.get(
            self.endpoint,
            params={"fields": field_mask},
            headers={
                "Content-Type": "application/json",
                "X-Goog-Api-Key": self.api_key,
                "X-Goog-FieldMask": field_mask,
            },
            timeout=self.timeout
        )

    def fetch(self) -> List[Review]:
        """
        Fetch current reviews for the place.

        Returns:
            Google-tagged reviews, or an empty list on any failure
        """
        if not self.is_configured:
            logger.error("Google Places API key not configured")
            return []

        try:
            response = self._get(REVIEW_FIELD_MASK)
            if not response.ok:
                logger.error(f"Google Places API error: {response.status_code} {response.text}")
                return []
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching Google reviews: {e}")
            return []

        raw_reviews = payload.get("reviews") if isinstance(payload, dict) else None
        if not isinstance(raw_reviews, list):
            logger.error(f"No reviews array in Places response: {payload!r}")
            return []

        stamp = int(time.time() * 1000)
        reviews = [
            self._to_review(item, index, stamp)
            for index, item in enumerate(raw_reviews)
            if isinstance(item, dict)
        ]
        logger.info(f"Fetched {len(reviews)} Google reviews")
        return reviews

    def _to_review(self, item: dict, index: int, stamp: int) -> Review:
        """Map one Places review payload to a Review."""
        author = (item.get("authorAttribution") or {}).get("displayName")
        text = (
            (item.get("text") or {}).get("text")
            or (item.get("originalText") or {}).get("text")
            or ""
        )
        try:
            rating = int(item.get("rating") or 5)
        except (TypeError, ValueError, OverflowError):
            rating = 5

        return Review(
            id=f"google_{index}_{stamp}",
            source=ReviewSourceTag.GOOGLE,
            author=author or "Anonymous",
            rating=rating,
            text=text,
            date=item.get("publishTime") or utc_now_iso(),
            url=self.review_url
        )

    def diagnose(self) -> dict:
        """
        Connectivity self-test for the admin page.

        Returns:
            Dict with apiConfigured, apiWorking, count and message keys
        """
        if not self.is_configured:
            return {
                "apiConfigured": False,
                "apiWorking": False,
                "count": 0,
                "message": "Google Places API key not configured"
            }

        try:
            response = self._get("reviews")
            if not response.ok:
                return {
                    "apiConfigured": True,
                    "apiWorking": False,
                    "count": 0,
                    "message": f"API returned error {response.status_code}: {response.text}"
                }
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            return {
                "apiConfigured": True,
                "apiWorking": False,
                "count": 0,
                "message": f"API call failed: {e}"
            }

        reviews = payload.get("reviews") if isinstance(payload, dict) else None
        count = len(reviews) if isinstance(reviews, list) else 0
        return {
            "apiConfigured": True,
            "apiWorking": True,
            "count": count,
            "message": f"API is working! Found {count} reviews."
        }
