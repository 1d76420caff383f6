"""
Configuration settings for the TopBarks backend.

Centralized configuration for the review cache, the resource catalog
and admin authentication. Secrets come from the environment.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = Path(os.getenv("TOPBARKS_DATA_ROOT", str(PROJECT_ROOT / "data")))
RESOURCES_ROOT = Path(os.getenv("TOPBARKS_RESOURCES_ROOT", str(PROJECT_ROOT / "resources")))
OUTPUT_ROOT = PROJECT_ROOT / "output"

# Google Places API (New)
GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY", "")
PLACE_ID = os.getenv("PLACE_ID", "ChIJicTHUo0xeUgRQTRgWtd797A")
PLACES_API_PLACEHOLDER_KEY = "your_google_places_api_key_here"
PLACES_TIMEOUT_SECONDS = 10

# Admin authentication
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
ADMIN_SESSION_SECRET = os.getenv("ADMIN_SESSION_SECRET", "")
SESSION_DURATION_SECONDS = 24 * 60 * 60

# Key-value store keys
REVIEWS_KEY = "reviews_data"
RESOURCE_CATEGORIES_KEY = "resource_categories"
RESOURCE_METADATA_KEY = "resource_metadata"

# Contact form
CONTACT_RATE_LIMIT = int(os.getenv("CONTACT_RATE_LIMIT", "5"))  # Submissions per client per window
CONTACT_RATE_WINDOW_SECONDS = int(os.getenv("CONTACT_RATE_WINDOW_SECONDS", str(60 * 60)))
RATE_LIMIT_KEY_PREFIX = "rate_limit_"

# Review accumulation
DEDUP_TEXT_PREFIX = 100  # Characters of review text used in the dedup key
DEFAULT_MANUAL_REVIEW_URL = "https://facebook.com/topbarks"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "topbarks.log"
