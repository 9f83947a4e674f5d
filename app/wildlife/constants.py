"""
Central constants for the Wildlife Gallery application.
"""
from __future__ import annotations

# Cache keys / lifetimes (seconds)
IMAGE_CACHE_PREFIX = "image:"
SESSION_CACHE_PREFIX = "session:"
IMAGE_CACHE_TTL = 30 * 60
SESSION_TTL = 24 * 60 * 60

# Browser-side caching for served images
IMAGE_MAX_AGE = 86400
DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"
IMAGE_URL_PREFIX = "/images/"

# Accounts
MIN_PASSWORD_LENGTH = 6
MIN_SECRET_KEY_LENGTH = 32

# Feedback
MIN_RATING = 1
MAX_RATING = 5

# Activity log
ACTIVITY_STATS_DAYS = 7
ACTIVITY_RETENTION_DAYS = 30
LOGS_PER_PAGE = 50

# Gallery
CREATURES_PER_PAGE = 12

# Paths that never produce a page-view activity row
ACTIVITY_SKIP_PATHS = ("/health", "/api/", "/images/", "/static/", "/favicon")
ACTIVITY_SKIP_SUFFIXES = (".css", ".js", ".png", ".jpg", ".ico")
