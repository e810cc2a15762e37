"""Constants module for AI-TAP configuration.

Contains the default values used by the response cache, its persistence
layer, and the application settings.
"""

# ============================================================================
# Application
# ============================================================================

APP_NAME = "AI-TAP"
APP_VERSION = "1.0.0"

# ============================================================================
# Cache Configuration Constants
# ============================================================================

# Response Cache Settings
DEFAULT_CACHE_MAX_SIZE = 100  # Maximum number of cached responses
DEFAULT_CACHE_EXPIRY_MS = 24 * 60 * 60 * 1000  # Entry time-to-live (24 hours)
CACHE_PURGE_RATIO = 0.2  # Fraction of max size removed per eviction sweep

# Default number of popular queries reported
DEFAULT_POPULAR_QUERIES_LIMIT = 10
STATS_POPULAR_QUERIES_LIMIT = 5

# ============================================================================
# Persistence Constants
# ============================================================================

CACHE_STORAGE_KEY = "ai-tap-cache"
SNAPSHOT_MAX_AGE_MS = 7 * 24 * 60 * 60 * 1000  # Snapshots older than this are dropped
SNAPSHOT_MAX_BYTES = 5 * 1024 * 1024  # Size guard before writing a snapshot

DEFAULT_AUTOSAVE_INTERVAL_SECONDS = 5 * 60
DEFAULT_STORAGE_TIMEOUT_SECONDS = 5.0

# ============================================================================
# Logging
# ============================================================================

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_REDACT_LOG_FIELDS = ["response"]
LOG_DATA_MAX_STRING_LENGTH = 5000
