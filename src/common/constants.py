"""Shared constants for the git-cinematic application.

For environment-based configuration (API tokens, database settings, etc.),
use the env module:
    from common.env import env
    token = env.github_token()
"""

from pathlib import Path

# Data directories
DATA_DIR = Path("./data")
DATABASE_PATH = DATA_DIR / "git_cinematic.db"

# Placeholder author name when a commit carries no author information
UNKNOWN_AUTHOR = "Unknown"

# Ingestion
MAX_CORE_FILES = 10
PACKAGE_MANIFEST_PATH = "package.json"

# Relevance retrieval
MIN_KEYWORD_LENGTH = 3
FILENAME_MATCH_WEIGHT = 10
PATH_MATCH_WEIGHT = 5
MAX_RELEVANT_FILES = 8
FILE_CONTENT_CHAR_LIMIT = 5000
README_CHAR_LIMIT = 3000
FILE_TREE_LIMIT = 200

# Timeline aggregation
TIMELINE_WINDOWS: dict[str, int | None] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "all": None,
}
FALLBACK_COMMIT_COUNT = 50
PER_COMMIT_THRESHOLD = 20
WEEKLY_THRESHOLD = 200
SENTIMENT_SCORES: dict[str, float] = {
    "positive": 0.8,
    "negative": -0.8,
    "neutral": 0.0,
}
FLAT_LINE_EPSILON = 0.01
JITTER_AMPLITUDE = 0.075
JITTER_SEED = 7
