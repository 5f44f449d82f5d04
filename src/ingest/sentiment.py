"""Keyword-based sentiment classification of commit messages."""

from .models import Sentiment

POSITIVE_KEYWORDS = (
    "feat",
    "fix",
    "improve",
    "add",
    "awesome",
    "great",
    "clean",
    "refactor",
    "optimize",
)
NEGATIVE_KEYWORDS = (
    "bug",
    "error",
    "fail",
    "break",
    "revert",
    "issue",
    "hotfix",
    "critical",
    "broken",
)


def sentiment_score(message: str) -> int:
    """Net keyword score of a commit message.

    Each whitespace-separated token scores +1 if it contains any positive
    keyword and -1 if it contains any negative keyword; a token can do both.
    """
    score = 0
    for token in message.lower().split():
        if any(keyword in token for keyword in POSITIVE_KEYWORDS):
            score += 1
        if any(keyword in token for keyword in NEGATIVE_KEYWORDS):
            score -= 1
    return score


def classify(message: str) -> Sentiment:
    """Classify a commit message as positive, negative or neutral.

    Example:
        >>> classify("fix: critical bug")
        'negative'
    """
    score = sentiment_score(message)
    if score > 0:
        return "positive"
    if score < 0:
        return "negative"
    return "neutral"
