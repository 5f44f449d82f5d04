"""Tests for commit message sentiment classification."""

import pytest

from ingest.sentiment import classify, sentiment_score


class TestClassify:
    """Tests for classify."""

    def test_negative_keywords_win(self):
        assert classify("fix: critical bug") == "negative"

    def test_positive_message(self):
        assert classify("feat: add great refactor") == "positive"

    @pytest.mark.parametrize(
        "message",
        ["Update docs", "", "   ", "Merge branch 'main'", "bump version to 1.2.3"],
    )
    def test_neutral_messages(self, message):
        assert classify(message) == "neutral"

    def test_case_insensitive(self):
        assert classify("FEAT: ADD Login") == "positive"
        assert classify("Revert BROKEN build") == "negative"

    def test_substring_match_within_token(self):
        """Keywords match inside longer tokens ("features" contains "feat")."""
        assert classify("features") == "positive"
        assert classify("errors") == "negative"

    def test_token_can_count_both_ways(self):
        # "hotfix" contains both "fix" and "hotfix"
        assert sentiment_score("hotfix") == 0
        assert classify("hotfix") == "neutral"

    def test_each_token_counts_once_per_polarity(self):
        # "addfeat" contains two positive keywords but is one token
        assert sentiment_score("addfeat") == 1

    def test_deterministic(self):
        message = "fix: improve error handling"
        assert {classify(message) for _ in range(20)} == {classify(message)}


class TestSentimentScore:
    """Tests for the net keyword score."""

    def test_scores(self):
        assert sentiment_score("fix: critical bug") == -1
        assert sentiment_score("feat: add great refactor") == 4
        assert sentiment_score("chore: tidy") == 0
