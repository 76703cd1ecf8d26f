"""
Unit tests for multilingual sentiment scoring
"""

import pytest

from teambrain.models.analysis_models import SentimentLabel
from teambrain.utils.sentiment_scorer import SentimentScorer, classify_comparative


@pytest.fixture(scope="module")
def scorer():
    return SentimentScorer()


class TestClassification:
    """Test comparative score classification"""

    def test_positive_threshold(self):
        label, confidence = classify_comparative(0.3)
        assert label == SentimentLabel.POSITIVE
        assert confidence == pytest.approx(0.6)

    def test_negative_confidence_capped(self):
        label, confidence = classify_comparative(-2.0)
        assert label == SentimentLabel.NEGATIVE
        assert confidence == 0.95

    def test_neutral_confidence_floor(self):
        label, confidence = classify_comparative(0.1)
        assert label == SentimentLabel.NEUTRAL
        assert confidence == pytest.approx(0.4)

        _, at_zero = classify_comparative(0.0)
        assert at_zero == pytest.approx(0.6)


class TestEnglishSentiment:
    """Test alphabetic scoring"""

    def test_positive_text(self, scorer):
        result = scorer.score("Great job team, the launch was excellent!")

        assert result.classification == SentimentLabel.POSITIVE
        assert result.score > 0
        assert "great" in result.positive
        assert result.language == "en"

    def test_negative_text(self, scorer):
        result = scorer.score("The outage was terrible and the release failed")

        assert result.classification == SentimentLabel.NEGATIVE
        assert result.score < 0

    def test_appending_positive_token_never_decreases_score(self, scorer):
        for base in ["the meeting is at noon", "we moved the file to the shared folder", "status update"]:
            before = scorer.score(base)
            after = scorer.score(f"{base} excellent")
            assert after.score >= before.score

    def test_negation_lowers_score(self, scorer):
        plain = scorer.score("the plan is good")
        negated = scorer.score("the plan is not good")

        assert negated.context.has_negation
        assert plain.score > 0
        assert negated.score < plain.score
        assert negated.score < 0

    @pytest.mark.parametrize("text", [
        "The release is not good",
        "This is not a great plan",
        "I don't like this design",
    ])
    def test_negated_positive_words_score_negative(self, scorer, text):
        result = scorer.score(text)

        assert result.context.has_negation
        assert result.score < 0
        assert result.classification == SentimentLabel.NEGATIVE

    def test_intensifier_recorded(self, scorer):
        result = scorer.score("this is really good")

        assert result.context.intensifiers == ["really"]

    def test_emoticons_recorded(self, scorer):
        result = scorer.score("see you tomorrow :)")

        assert ":)" in result.context.emoticons


class TestChineseSentiment:
    """Test ideographic scoring"""

    def test_positive_chinese(self, scorer):
        result = scorer.score("这个项目进展顺利，大家都很开心")

        assert result.language == "zh"
        assert result.classification == SentimentLabel.POSITIVE
        assert "顺利" in result.positive

    def test_negative_chinese(self, scorer):
        result = scorer.score("这次上线失败了，问题很多")

        assert result.classification == SentimentLabel.NEGATIVE
        assert "失败" in result.negative

    def test_emotion_breakdown(self, scorer):
        result = scorer.score("今天很开心")

        assert result.emotions.joy > 0


class TestMixedSentiment:
    """Test length-weighted blending"""

    def test_positive_segments_blend_positive(self, scorer):
        result = scorer.score("今天的项目非常顺利大家都很开心，great success")

        assert result.language == "mixed"
        assert result.classification == SentimentLabel.POSITIVE
        assert "顺利" in result.positive
        assert "great" in result.positive

    def test_confidence_bounded(self, scorer):
        result = scorer.score("团队合作非常好 excellent teamwork")

        assert 0.0 <= result.confidence <= 0.95


class TestBatch:
    @pytest.mark.asyncio
    async def test_analyze_batch_preserves_order(self, scorer):
        results = await scorer.analyze_batch(["great work", "terrible outage", "非常满意"])

        assert [r.classification for r in results] == [
            SentimentLabel.POSITIVE, SentimentLabel.NEGATIVE, SentimentLabel.POSITIVE,
        ]
