"""Tests for the text signal scorer."""

import pytest

from conflict_engine.records.models import Severity
from conflict_engine.text.lexicons import Lexicon
from conflict_engine.text.models import Recommendation, SentimentLabel
from conflict_engine.text.scorer import TextSignalScorer, tokenize

ZAMFARA = "Armed bandits attacked farmers in Zamfara, several killed"


@pytest.fixture(scope="module")
def scorer() -> TextSignalScorer:
    return TextSignalScorer()


class TestAnalyze:
    def test_zamfara_attack_is_high_risk(self, scorer):
        analysis = scorer.analyze(ZAMFARA)

        assert {"kill", "armed"} & set(analysis.indicators.violence)
        assert "zamfara" in analysis.entities.locations
        assert "bandits" in analysis.entities.groups
        assert analysis.risk_level in (Severity.HIGH, Severity.CRITICAL)

    def test_scores_stay_in_range(self, scorer):
        text = " ".join(["killed attack bomb massacre raid ambush"] * 20)
        analysis = scorer.analyze(text)

        assert 0 <= analysis.conflict_score <= 100
        assert 0 <= analysis.peace_score <= 100
        assert analysis.risk_level == Severity.CRITICAL

    def test_peaceful_text_scores_peace(self, scorer):
        analysis = scorer.analyze(
            "Community leaders signed a peace agreement after dialogue and mediation"
        )

        assert analysis.peace_score > analysis.conflict_score
        assert analysis.risk_level == Severity.LOW
        assert "peace" in analysis.indicators.peace

    def test_keywords_exclude_stop_words(self, scorer):
        analysis = scorer.analyze("The bandits and the bandits attacked the village")

        assert analysis.keywords[0] == "bandits"
        assert "the" not in analysis.keywords

    def test_stop_words_only_yields_no_keywords(self, scorer):
        assert scorer.analyze("the and of").keywords == []

    def test_custom_lexicon_is_used(self):
        lexicon = Lexicon(
            violence=("storm",), tension=(), peace=(), humanitarian=(),
            locations=("atlantis",), armed_groups=(),
        )
        scorer = TextSignalScorer(lexicon=lexicon, sentiment_lexicon={})

        analysis = scorer.analyze("A storm hit Atlantis")

        assert analysis.indicators.violence == ["storm"]
        assert analysis.entities.locations == ["atlantis"]
        assert analysis.sentiment.score == 0
        assert analysis.sentiment.label == SentimentLabel.NEUTRAL

    def test_sentiment_uses_supplied_valences(self):
        scorer = TextSignalScorer(sentiment_lexicon={"terrible": -3.0, "awful": -2.6})

        sentiment = scorer.analyze("terrible awful day").sentiment

        assert sentiment.score == -6
        assert sentiment.label == SentimentLabel.NEGATIVE
        assert sentiment.comparative == pytest.approx(-2.0)

    def test_batch_preserves_order(self, scorer):
        results = scorer.batch_analyze([ZAMFARA, "peace and dialogue"])

        assert len(results) == 2
        assert results[0].conflict_score > results[1].conflict_score


class TestScreening:
    def test_conflict_report_is_accepted(self, scorer):
        result = scorer.screen_statement(ZAMFARA)

        assert result.is_conflict_related
        assert result.recommendation == Recommendation.ACCEPT

    def test_unrelated_statement_is_rejected(self, scorer):
        result = scorer.screen_statement("The weekly market opened on Tuesday")

        assert not result.is_conflict_related
        assert result.recommendation == Recommendation.REJECT


class TestEvents:
    def test_violence_and_tension_events(self, scorer):
        events = scorer.extract_conflict_events(ZAMFARA)

        assert [e.type for e in events] == ["violence", "tension"]
        assert events[0].location == "zamfara"
        assert events[1].severity != Severity.CRITICAL

    def test_no_indicators_no_events(self, scorer):
        assert scorer.extract_conflict_events("A quiet morning in the market") == []


class TestSimilarity:
    @pytest.mark.parametrize("text", ["", "Gunmen attacked Jos", "a a a b"])
    def test_identity(self, text):
        assert TextSignalScorer.calculate_similarity(text, text) == 1.0

    def test_symmetry(self):
        a = "Bandits attacked a village in Zamfara"
        b = "A village in Katsina was attacked by gunmen"

        assert TextSignalScorer.calculate_similarity(a, b) == TextSignalScorer.calculate_similarity(b, a)

    def test_case_and_punctuation_are_ignored(self):
        assert TextSignalScorer.calculate_similarity("Clash in Jos!", "clash in jos") == 1.0

    def test_duplicate_threshold(self, scorer):
        near = scorer.compare(
            "Gunmen attacked the village market at dawn",
            "Gunmen attacked the village market at night",
        )
        far = scorer.compare("Gunmen attacked the village", "Peace talks resumed in Abuja")

        assert near.is_duplicate
        assert near.confidence == round(near.similarity * 100)
        assert not far.is_duplicate


def test_tokenize_lowercases():
    assert tokenize("Boko Haram, ISWAP") == ["boko", "haram", "iswap"]
