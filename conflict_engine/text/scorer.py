"""Text signal scorer — lexicon hits, sentiment, TF-IDF keywords, and similarity."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Mapping

from sklearn.feature_extraction.text import TfidfVectorizer
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from conflict_engine.config import Settings, settings
from conflict_engine.records.models import Severity
from conflict_engine.text.lexicons import DEFAULT_LEXICON, Lexicon
from conflict_engine.text.models import (
    ConflictAnalysis,
    ConflictEvent,
    Entities,
    IndicatorHits,
    Recommendation,
    ScreeningResult,
    SentimentLabel,
    SentimentResult,
    SimilarityResult,
)

logger = logging.getLogger("engine.text")

_TOKEN_RE = re.compile(r"\w+")


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


@lru_cache(maxsize=1)
def vader_lexicon() -> Mapping[str, float]:
    """Word valences from the VADER lexicon, loaded once per process."""
    return SentimentIntensityAnalyzer().lexicon


def _risk_level(conflict_score: int) -> Severity:
    if conflict_score >= 70:
        return Severity.CRITICAL
    if conflict_score >= 50:
        return Severity.HIGH
    if conflict_score >= 30:
        return Severity.MEDIUM
    return Severity.LOW


class TextSignalScorer:
    """Scores free text for conflict and peace signals. Stateless apart from its lexicons."""

    def __init__(
        self,
        lexicon: Lexicon = DEFAULT_LEXICON,
        sentiment_lexicon: Mapping[str, float] | None = None,
        cfg: Settings | None = None,
    ) -> None:
        self._lexicon = lexicon
        self._valences = sentiment_lexicon if sentiment_lexicon is not None else vader_lexicon()
        self._cfg = cfg or settings

    def sentiment(self, tokens: list[str]) -> SentimentResult:
        score = round(sum(self._valences.get(t, 0.0) for t in tokens))
        comparative = score / len(tokens) if tokens else 0.0
        if score > 2:
            label = SentimentLabel.POSITIVE
        elif score < -2:
            label = SentimentLabel.NEGATIVE
        else:
            label = SentimentLabel.NEUTRAL
        return SentimentResult(score=score, comparative=comparative, label=label)

    def keywords(self, text: str) -> list[str]:
        """Top terms by TF-IDF weight with the text as the only document."""
        vectorizer = TfidfVectorizer(stop_words="english")
        try:
            matrix = vectorizer.fit_transform([text])
        except ValueError:
            # nothing left after stop-word removal
            return []
        weights = matrix.toarray()[0]
        terms = vectorizer.get_feature_names_out()
        ranked = sorted(zip(terms, weights), key=lambda tw: (-tw[1], tw[0]))
        return [str(term) for term, _ in ranked[: self._cfg.keyword_limit]]

    def analyze(self, text: str) -> ConflictAnalysis:
        """Score a validated, non-empty text."""
        lowered = text.lower()
        tokens = tokenize(lowered)
        lex = self._lexicon

        hits = IndicatorHits(
            violence=[t for t in lex.violence if t in lowered],
            tension=[t for t in lex.tension if t in lowered],
            peace=[t for t in lex.peace if t in lowered],
            humanitarian=[t for t in lex.humanitarian if t in lowered],
        )
        sentiment = self.sentiment(tokens)

        conflict_score = min(
            100,
            10 * len(hits.violence) + 5 * len(hits.tension) + 3 * max(0, -sentiment.score),
        )
        peace_score = min(100, 10 * len(hits.peace) + 3 * max(0, sentiment.score))

        groups = [g for g in lex.armed_groups if g in lowered]
        entities = Entities(
            locations=[loc for loc in lex.locations if loc in lowered],
            groups=groups,
            actors=list(groups),
        )

        risk_level = _risk_level(conflict_score)
        logger.debug(
            "Scored text: conflict=%d peace=%d sentiment=%d risk=%s",
            conflict_score, peace_score, sentiment.score, risk_level.value,
        )
        return ConflictAnalysis(
            conflict_score=conflict_score,
            peace_score=peace_score,
            sentiment=sentiment,
            indicators=hits,
            risk_level=risk_level,
            keywords=self.keywords(text),
            entities=entities,
        )

    def batch_analyze(self, texts: list[str]) -> list[ConflictAnalysis]:
        return [self.analyze(t) for t in texts]

    def screen_statement(self, statement: str) -> ScreeningResult:
        """Decide whether a statement should be accepted as a conflict report."""
        analysis = self.analyze(statement)
        total_hits = (
            len(analysis.indicators.violence)
            + len(analysis.indicators.tension)
            + len(analysis.indicators.humanitarian)
        )
        related = total_hits > 0 or analysis.conflict_score > 20
        confidence = min(
            100,
            15 * total_hits
            + 10 * len(analysis.entities.locations)
            + 15 * len(analysis.entities.groups),
        )

        if related and confidence >= 70:
            recommendation = Recommendation.ACCEPT
        elif related and confidence >= 40:
            recommendation = Recommendation.REVIEW
        else:
            recommendation = Recommendation.REJECT

        return ScreeningResult(
            is_conflict_related=related,
            confidence=confidence,
            analysis=analysis,
            recommendation=recommendation,
        )

    def extract_conflict_events(self, text: str) -> list[ConflictEvent]:
        analysis = self.analyze(text)
        location = analysis.entities.locations[0] if analysis.entities.locations else None
        events = []

        if analysis.indicators.violence:
            events.append(ConflictEvent(
                type="violence",
                description="Violence indicators detected: " + ", ".join(analysis.indicators.violence),
                location=location,
                actors=analysis.entities.groups,
                severity=analysis.risk_level,
            ))

        if analysis.indicators.tension:
            severity = analysis.risk_level
            if severity == Severity.CRITICAL:
                severity = Severity.HIGH
            events.append(ConflictEvent(
                type="tension",
                description="Tension indicators detected: " + ", ".join(analysis.indicators.tension),
                location=location,
                actors=analysis.entities.groups,
                severity=severity,
            ))

        return events

    @staticmethod
    def calculate_similarity(text1: str, text2: str) -> float:
        """Jaccard similarity of the two lower-cased token sets."""
        tokens1 = set(tokenize(text1))
        tokens2 = set(tokenize(text2))
        union = tokens1 | tokens2
        if not union:
            return 1.0
        return len(tokens1 & tokens2) / len(union)

    def compare(self, text1: str, text2: str) -> SimilarityResult:
        similarity = self.calculate_similarity(text1, text2)
        return SimilarityResult(
            similarity=similarity,
            is_duplicate=similarity > self._cfg.duplicate_similarity_threshold,
            confidence=round(similarity * 100),
        )
