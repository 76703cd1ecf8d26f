"""
Multilingual sentiment scoring

This module scores Chinese, English and mixed-language text:
- Dictionary weighting over jieba word segmentation for ideographic text
- VADER polarity blended 60/40 with dictionary weights for alphabetic text
- Contextual adjustment for negation, intensifiers and emoticons
- Length-weighted blending of per-segment results for mixed text
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

import jieba
import structlog
from nltk.tokenize import TweetTokenizer
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from ..models.analysis_models import (
    ContextualFactors,
    EmotionBreakdown,
    SentimentLabel,
    SentimentResult,
)
from .language_detector import EN, MIXED, ZH, LanguageDetector, get_language_detector
from .lexicon import (
    CHINESE_INTENSIFIERS,
    CHINESE_NEGATIONS,
    CHINESE_SENTIMENT,
    EMOTICON_PATTERN,
    EMOTION_WORDS,
    ENGLISH_INTENSIFIERS,
    ENGLISH_NEGATIONS,
    ENGLISH_SENTIMENT,
    is_alphabetic,
    is_ideographic,
)

logger = structlog.get_logger(__name__)

POLARITY_WEIGHT = 0.6
DICTIONARY_WEIGHT = 0.4
POLARITY_SCALE = 5.0

NEGATION_FACTOR = -0.5
INTENSIFIER_STEP = 0.2
EMOTICON_STEP = 0.1

CLASSIFICATION_THRESHOLD = 0.1
CONFIDENCE_CAP = 0.95
NEUTRAL_CONFIDENCE_BASE = 0.6
NEUTRAL_CONFIDENCE_FLOOR = 0.3

EMOTION_NAMES = ("joy", "anger", "fear", "sadness", "surprise")


def classify_comparative(comparative: float) -> Tuple[SentimentLabel, float]:
    """Map a per-token score to a label and a confidence."""
    magnitude = abs(comparative)
    if comparative > CLASSIFICATION_THRESHOLD:
        return SentimentLabel.POSITIVE, min(magnitude * 2, CONFIDENCE_CAP)
    if comparative < -CLASSIFICATION_THRESHOLD:
        return SentimentLabel.NEGATIVE, min(magnitude * 2, CONFIDENCE_CAP)
    return SentimentLabel.NEUTRAL, max(NEUTRAL_CONFIDENCE_BASE - magnitude * 2, NEUTRAL_CONFIDENCE_FLOOR)


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


class SentimentScorer:
    """Scores text sentiment per language segment"""

    _jieba_ready = False

    def __init__(self, detector: Optional[LanguageDetector] = None):
        self.detector = detector or get_language_detector()
        self._tokenizer = TweetTokenizer(preserve_case=False, reduce_len=True)
        self._polarity = SentimentIntensityAnalyzer()
        self._english_lexicon: Dict[str, float] = dict(self._polarity.lexicon)
        self._english_lexicon.update(ENGLISH_SENTIMENT)
        self._prepare_segmenter()

    @classmethod
    def _prepare_segmenter(cls):
        """Register lexicon words with jieba so segmentation keeps them whole"""
        if cls._jieba_ready:
            return
        jieba.setLogLevel(logging.WARNING)
        vocabulary = set(CHINESE_SENTIMENT) | set(EMOTION_WORDS) | CHINESE_NEGATIONS | CHINESE_INTENSIFIERS
        for word in vocabulary:
            if len(word) > 1:
                jieba.add_word(word)
        cls._jieba_ready = True
        logger.debug("Registered sentiment vocabulary with segmenter", words=len(vocabulary))

    async def analyze(self, text: str) -> SentimentResult:
        """Analyze sentiment of a text of any supported language mix"""
        return self.score(text)

    async def analyze_batch(self, texts: List[str]) -> List[SentimentResult]:
        """Analyze multiple texts"""
        return await asyncio.gather(*(self.analyze(text) for text in texts))

    def score(self, text: str) -> SentimentResult:
        detection = self.detector.detect(text)
        if detection.language == MIXED:
            return self._score_mixed(text)
        if detection.language == ZH:
            return self.score_segment(text, ZH)
        return self.score_segment(text, EN)

    def score_segment(self, text: str, language: str) -> SentimentResult:
        """Score a homogeneous-language span"""
        if language == ZH:
            raw, tokens, positive, negative, negations, intensifiers, emotions = self._score_ideographic(text)
        else:
            raw, tokens, positive, negative, negations, intensifiers, emotions = self._score_alphabetic(text)

        emoticons = EMOTICON_PATTERN.findall(text)

        # Adjustment order is fixed: negation, intensifiers, emoticons
        # Alphabetic text only negates its dictionary part, VADER compound already carries negation
        if negations and language == ZH:
            raw *= NEGATION_FACTOR
        if intensifiers:
            raw *= 1 + INTENSIFIER_STEP * len(intensifiers)
        if emoticons:
            raw += EMOTICON_STEP * len(emoticons)

        comparative = raw / max(len(tokens), 1)
        label, confidence = classify_comparative(comparative)

        return SentimentResult(
            score=raw,
            comparative=comparative,
            positive=_unique(positive),
            negative=_unique(negative),
            classification=label,
            confidence=confidence,
            emotions=emotions,
            context=ContextualFactors(
                has_negation=bool(negations),
                intensifiers=_unique(intensifiers),
                emoticons=_unique(emoticons),
            ),
            language=language,
            token_count=len(tokens),
        )

    def _score_ideographic(self, text: str):
        tokens = [t for t in jieba.lcut(text) if any(is_ideographic(c) or c.isalnum() for c in t)]
        total = 0.0
        positive, negative, negations, intensifiers = [], [], [], []
        emotion_totals = dict.fromkeys(EMOTION_NAMES, 0.0)

        for token in tokens:
            if token in CHINESE_NEGATIONS:
                negations.append(token)
                continue
            if token in CHINESE_INTENSIFIERS:
                intensifiers.append(token)
                continue
            for term in self._lexicon_terms(token):
                weight = CHINESE_SENTIMENT[term]
                total += weight
                if weight > 0:
                    positive.append(term)
                elif weight < 0:
                    negative.append(term)
            for word, weights in EMOTION_WORDS.items():
                if word in token:
                    for emotion, value in weights.items():
                        emotion_totals[emotion] += value

        return total, tokens, positive, negative, negations, intensifiers, EmotionBreakdown(**emotion_totals)

    def _lexicon_terms(self, token: str) -> List[str]:
        """Lexicon entries covering ``token``: the token itself, else greedy longest sub-matches"""
        if token in CHINESE_SENTIMENT:
            return [token]
        terms = []
        index = 0
        while index < len(token):
            for size in range(min(4, len(token) - index), 0, -1):
                candidate = token[index:index + size]
                if candidate in CHINESE_SENTIMENT:
                    terms.append(candidate)
                    index += size
                    break
            else:
                index += 1
        return terms

    def _score_alphabetic(self, text: str):
        tokens = [t for t in self._tokenizer.tokenize(text) if any(is_alphabetic(c) for c in t)]
        positive, negative, negations, intensifiers = [], [], [], []
        dictionary_total = 0.0
        matched = False

        for token in tokens:
            if token in ENGLISH_NEGATIONS or token.endswith("n't"):
                negations.append(token)
                continue
            if token in ENGLISH_INTENSIFIERS:
                intensifiers.append(token)
                continue
            weight = self._english_lexicon.get(token)
            if weight is None:
                continue
            matched = True
            dictionary_total += weight
            if weight > 0:
                positive.append(token)
            elif weight < 0:
                negative.append(token)

        if negations:
            dictionary_total *= NEGATION_FACTOR

        polarity = self._polarity.polarity_scores(text)
        compound = polarity["compound"]
        if matched:
            raw = POLARITY_WEIGHT * compound * POLARITY_SCALE + DICTIONARY_WEIGHT * dictionary_total
        else:
            raw = compound * POLARITY_SCALE

        emotions = EmotionBreakdown(
            joy=polarity["pos"] * 3,
            anger=polarity["neg"] * 2,
            fear=polarity["neg"] * 1.5,
            sadness=polarity["neg"] * 2,
            surprise=1.0 if abs(compound) > 0.5 else 0.0,
        )
        return raw, tokens, positive, negative, negations, intensifiers, emotions

    def _score_mixed(self, text: str) -> SentimentResult:
        segments = self.detector.segment(text)
        total_length = sum(segment.length for segment in segments) or 1

        score = comparative = confidence = 0.0
        emotion_totals = dict.fromkeys(EMOTION_NAMES, 0.0)
        positive, negative, intensifiers, emoticons = [], [], [], []
        has_negation = False
        token_count = 0

        for segment in segments:
            result = self.score_segment(segment.text, segment.language)
            weight = segment.length / total_length
            score += result.score * weight
            comparative += result.comparative * weight
            confidence += result.confidence * weight
            for emotion in EMOTION_NAMES:
                emotion_totals[emotion] += getattr(result.emotions, emotion) * weight
            positive.extend(result.positive)
            negative.extend(result.negative)
            intensifiers.extend(result.context.intensifiers)
            emoticons.extend(result.context.emoticons)
            has_negation = has_negation or result.context.has_negation
            token_count += result.token_count

        label, _ = classify_comparative(comparative)
        logger.debug("Blended mixed-language sentiment", segments=len(segments), comparative=comparative)

        return SentimentResult(
            score=score,
            comparative=comparative,
            positive=_unique(positive),
            negative=_unique(negative),
            classification=label,
            confidence=min(confidence, CONFIDENCE_CAP),
            emotions=EmotionBreakdown(**emotion_totals),
            context=ContextualFactors(
                has_negation=has_negation,
                intensifiers=_unique(intensifiers),
                emoticons=_unique(emoticons),
            ),
            language=MIXED,
            token_count=token_count,
        )


_scorer: Optional[SentimentScorer] = None


def get_sentiment_scorer() -> SentimentScorer:
    """Get the shared sentiment scorer"""
    global _scorer
    if _scorer is None:
        _scorer = SentimentScorer()
    return _scorer
