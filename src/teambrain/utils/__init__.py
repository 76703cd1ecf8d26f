"""
Utilities Package

Building blocks of the text-analytics cascade:
- Lexicon and pattern store shared by every analyzer
- Language detection and mixed-language segmentation
- Multilingual sentiment scoring
- Team analytics (collaboration score, risks, recommendations)

The cascade coordinator lives in ``teambrain.utils.nlp_processor`` and is
imported from there directly.
"""

from .language_detector import LanguageDetector, get_language_detector
from .sentiment_scorer import SentimentScorer, get_sentiment_scorer
from .analytics_engine import TeamAnalyticsEngine, get_analytics_engine

__all__ = [
    "LanguageDetector",
    "get_language_detector",
    "SentimentScorer",
    "get_sentiment_scorer",
    "TeamAnalyticsEngine",
    "get_analytics_engine",
]
