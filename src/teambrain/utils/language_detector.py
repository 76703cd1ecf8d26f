"""
Language detection and segmentation for mixed Chinese/English text.

The script-ratio verdict is authoritative; a seeded ``langdetect`` guess is
attached as a secondary signal and only decides texts without letters of
either class.
"""

from typing import List, Optional

import structlog
from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException

from ..models.analysis_models import LanguageDetection, LanguageSegment
from .lexicon import ALPHABETIC_CHAR, IDEOGRAPHIC_CHAR, is_alphabetic, is_ideographic

logger = structlog.get_logger(__name__)

DetectorFactory.seed = 0

ZH = "zh"
EN = "en"
MIXED = "mixed"

MIXED_IDEOGRAPHIC_THRESHOLD = 0.3
MIXED_ALPHABETIC_THRESHOLD = 0.1
MIXED_CONFIDENCE_CAP = 0.9
DOMINANT_SCALE = 1.2
CONFIDENCE_CAP = 0.95
AGREEMENT_BONUS = 0.05


class LanguageDetector:
    """Classifies the script mixture of a text and splits it into runs."""

    def detect(self, text: str) -> LanguageDetection:
        if not text:
            return LanguageDetection(language=EN, confidence=0.0, ideographic_ratio=0.0, alphabetic_ratio=0.0)

        total = len(text)
        zh_ratio = len(IDEOGRAPHIC_CHAR.findall(text)) / total
        en_ratio = len(ALPHABETIC_CHAR.findall(text)) / total
        guess = self._statistical_guess(text)

        if zh_ratio > MIXED_IDEOGRAPHIC_THRESHOLD and en_ratio > MIXED_ALPHABETIC_THRESHOLD:
            language = MIXED
            confidence = min(zh_ratio + en_ratio, MIXED_CONFIDENCE_CAP)
        elif zh_ratio == 0 and en_ratio == 0:
            # Nothing to count; defer to the statistical guess
            language = guess or EN
            confidence = 0.0
        elif zh_ratio > en_ratio:
            language = ZH
            confidence = min(zh_ratio * DOMINANT_SCALE, CONFIDENCE_CAP)
        else:
            language = EN
            confidence = min(en_ratio * DOMINANT_SCALE, CONFIDENCE_CAP)

        if language in (ZH, EN) and confidence > 0 and guess == language:
            confidence = min(confidence + AGREEMENT_BONUS, CONFIDENCE_CAP)

        return LanguageDetection(
            language=language,
            confidence=round(confidence, 4),
            ideographic_ratio=zh_ratio,
            alphabetic_ratio=en_ratio,
            statistical_guess=guess,
        )

    def _statistical_guess(self, text: str) -> Optional[str]:
        try:
            code = detect(text)
        except LangDetectException:
            return None
        if code.startswith("zh"):
            return ZH
        if code == "en":
            return EN
        return code

    def segment(self, text: str) -> List[LanguageSegment]:
        """Split ``text`` into contiguous single-language runs.

        Characters that are neither ideographic nor alphabetic (spaces,
        digits, punctuation) stay with the run they appear in; leading ones
        join the first run. Segments partition the text exactly.
        """
        if not text:
            return []

        segments: List[LanguageSegment] = []
        current: Optional[str] = None
        start = 0

        for index, char in enumerate(text):
            if is_ideographic(char):
                kind = ZH
            elif is_alphabetic(char):
                kind = EN
            else:
                continue

            if current is None:
                current = kind
            elif kind != current:
                segments.append(LanguageSegment(text=text[start:index], language=current, start=start, end=index))
                start = index
                current = kind

        segments.append(LanguageSegment(
            text=text[start:],
            language=current or self.detect(text).language,
            start=start,
            end=len(text),
        ))
        return segments


_detector: Optional[LanguageDetector] = None


def get_language_detector() -> LanguageDetector:
    """Get the shared language detector"""
    global _detector
    if _detector is None:
        _detector = LanguageDetector()
    return _detector
