"""
Unit tests for language detection and segmentation
"""

import pytest

from teambrain.utils.language_detector import LanguageDetector


@pytest.fixture(scope="module")
def detector():
    return LanguageDetector()


class TestDetection:
    def test_empty_text(self, detector):
        result = detector.detect("")

        assert result.language == "en"
        assert result.confidence == 0.0

    def test_english(self, detector):
        result = detector.detect("The deployment finished without errors")

        assert result.language == "en"
        assert 0 < result.confidence <= 0.95
        assert result.ideographic_ratio == 0.0

    def test_chinese(self, detector):
        result = detector.detect("今天下午开会讨论项目进度")

        assert result.language == "zh"
        assert result.confidence == 0.95

    def test_mixed(self, detector):
        result = detector.detect("明天的会议改到三点 meeting moved")

        assert result.language == "mixed"
        assert result.ideographic_ratio > 0.3
        assert result.alphabetic_ratio > 0.1
        assert result.confidence <= 0.9

    def test_few_latin_letters_stay_chinese(self, detector):
        result = detector.detect("我们今天要完成所有的接口联调工作和测试OK")

        assert result.language == "zh"


class TestSegmentation:
    @pytest.mark.parametrize("text", [
        "hello 世界 again",
        "  开始 start 结束。",
        "纯中文句子",
        "only english here",
        "123 数字 and symbols!!",
    ])
    def test_segments_partition_text(self, detector, text):
        segments = detector.segment(text)

        assert "".join(segment.text for segment in segments) == text
        assert segments[0].start == 0
        assert segments[-1].end == len(text)
        for previous, current in zip(segments, segments[1:]):
            assert previous.end == current.start
        for segment in segments:
            assert text[segment.start:segment.end] == segment.text

    def test_runs_alternate_languages(self, detector):
        segments = detector.segment("hello 世界 again")

        assert [segment.language for segment in segments] == ["en", "zh", "en"]
        assert segments[0].text == "hello "

    def test_punctuation_does_not_split(self, detector):
        segments = detector.segment("好的，没问题！")

        assert len(segments) == 1
        assert segments[0].language == "zh"

    def test_empty_text(self, detector):
        assert detector.segment("") == []
