"""
Unit tests for team analytics and the deep analysis cascade
"""

from datetime import datetime, timedelta

import pytest

from teambrain.models.analysis_models import RecommendationType, RiskType, Severity
from teambrain.utils.analytics_engine import TeamAnalyticsEngine
from teambrain.utils.nlp_processor import AnalysisOptions


@pytest.fixture
def engine():
    return TeamAnalyticsEngine()


START = datetime(2024, 3, 12, 9, 0)


def stream(make_message, texts, minutes_apart=5, authors=("alice", "bob")):
    return [
        make_message(text, author=authors[i % len(authors)], timestamp=START + timedelta(minutes=i * minutes_apart))
        for i, text in enumerate(texts)
    ]


class TestCollaborationScore:
    @pytest.mark.asyncio
    async def test_empty_stream(self, engine):
        insights = await engine.generate_team_insights([])

        assert insights.collaboration_score == 50
        assert insights.participant_count == 0
        assert insights.risk_factors == []
        assert insights.recommendations == []

    @pytest.mark.asyncio
    async def test_score_is_capped(self, engine, make_message):
        authors = tuple(f"user{i}" for i in range(15))
        messages = stream(make_message, ["hello"] * 30, minutes_apart=1, authors=authors)

        insights = await engine.generate_team_insights(messages)

        # 50 + 20 (participant cap) + 15 (fast replies) + 10 (deep thread)
        assert insights.collaboration_score == 95
        assert 0 <= insights.collaboration_score <= 100

    @pytest.mark.asyncio
    async def test_single_message_has_no_response_bonus(self, engine, make_message):
        insights = await engine.generate_team_insights([make_message("hi", timestamp=START)])

        assert insights.collaboration_score == 52

    @pytest.mark.asyncio
    async def test_communication_patterns(self, engine, make_message):
        messages = [
            make_message("a", author="alice", channel="general", timestamp=START),
            make_message("b", author="bob", channel="general", timestamp=START + timedelta(minutes=10)),
            make_message("c", author="alice", channel="ops", timestamp=START + timedelta(minutes=30)),
        ]

        insights = await engine.generate_team_insights(messages)
        communication = insights.communication

        assert communication.average_response_time_minutes == 15.0
        assert communication.average_thread_depth == 1.5
        assert communication.cross_channel_activity == 1
        assert communication.messages_per_day == {"2024-03-12": 3}
        assert communication.most_active_channels[0] == "general"
        assert communication.most_active_users[0] == "alice"
        assert communication.peak_hours == [9]


class TestRisks:
    """Test stress and deadline risk detection"""

    @pytest.mark.asyncio
    async def test_stress_risk_high(self, engine, make_message):
        messages = stream(make_message, [
            "another overtime night",
            "I'm exhausted",
            "status is green",
            "shipping tomorrow",
        ])

        insights = await engine.generate_team_insights(messages)
        stress = [risk for risk in insights.risk_factors if risk.type == RiskType.STRESS]

        assert len(stress) == 1
        assert stress[0].severity == Severity.HIGH
        assert stress[0].affected_users == ["alice", "bob"]
        assert stress[0].evidence[0] == "another overtime night"

    @pytest.mark.asyncio
    async def test_stress_risk_medium(self, engine, make_message):
        texts = ["feeling stressed"] + ["all good"] * 4
        insights = await engine.generate_team_insights(stream(make_message, texts))

        stress = [risk for risk in insights.risk_factors if risk.type == RiskType.STRESS]
        assert stress[0].severity == Severity.MEDIUM

    @pytest.mark.asyncio
    async def test_no_stress_below_threshold(self, engine, make_message):
        texts = ["feeling stressed"] + ["all good"] * 9
        insights = await engine.generate_team_insights(stream(make_message, texts))

        assert not [risk for risk in insights.risk_factors if risk.type == RiskType.STRESS]

    @pytest.mark.asyncio
    async def test_deadline_risk(self, engine, make_message):
        texts = ["this is urgent"] * 4 + ["ok"] * 4
        insights = await engine.generate_team_insights(stream(make_message, texts))

        deadline = [risk for risk in insights.risk_factors if risk.type == RiskType.DEADLINE]
        assert len(deadline) == 1
        assert deadline[0].severity == Severity.MEDIUM
        assert len(deadline[0].evidence) == 2

    @pytest.mark.asyncio
    async def test_deadline_risk_high(self, engine, make_message):
        insights = await engine.generate_team_insights(stream(make_message, ["need this ASAP"] * 9))

        deadline = [risk for risk in insights.risk_factors if risk.type == RiskType.DEADLINE]
        assert deadline[0].severity == Severity.HIGH

    @pytest.mark.asyncio
    async def test_three_urgent_messages_not_a_risk(self, engine, make_message):
        insights = await engine.generate_team_insights(stream(make_message, ["urgent"] * 3))

        assert not [risk for risk in insights.risk_factors if risk.type == RiskType.DEADLINE]

    @pytest.mark.asyncio
    async def test_evidence_truncated(self, engine, make_message):
        long_text = "overtime again " + "x" * 80
        insights = await engine.generate_team_insights(stream(make_message, [long_text, long_text]))

        evidence = insights.risk_factors[0].evidence[0]
        assert evidence.endswith("...")
        assert len(evidence) == 53


class TestRecommendations:
    @pytest.mark.asyncio
    async def test_one_recommendation_per_risk(self, engine, make_message):
        texts = ["overtime and urgent"] * 5
        insights = await engine.generate_team_insights(stream(make_message, texts))

        types = [recommendation.type for recommendation in insights.recommendations]
        assert RecommendationType.MANAGEMENT in types
        assert RecommendationType.PROCESS in types
        assert all(len(r.action_steps) == 3 for r in insights.recommendations)

    @pytest.mark.asyncio
    async def test_slow_responses_recommend_communication(self, engine, make_message):
        messages = stream(make_message, ["update", "reply", "later"], minutes_apart=300)

        insights = await engine.generate_team_insights(messages)

        assert [r.type for r in insights.recommendations] == [RecommendationType.COMMUNICATION]


class TestDeepAnalysis:
    """Test the combined analysis cascade"""

    @pytest.mark.asyncio
    async def test_full_cascade(self, nlp_processor, team_messages):
        result = await nlp_processor.perform_deep_analysis(team_messages)

        assert result.message_count == 5
        assert result.sentiment is not None
        assert result.tasks
        assert result.team_insights is not None
        assert "tasks:" in result.summary
        assert "collaboration score" in result.summary
        assert result.processing_time_ms >= 0

    @pytest.mark.asyncio
    async def test_options_skip_sub_analyses(self, nlp_processor, team_messages):
        options = AnalysisOptions(include_sentiment=False, include_meetings=False, include_team_insights=False)

        result = await nlp_processor.perform_deep_analysis(team_messages, options)

        assert result.sentiment is None
        assert result.meetings == []
        assert result.team_insights is None
        assert result.tasks

    @pytest.mark.asyncio
    async def test_result_serializes(self, nlp_processor, team_messages):
        result = await nlp_processor.perform_deep_analysis(team_messages)

        payload = result.to_dict()

        assert payload["message_count"] == 5
        assert isinstance(payload["generated_at"], str)
        assert isinstance(payload["tasks"][0]["priority"], str)

    def test_options_from_params(self):
        options = AnalysisOptions.from_params({"include_tasks": False, "timeframe_days": "14"})

        assert options.include_tasks is False
        assert options.include_sentiment is True
        assert options.timeframe_days == 14

    @pytest.mark.asyncio
    async def test_analyze_text(self, nlp_processor):
        payload = await nlp_processor.analyze_text("please email ops@example.com the report today")

        assert payload["language"]["language"] == "en"
        assert payload["tasks"]
        assert payload["entities"][0]["label"] == "EMAIL"
