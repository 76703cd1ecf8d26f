"""
Team Analytics Engine

This module synthesizes collaboration insights from a team message stream:
- Communication pattern metrics (response time, thread depth, cross-channel activity)
- Activity breakdowns by day, hour, channel and user
- Composite collaboration score
- Stress and deadline risk detection
- Rule-based recommendations per risk
"""

from typing import List, Optional

import numpy as np
import pandas as pd
import structlog

from ..config.settings import get_settings
from ..models.analysis_models import (
    CommunicationPatterns,
    Recommendation,
    RecommendationType,
    RiskFactor,
    RiskType,
    Severity,
    TeamInsights,
)
from ..models.data_models import ChatMessage
from .lexicon import STRESS_WORDS, TEAM_URGENCY_PATTERNS, contains_any, count_pattern_hits

logger = structlog.get_logger(__name__)

BASE_COLLABORATION_SCORE = 50
PARTICIPANT_POINTS = 2
PARTICIPANT_CAP = 20
RESPONSE_TIME_BONUSES = ((60, 15), (180, 10), (360, 5))
THREAD_DEPTH_BONUSES = ((3, 10), (2, 5))
EVIDENCE_LENGTH = 50


def _truncate(text: str, length: int = EVIDENCE_LENGTH) -> str:
    return text if len(text) <= length else text[:length] + "..."


class TeamAnalyticsEngine:
    """Aggregates per-message signals into team-level insights"""

    def __init__(self):
        self.settings = get_settings()

    async def generate_team_insights(self, messages: List[ChatMessage]) -> TeamInsights:
        """Compute collaboration score, communication metrics, risks and recommendations"""
        frame = self._to_frame(messages)
        communication = self._communication_patterns(frame)
        participants = int(frame["author"].nunique()) if not frame.empty else 0

        score = self._collaboration_score(
            participants,
            communication.average_response_time_minutes if len(frame) > 1 else None,
            communication.average_thread_depth,
        )
        risks = self._assess_risks(frame)
        recommendations = self._recommend(risks, communication)

        logger.info(
            "Team insights generated",
            messages=len(frame),
            participants=participants,
            collaboration_score=score,
            risks=len(risks),
        )
        return TeamInsights(
            collaboration_score=score,
            communication=communication,
            participant_count=participants,
            risk_factors=risks,
            recommendations=recommendations,
        )

    @staticmethod
    def _to_frame(messages: List[ChatMessage]) -> pd.DataFrame:
        frame = pd.DataFrame(
            [
                {
                    "id": m.id,
                    "text": m.text,
                    "author": m.author.name,
                    "channel": m.channel.name,
                    "timestamp": pd.Timestamp(m.timestamp),
                }
                for m in messages
            ],
            columns=["id", "text", "author", "channel", "timestamp"],
        )
        return frame.sort_values("timestamp").reset_index(drop=True)

    def _communication_patterns(self, frame: pd.DataFrame) -> CommunicationPatterns:
        if frame.empty:
            return CommunicationPatterns()

        gaps = frame["timestamp"].diff().dropna().dt.total_seconds() / 60
        average_response = float(gaps.mean()) if not gaps.empty else 0.0

        per_channel = frame.groupby("channel").size()
        channels_per_author = frame.groupby("author")["channel"].nunique()
        per_day = frame.groupby(frame["timestamp"].dt.date).size()
        per_hour = frame.groupby(frame["timestamp"].dt.hour).size().sort_values(ascending=False, kind="stable")

        return CommunicationPatterns(
            average_response_time_minutes=round(average_response, 2),
            average_thread_depth=round(float(per_channel.mean()), 2),
            cross_channel_activity=int((channels_per_author > 1).sum()),
            messages_per_day={day.isoformat(): int(count) for day, count in per_day.items()},
            peak_hours=[int(hour) for hour in per_hour.index[:3]],
            most_active_channels=list(frame["channel"].value_counts().index[:3]),
            most_active_users=list(frame["author"].value_counts().index[:3]),
        )

    @staticmethod
    def _collaboration_score(
        participants: int,
        average_response: Optional[float],
        average_depth: float,
    ) -> float:
        score = BASE_COLLABORATION_SCORE + min(PARTICIPANT_CAP, PARTICIPANT_POINTS * participants)

        if average_response is not None:
            for limit, bonus in RESPONSE_TIME_BONUSES:
                if average_response < limit:
                    score += bonus
                    break

        for floor, bonus in THREAD_DEPTH_BONUSES:
            if average_depth > floor:
                score += bonus
                break

        return float(np.clip(score, 0, 100))

    def _assess_risks(self, frame: pd.DataFrame) -> List[RiskFactor]:
        if frame.empty:
            return []

        analytics = self.settings.analytics
        risks = []
        total = len(frame)

        stressed = frame[frame["text"].map(lambda text: bool(contains_any(text, STRESS_WORDS)))]
        stress_ratio = len(stressed) / total
        if stress_ratio > analytics.stress_ratio_threshold:
            risks.append(RiskFactor(
                type=RiskType.STRESS,
                severity=Severity.HIGH if stress_ratio > analytics.stress_high_ratio else Severity.MEDIUM,
                description=f"{stress_ratio:.0%} of messages show signs of stress",
                affected_users=list(dict.fromkeys(stressed["author"])),
                evidence=[_truncate(text) for text in stressed["text"].head(3)],
            ))

        urgent = frame[frame["text"].map(lambda text: bool(count_pattern_hits(text, TEAM_URGENCY_PATTERNS)))]
        if len(urgent) > analytics.deadline_message_threshold:
            risks.append(RiskFactor(
                type=RiskType.DEADLINE,
                severity=Severity.HIGH if len(urgent) > analytics.deadline_high_threshold else Severity.MEDIUM,
                description=f"{len(urgent)} messages carry urgent deadline pressure",
                affected_users=list(dict.fromkeys(urgent["author"])),
                evidence=[_truncate(text) for text in urgent["text"].head(2)],
            ))

        return risks

    def _recommend(self, risks: List[RiskFactor], communication: CommunicationPatterns) -> List[Recommendation]:
        recommendations = []
        for risk in risks:
            if risk.type == RiskType.STRESS:
                recommendations.append(Recommendation(
                    type=RecommendationType.MANAGEMENT,
                    priority=Severity.HIGH if risk.severity == Severity.HIGH else Severity.MEDIUM,
                    title="Rebalance workload",
                    description="Re-evaluate workload allocation across the team",
                    action_steps=[
                        "Review current assignments per person",
                        "Move non-critical work off overloaded members",
                        "Schedule a check-in on team capacity",
                    ],
                ))
            elif risk.type == RiskType.DEADLINE:
                recommendations.append(Recommendation(
                    type=RecommendationType.PROCESS,
                    priority=Severity.HIGH,
                    title="Introduce a prioritization process",
                    description="Optimize project time management and prioritization",
                    action_steps=[
                        "Rank open work by impact and due date",
                        "Agree on a single owner for each urgent item",
                        "Add buffer time to upcoming milestones",
                    ],
                ))

        if communication.average_response_time_minutes > self.settings.analytics.slow_response_minutes:
            recommendations.append(Recommendation(
                type=RecommendationType.COMMUNICATION,
                priority=Severity.MEDIUM,
                title="Improve response time",
                description="Improve team response time on open discussions",
                action_steps=[
                    "Set expected response windows per channel",
                    "Use explicit mentions for blocking questions",
                    "Hold a short daily sync for open threads",
                ],
            ))

        return recommendations


# Global analytics engine instance
_analytics_engine: Optional[TeamAnalyticsEngine] = None


def get_analytics_engine() -> TeamAnalyticsEngine:
    """Get the global analytics engine"""
    global _analytics_engine
    if _analytics_engine is None:
        _analytics_engine = TeamAnalyticsEngine()
    return _analytics_engine
