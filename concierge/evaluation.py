"""Self-evaluation of delivered answers.

Heuristic scoring runs fire-and-forget on the event loop after each answer,
bounded by a short timeout. Evaluations are kept in a bounded log used for
quality summaries; nothing here may fail or delay the answer itself.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

from .agents.models import Emotion, EmotionalState
from .agents.synthesizer import FALLBACK_RESPONSE
from .text import extract_keywords

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 500
DEFAULT_TIMEOUT = 5.0
TREND_MIN_SAMPLES = 10
TREND_DELTA = 0.3

REASSURANCE_WORDS = ("yardımcı", "help", "endişe", "adım", "step")
ACTION_WORDS = ("rezervasyon", "book", "fiyat", "price", "paket", "package", "bütçe", "budget")


def _clamp(score: float) -> float:
    return max(0.0, min(10.0, score))


@dataclass(slots=True)
class ResponseEvaluation:
    """Scores (0-10) for one answer."""
    session_id: str
    query: str
    response: str
    scores: dict[str, float]
    overall: float
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    timestamp: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "query": self.query,
            "scores": self.scores,
            "overall": self.overall,
            "strengths": self.strengths,
            "weaknesses": self.weaknesses,
            "timestamp": self.timestamp,
        }


def score_response(
    query: str,
    response: str,
    emotional_state: EmotionalState | None = None,
) -> tuple[dict[str, float], list[str], list[str]]:
    """Heuristic scores plus strengths and weaknesses."""
    lowered = response.lower()
    strengths: list[str] = []
    weaknesses: list[str] = []

    helpfulness = 5.0
    if response == FALLBACK_RESPONSE:
        helpfulness -= 3
        weaknesses.append("Fallback answer")
    if len(response) > 80:
        helpfulness += 1
    keywords = extract_keywords(query)
    if keywords and any(k in lowered for k in keywords):
        helpfulness += 1.5
        strengths.append("Addresses the query topic")
    elif keywords:
        weaknesses.append("Does not mention the query topic")

    engagement = 5.0
    if "?" in response:
        engagement += 1.5
        strengths.append("Invites follow-up")
    if "!" in response:
        engagement += 0.5
    if "💕" in response or "✨" in response:
        engagement += 1

    actionability = 5.0
    if "SHOW_PACKAGES" in response:
        actionability += 2
        strengths.append("Offers packages")
    if any(word in lowered for word in ACTION_WORDS):
        actionability += 1

    emotional_fit = 5.0
    if emotional_state is not None:
        if emotional_state.primary is Emotion.ANXIETY:
            if any(word in lowered for word in REASSURANCE_WORDS):
                emotional_fit += 3
                strengths.append("Reassures an anxious user")
            else:
                weaknesses.append("No reassurance for an anxious user")
        elif emotional_state.primary is Emotion.EXCITEMENT:
            if "✨" in response or "!" in response:
                emotional_fit += 3
                strengths.append("Matches excitement")

    scores = {
        "helpfulness": _clamp(helpfulness),
        "engagement": _clamp(engagement),
        "actionability": _clamp(actionability),
        "emotional_fit": _clamp(emotional_fit),
    }
    return scores, strengths, weaknesses


class SelfEvaluator:
    """Scores answers in the background and keeps a bounded log."""

    __slots__ = ("_log", "_timeout", "_pending", "_clock")

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self._log: deque[ResponseEvaluation] = deque(maxlen=capacity)
        self._timeout = timeout
        self._pending: set[asyncio.Task] = set()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._log)

    def evaluate(
        self,
        query: str,
        response: str,
        session_id: str,
        emotional_state: EmotionalState | None = None,
    ) -> ResponseEvaluation:
        """Score an answer and store the evaluation."""
        scores, strengths, weaknesses = score_response(query, response, emotional_state)
        evaluation = ResponseEvaluation(
            session_id=session_id,
            query=query,
            response=response,
            scores=scores,
            overall=sum(scores.values()) / len(scores),
            strengths=strengths,
            weaknesses=weaknesses,
            timestamp=self._clock(),
        )
        self._log.append(evaluation)
        logger.debug(f"Evaluation stored for {session_id} (quality: {evaluation.overall:.1f})")
        return evaluation

    async def _evaluate(self, *args) -> ResponseEvaluation:
        return self.evaluate(*args)

    async def _run(self, *args) -> None:
        try:
            await asyncio.wait_for(self._evaluate(*args), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Self-evaluation timed out after {self._timeout}s")
        except Exception as e:
            logger.warning(f"Self-evaluation failed: {e}")

    def schedule(
        self,
        query: str,
        response: str,
        session_id: str,
        emotional_state: EmotionalState | None = None,
    ) -> asyncio.Task:
        """Evaluate in the background. Must be called from a running loop."""
        task = asyncio.create_task(self._run(query, response, session_id, emotional_state))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for scheduled evaluations to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def recent(self, limit: int = 10) -> list[ResponseEvaluation]:
        return list(self._log)[-limit:]

    def summary(self) -> dict[str, Any]:
        """Average quality and trend over the log."""
        evaluations = list(self._log)
        if not evaluations:
            return {"count": 0, "average_quality": 0.0, "trend": "stable"}

        average = sum(e.overall for e in evaluations) / len(evaluations)
        trend = "stable"
        if len(evaluations) >= TREND_MIN_SAMPLES:
            half = len(evaluations) // 2
            older = sum(e.overall for e in evaluations[:half]) / half
            recent = sum(e.overall for e in evaluations[half:]) / (len(evaluations) - half)
            if recent - older > TREND_DELTA:
                trend = "improving"
            elif recent - older < -TREND_DELTA:
                trend = "declining"

        return {"count": len(evaluations), "average_quality": average, "trend": trend}
