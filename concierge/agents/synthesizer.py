"""Response Synthesizer - merges agent contributions into one answer."""

import logging

from .models import AgentId, AgentResponse, Emotion, EmotionalState, TaskDistribution

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "Üzgünüm, şu anda size yardımcı olamıyorum. Lütfen daha sonra tekrar deneyin."

PACKAGE_MARKER = "\n\n**SHOW_PACKAGES:romantic**"
PACKAGE_MARKER_TAG = "SHOW_PACKAGES"
PACKAGE_WORDS = ("paket", "package")

EMOTION_CLOSERS: dict[Emotion, str] = {
    Emotion.EXCITEMENT: "\n\nHeyecanınızı paylaşıyorum! ✨",
    Emotion.ANXIETY: "\n\nSize her adımda yardımcı olacağım. 💕",
}

ROMANCE_CLOSER = "\n\nRomantiğin en güzel halini yaşamaya hazır mısınız? 💕"
EMOTIVE_MARKERS = ("💕", "✨")

ASSIST_CONFIDENCE = 0.6
ROMANCE_CONFIDENCE = 0.7
REDUNDANCY_PREFIX = 20


def synthesize(
    responses: list[AgentResponse],
    distribution: TaskDistribution,
    emotional_state: EmotionalState | None = None,
) -> str:
    """Merge agent responses into the final answer.

    Args:
        responses: Successful responses in selection order.
        distribution: The distribution that produced them.
        emotional_state: Caller-supplied emotion, selects the closing line.

    Returns:
        The answer text, or the fallback apology when nothing usable came back.
    """
    if not responses:
        return FALLBACK_RESPONSE

    primary = next((r for r in responses if r.agent_id == distribution.primary_agent), None)
    if primary is None:
        # primary failed; promote the first survivor
        primary = responses[0]

    text = primary.content
    for response in responses:
        if response is primary or not response.content:
            continue
        if response.confidence <= ASSIST_CONFIDENCE:
            continue
        if response.content[:REDUNDANCY_PREFIX] not in text:
            text += response.content

    suggests_packages = any(
        word in recommendation.lower()
        for response in responses
        for recommendation in response.recommendations
        for word in PACKAGE_WORDS
    )
    if suggests_packages and PACKAGE_MARKER_TAG not in text:
        text += PACKAGE_MARKER

    if emotional_state is not None:
        text += EMOTION_CLOSERS.get(emotional_state.primary, "")

    romance = next(
        (r for r in responses if r.agent_id == AgentId.ROMANCE_CONCIERGE.value), None
    )
    if romance is not None and romance.confidence > ROMANCE_CONFIDENCE:
        if not any(marker in text for marker in EMOTIVE_MARKERS):
            text += ROMANCE_CLOSER

    text = text.strip()
    if not text:
        logger.info("Agents returned no usable content, using fallback response")
        return FALLBACK_RESPONSE
    return text


def response_quality(responses: list[AgentResponse], distribution: TaskDistribution) -> float:
    """Average of mean agent confidence and the expected quality; 0 with no responses."""
    if not responses:
        return 0.0
    mean_confidence = sum(r.confidence for r in responses) / len(responses)
    return (mean_confidence + distribution.expected_quality) / 2
