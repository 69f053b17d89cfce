"""Agent Responders - one content strategy per agent role.

Each responder turns a query and its context into an ``AgentOutput``. The
executor multiplies the agent's base confidence by the output factor, so
adding a role only means registering a new responder in the table.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from ..realtime import RealTimeDataProvider
from .models import AgentContext, AgentId, AgentRole, Emotion

logger = logging.getLogger(__name__)

UserInsights = Callable[[str], dict[str, Any] | None]

PACKAGE_RE = re.compile(r"paket|package|option|seçenek")
ROMANCE_RE = re.compile(r"romantic|honeymoon|balayı|couple")


@dataclass(slots=True)
class AgentOutput:
    """Raw output of a responder before confidence scaling."""
    content: str = ""
    factor: float = 0.8
    supporting_data: dict[str, Any] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)


class AgentResponder(ABC):
    """Strategy producing one agent's contribution."""

    agent_id: str = ""

    @abstractmethod
    async def respond(self, query: str, agent: AgentRole, context: AgentContext) -> AgentOutput:
        """Produce content for a query.

        Args:
            query: User query.
            agent: Descriptor of the agent being run.
            context: Session, distribution, intent and caller state.
        """
        pass


class DestinationExpertResponder(AgentResponder):
    """Destination facts, enriched with live weather and events when available."""

    agent_id = AgentId.DESTINATION_EXPERT.value

    def __init__(self, realtime: RealTimeDataProvider | None = None):
        self._realtime = realtime

    async def respond(self, query: str, agent: AgentRole, context: AgentContext) -> AgentOutput:
        output = AgentOutput(factor=0.8)
        destinations = context.intent.entities.destinations

        if not destinations:
            output.content = (
                "Popüler balayı destinasyonları arasında Santorini, Bali, Paris ve Maldivler bulunuyor. "
            )
            output.recommendations.append(
                "Hayalinizdeki destinasyon türü hakkında daha fazla bilgi verin"
            )
            return output

        destination = destinations[0].title()
        output.supporting_data["destinations"] = [destination]

        if self._realtime is not None:
            try:
                data = await self._realtime.get_travel_data(destination)
            except Exception as e:
                logger.error(f"Real-time data fetch failed for {destination}: {e}")
            else:
                output.content += (
                    f"{destination} için güncel bilgiler: Hava durumu "
                    f"{data.weather.temperature}°C, {data.weather.condition}. "
                )
                if data.events:
                    output.content += f"Yaklaşan etkinlikler: {data.events[0].name}. "
                output.supporting_data["realtime"] = data.to_dict()
                output.factor += 0.1

        if not output.content:
            output.content = f"{destination} harika bir balayı destinasyonu. "

        output.recommendations.append(f"{destination} için özel paketlerimizi inceleyin")
        output.recommendations.append("Yerel kültür ve etkinlikler hakkında detaylı bilgi")
        return output


class PackageCuratorResponder(AgentResponder):
    agent_id = AgentId.PACKAGE_CURATOR.value

    async def respond(self, query: str, agent: AgentRole, context: AgentContext) -> AgentOutput:
        output = AgentOutput(factor=0.8)
        if PACKAGE_RE.search(query.lower()):
            output.content = "Size özel seçilmiş balayı paketlerimizi sunabilirim. "
            output.supporting_data["packages"] = [
                "Luxury Romance Package",
                "Adventure Couples Package",
                "Cultural Discovery Package",
            ]
            output.recommendations.append(
                "Bütçenizi belirterek daha uygun seçenekler görebilirsiniz"
            )
            output.recommendations.append(
                "Paket karşılaştırması yaparak en iyi seçimi bulabilirsiniz"
            )
        return output


# emotion -> (opening line, tone, recommendations)
EXPERIENCE_LINES: dict[Emotion, tuple[str, str, tuple[str, ...]]] = {
    Emotion.ANXIETY: (
        "Endişelerinizi anlıyorum ve size yardımcı olmak için buradayım. ",
        "reassuring",
        ("Adım adım rehberlik sağlayın", "Güvenlik ve garanti konularını vurgulayın"),
    ),
    Emotion.EXCITEMENT: (
        "Heyecanınızı paylaşıyorum! ",
        "enthusiastic",
        ("Enerjilerini destekleyin", "Özel deneyimleri vurgulayın"),
    ),
    Emotion.CONFUSION: (
        "Size açıklığa kavuşturmanızda yardımcı olayım. ",
        "informative",
        ("Basit ve anlaşılır açıklamalar yapın", "Adım adım süreç bilgisi verin"),
    ),
}


class CustomerExperienceResponder(AgentResponder):
    agent_id = AgentId.CUSTOMER_EXPERIENCE.value

    async def respond(self, query: str, agent: AgentRole, context: AgentContext) -> AgentOutput:
        output = AgentOutput(factor=0.9, supporting_data={"tone": "supportive"})
        if context.emotional_state is None:
            return output

        line = EXPERIENCE_LINES.get(context.emotional_state.primary)
        if line is not None:
            content, tone, recommendations = line
            output.content = content
            output.supporting_data["tone"] = tone
            output.recommendations.extend(recommendations)
        return output


class RomanceConciergeResponder(AgentResponder):
    agent_id = AgentId.ROMANCE_CONCIERGE.value

    async def respond(self, query: str, agent: AgentRole, context: AgentContext) -> AgentOutput:
        output = AgentOutput(factor=0.8)
        if ROMANCE_RE.search(query.lower()):
            output.content = "Rüya balayınız için özel romantik dokunuşlar ekleyebilirim. "
            output.supporting_data["romantic_elements"] = [
                "Sunset dinners",
                "Couples spa",
                "Private villa",
                "Rose petals",
            ]
            output.recommendations.append("Özel günler için sürpriz planları")
            output.recommendations.append("Unutulmaz romantik deneyimler")
            output.factor += 0.1
        return output


class DataAnalystResponder(AgentResponder):
    """Personalized insights from a user-insights lookup, when one is wired in."""

    agent_id = AgentId.DATA_ANALYST.value

    def __init__(self, user_insights: UserInsights | None = None):
        self._user_insights = user_insights

    async def respond(self, query: str, agent: AgentRole, context: AgentContext) -> AgentOutput:
        output = AgentOutput(factor=0.7)
        if self._user_insights is None or not context.user_id or context.conversation_state is None:
            return output

        insights = self._user_insights(context.user_id)
        if insights:
            output.supporting_data["insights"] = {
                "preferences": insights.get("preferences"),
                "patterns": insights.get("patterns"),
            }
            output.content = "Tercihlerinizi analiz ederek size özel öneriler sunabilirim. "
            output.recommendations.append("Kişiselleştirilmiş önerileri değerlendirin")
            output.factor += 0.1
        return output


class GenericResponder(AgentResponder):
    """Used for any agent without a dedicated responder."""

    async def respond(self, query: str, agent: AgentRole, context: AgentContext) -> AgentOutput:
        return AgentOutput(
            content=f"{agent.name} olarak size yardımcı olmaya hazırım. ",
            factor=0.7,
        )


class ResponderTable:
    """Maps agent ids to responders, falling back to ``GenericResponder``."""

    __slots__ = ("_responders", "_fallback")

    def __init__(self, responders: Iterable[AgentResponder] = (), fallback: AgentResponder | None = None):
        self._responders: dict[str, AgentResponder] = {}
        self._fallback = fallback or GenericResponder()
        for responder in responders:
            self.register(responder)

    def register(self, responder: AgentResponder, agent_id: str | None = None) -> None:
        key = agent_id or responder.agent_id
        if not key:
            raise ValueError("Responder needs an agent id")
        self._responders[key] = responder
        logger.debug(f"Responder registered for {key}: {type(responder).__name__}")

    def get(self, agent_id: str) -> AgentResponder:
        return self._responders.get(agent_id, self._fallback)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._responders


def default_responders(
    realtime: RealTimeDataProvider | None = None,
    user_insights: UserInsights | None = None,
) -> ResponderTable:
    """Responder table for the built-in agent roles."""
    return ResponderTable([
        DestinationExpertResponder(realtime),
        PackageCuratorResponder(),
        CustomerExperienceResponder(),
        RomanceConciergeResponder(),
        DataAnalystResponder(user_insights),
    ])
