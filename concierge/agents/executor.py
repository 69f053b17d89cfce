"""Agent Executor.

Runs the selected agents for a distribution. Parallel strategies fan out
with ``asyncio.gather``; hierarchical runs the primary first, then the
assisting agents concurrently; sequential awaits one agent at a time.
Results always come back in selection order and a failing agent is
logged and dropped without affecting the others.
"""

import asyncio
import logging

from ..errors import AgentExecutionError
from .models import AgentContext, AgentResponse, CoordinationStrategy, TaskComplexity
from .registry import AgentRegistry
from .responders import ResponderTable, default_responders

logger = logging.getLogger(__name__)

HUMAN_REVIEW_THRESHOLD = 0.6


class AgentExecutor:
    """Executes agents according to a task distribution."""

    __slots__ = ("_registry", "_responders")

    def __init__(self, registry: AgentRegistry, responders: ResponderTable | None = None):
        self._registry = registry
        self._responders = responders or default_responders()

    async def run_agent(self, agent_id: str, query: str, context: AgentContext) -> AgentResponse:
        """Run a single agent.

        Raises:
            AgentExecutionError: If the agent is unknown or its responder fails.
        """
        agent = self._registry.get(agent_id)
        if agent is None:
            raise AgentExecutionError(agent_id, "agent is not registered")

        try:
            output = await self._responders.get(agent_id).respond(query, agent, context)
        except Exception as e:
            raise AgentExecutionError(agent_id, str(e) or type(e).__name__) from e

        confidence = min(1.0, agent.confidence * output.factor)
        requires_review = (
            confidence < HUMAN_REVIEW_THRESHOLD
            or context.distribution.complexity is TaskComplexity.EXPERT_REQUIRED
        )
        return AgentResponse(
            agent_id=agent_id,
            content=output.content,
            confidence=confidence,
            supporting_data=output.supporting_data,
            recommendations=output.recommendations,
            requires_human_review=requires_review,
        )

    async def _gather(self, agent_ids: list[str], query: str, context: AgentContext) -> list:
        return await asyncio.gather(
            *(self.run_agent(agent_id, query, context) for agent_id in agent_ids),
            return_exceptions=True,
        )

    async def execute(self, query: str, context: AgentContext) -> list[AgentResponse]:
        """Run every selected agent.

        Args:
            query: User query.
            context: Agent context carrying the distribution.

        Returns:
            Successful responses, primary first then assisting in selection order.
        """
        distribution = context.distribution
        agent_ids = distribution.selected_agents
        strategy = distribution.strategy

        if strategy is CoordinationStrategy.PARALLEL:
            results = await self._gather(agent_ids, query, context)
        elif strategy is CoordinationStrategy.HIERARCHICAL:
            results = await self._gather(agent_ids[:1], query, context)
            results += await self._gather(agent_ids[1:], query, context)
        else:
            results = []
            for agent_id in agent_ids:
                try:
                    results.append(await self.run_agent(agent_id, query, context))
                except AgentExecutionError as e:
                    results.append(e)

        responses: list[AgentResponse] = []
        for agent_id, result in zip(agent_ids, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Agent {agent_id} failed and was dropped: {result}")
                continue
            responses.append(result)

        logger.debug(f"Executed {len(responses)}/{len(agent_ids)} agents ({strategy.value})")
        return responses
