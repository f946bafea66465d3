"""
Agent Coordinator
=================

Registry of agent instances built once at startup, and the coordinator
that routes a context to one of them.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from swiftship.config import AgentName
from swiftship.agents.application.agents import BaseAgent, RouterAgent
from swiftship.agents.domain import COORDINATOR_UNAVAILABLE, AgentContext, AgentResponse, RoutingDecision
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class AgentRegistry:
    """Maps each AgentName to its single agent instance."""

    def __init__(self, agents: Iterable[BaseAgent] = ()):
        self._agents: Dict[AgentName, BaseAgent] = {}
        for agent in agents:
            self.register(agent)

    def register(self, agent: BaseAgent) -> None:
        self._agents[agent.name] = agent

    def get(self, name: AgentName) -> Optional[BaseAgent]:
        return self._agents.get(name)

    def names(self) -> List[AgentName]:
        return list(self._agents)

    def __contains__(self, name: AgentName) -> bool:
        return name in self._agents


class AgentCoordinator:
    """
    Routes a context and runs the chosen agent.

    Never raises: an unregistered agent or an agent that still throws
    yields the coordinator's apology message. The router already maps an
    agent name outside AgentName to DOCS_AGENT, so the apology is only
    reached when the registry lacks a handler for a known name.
    """

    agent_id = "coordinator"

    def __init__(self, router: RouterAgent, registry: AgentRegistry):
        self._router = router
        self._registry = registry

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    async def route(self, context: AgentContext) -> RoutingDecision:
        decision = await self._router.route(context)
        logger.info(
            "Message routed",
            extra={"routed_agent": decision.agent.value, "reason": decision.reason}
        )
        return decision

    def unavailable(self) -> AgentResponse:
        return AgentResponse(content=COORDINATOR_UNAVAILABLE, agent_id=self.agent_id, error=True)

    async def handle(
        self,
        context: AgentContext,
        decision: Optional[RoutingDecision] = None
    ) -> Tuple[RoutingDecision, AgentResponse]:
        """
        Route (unless a decision is given) and process.

        Returns:
            The routing decision and the agent's response
        """
        decision = decision or await self.route(context)
        agent = self._registry.get(decision.agent)
        if agent is None:
            logger.warning("No agent registered", extra={"routed_agent": decision.agent.value})
            return decision, self.unavailable()

        try:
            response = await agent.process(context)
        except Exception as e:
            logger.error(
                "Agent raised past its boundary",
                extra={"routed_agent": decision.agent.value, "error": str(e)},
                exc_info=True
            )
            return decision, self.unavailable()

        return decision, response
