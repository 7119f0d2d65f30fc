"""Leader agent: plans a request and coordinates the other agents."""

import json
from typing import Any

from ..chat_room import ChatRoom
from ..exceptions import PlanningError
from ..logging import get_logger
from ..planning import (
    GOAL_SCHEMA,
    STEPS_SCHEMA,
    Goal,
    StepPlan,
    format_instructions,
    parse_structured_output,
)
from ..prompts import (
    FINAL_RESPONSE_NOTICE,
    FINAL_RESPONSE_PROMPT,
    GENERATE_STEPS_PROMPT,
    GOAL_PROMPT,
    LEADER_BACKSTORY,
    PLANNING_NOTICE,
    STEPS_JSON_EXAMPLES,
)
from ..registry import LEADER_NAME, AgentRegistry, get_registry, is_leader
from ..tracing import traced_span
from .base import BaseAgent, Messages, StreamCallback

logger = get_logger(__name__)


class LeaderAgent(BaseAgent):
    """Answers a user request, delegating to other agents when needed.

    The leader first states the goal of the request. Requests it can answer
    on its own get a direct reply; for the rest it plans steps, hands each
    step to an agent in a :class:`ChatRoom` and writes the final answer from
    the room's transcript.

    Args:
        registry: Catalog of agents to plan with; defaults to the
            process-wide registry.
        **kwargs: Passed to :class:`BaseAgent`.
    """

    def __init__(self, registry: AgentRegistry | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self._registry = registry

    @property
    def registry(self) -> AgentRegistry:
        if self._registry is None:
            self._registry = get_registry()
        return self._registry

    def role(self) -> str:
        return "leader"

    def backstory(self) -> str:
        return LEADER_BACKSTORY

    def system_prompt(self) -> str:
        return f"{super().system_prompt()}\n\n{self.backstory()}"

    def _ask(self, messages: Messages) -> str:
        return self.chat(messages)

    def generate_goal(self, messages: Messages) -> Goal:
        """State the goal of the latest request and whether it needs other agents.

        Raises:
            StructuredOutputError: If the model does not produce a valid goal.
        """
        prompt = GOAL_PROMPT.format(format_instructions=format_instructions(GOAL_SCHEMA))
        goal_messages = list(messages) + [{"role": "user", "content": prompt}]
        with traced_span(self.tracer, "goal_generation", input=prompt) as span:
            goal = parse_structured_output(
                self._ask(goal_messages), Goal, GOAL_SCHEMA, chat=self._ask, messages=goal_messages
            )
            span.output = goal.model_dump(by_alias=True)
        return goal

    def generate_steps(self, goal: Goal, messages: Messages) -> StepPlan:
        """Plan the steps that achieve ``goal`` with the registered agents.

        Raises:
            StructuredOutputError: If the model does not produce a valid plan.
        """
        catalog = self.registry.list_enabled(exclude=(LEADER_NAME,))
        logger.debug(f"agents available for planning: {[a['agent_name'] for a in catalog]}")
        prompt = GENERATE_STEPS_PROMPT.format(
            goal=goal.goal,
            agent_list=json.dumps(catalog, indent=2, ensure_ascii=False),
            lang=self.settings.language,
            format_instructions=format_instructions(STEPS_SCHEMA),
            json_examples=STEPS_JSON_EXAMPLES,
        )
        steps_messages = list(messages) + [{"role": "user", "content": prompt}]
        with traced_span(self.tracer, "steps_generation", input=prompt) as span:
            plan = parse_structured_output(
                self._ask(steps_messages), StepPlan, STEPS_SCHEMA, chat=self._ask, messages=steps_messages
            )
            span.output = plan.model_dump(by_alias=True)
        return plan

    def perform_user_request(
        self,
        messages: Messages,
        options: dict | None = None,
        callback: StreamCallback | None = None,
    ) -> str:
        """Answer the latest user message of ``messages``.

        Progress notices and the final answer are streamed to ``callback``.

        Args:
            messages: Conversation as ``{"role", "content"}`` dicts.
            options: Passed to :meth:`chat` for the direct and final answers.
            callback: Receives progress notices and answer chunks.

        Returns:
            The final answer.

        Raises:
            StructuredOutputError: If the goal or plan cannot be parsed.
            PlanningError: If the plan mixes the leader with other agents.
            AgentNotFoundError: If the plan names an unregistered agent.
        """
        goal = self.generate_goal(messages)
        logger.debug(f"goal: {goal.goal} (decomposition required: {goal.decomposition_required})")
        if not goal.decomposition_required:
            return self.chat(messages, options, callback)

        if callback:
            callback(f"{PLANNING_NOTICE}\n")
        plan = self.generate_steps(goal, messages)
        logger.debug(f"steps: {plan.model_dump(by_alias=True)}")

        if not plan.steps or (len(plan.steps) == 1 and is_leader(plan.steps[0].agent)):
            return self.chat(messages, options, callback)
        if any(is_leader(step.agent) for step in plan.steps):
            raise PlanningError("The leader cannot be assigned a step alongside other agents")

        room = self._assemble_room(goal, plan)
        for step in plan.steps:
            if callback:
                callback(f"- {step.human_description}\n")
            room.send_task(self.role(), step.agent, step.step)

        if callback:
            callback(f"{FINAL_RESPONSE_NOTICE}\n")
        final_messages = list(messages) + room.messages + [
            {"role": "user", "content": FINAL_RESPONSE_PROMPT}
        ]
        with traced_span(self.tracer, "final_response", input=FINAL_RESPONSE_PROMPT) as span:
            answer = self.chat(final_messages, options, callback)
            span.output = answer
        return answer

    def _assemble_room(self, goal: Goal, plan: StepPlan) -> ChatRoom:
        room = ChatRoom(goal.goal)
        for name in plan.agents:
            agent = self.registry.instantiate(
                name, project=self.project, tracer=self.tracer, provider=self.provider
            )
            room.add_agent(agent, name=name)
        room.share_goal()
        return room
