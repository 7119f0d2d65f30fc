"""Structured output the leader asks the model for.

The model is asked to answer with JSON matching a schema; the answer is
validated with pydantic. A response that does not parse gets exactly one
corrective re-prompt before the failure is raised.
"""

import json
from typing import Callable, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .exceptions import StructuredOutputError
from .logging import get_logger
from .utils.text import extract_json

logger = get_logger(__name__)

Model = TypeVar("Model", bound=BaseModel)
Messages = list[dict[str, str]]
ChatFunction = Callable[[Messages], str]


class Goal(BaseModel):
    """Objective distilled from the user's request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    goal: str
    decomposition_required: bool = Field(
        validation_alias=AliasChoices(
            "decompositionRequired", "decomposition_required", "generate_steps_required"
        ),
        serialization_alias="decompositionRequired",
    )


class Step(BaseModel):
    """One instruction for one agent."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent: str
    step: str
    human_description: str = Field(
        validation_alias=AliasChoices(
            "humanDescription", "human_description", "description_for_human"
        ),
        serialization_alias="humanDescription",
    )


class StepPlan(BaseModel):
    """Ordered steps of a request."""

    model_config = ConfigDict(frozen=True)

    steps: list[Step] = Field(default_factory=list)

    @property
    def agents(self) -> list[str]:
        """Distinct target agents in first-seen order."""
        return list(dict.fromkeys(step.agent for step in self.steps))


GOAL_SCHEMA = {
    "type": "object",
    "properties": {
        "goal": {
            "type": "string",
            "description": "A concise and clear goal derived from the user's request",
        },
        "decompositionRequired": {
            "type": "boolean",
            "description": "Whether other agents are needed to achieve the goal",
        },
    },
    "required": ["goal", "decompositionRequired"],
}

STEPS_SCHEMA = {
    "type": "object",
    "properties": {
        "steps": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "agent": {
                        "type": "string",
                        "description": "The name of the agent to assign the step to",
                    },
                    "step": {
                        "type": "string",
                        "description": "The content of the instruction",
                    },
                    "humanDescription": {
                        "type": "string",
                        "description": "A present-progressive sentence telling the user what is being done",
                    },
                },
                "required": ["agent", "step", "humanDescription"],
            },
        },
    },
    "required": ["steps"],
}


def format_instructions(schema: dict) -> str:
    """Instructions asking the model to answer with JSON matching ``schema``."""
    return (
        'You must format your output as a JSON value that adheres to a given "JSON Schema" instance.\n\n'
        '"JSON Schema" is a declarative language that allows you to annotate and validate JSON documents.\n\n'
        'For example, the example "JSON Schema" instance {"properties": {"foo": {"description": '
        '"a list of test words", "type": "array", "items": {"type": "string"}}}, "required": ["foo"]}\n'
        'would match an object with one required property, "foo". The object {"foo": ["bar", "baz"]} '
        'is a well-formatted instance of this example "JSON Schema". The object '
        '{"properties": {"foo": ["bar", "baz"]}} is not well-formatted.\n\n'
        "Your output will be parsed and type-checked according to the provided schema instance, "
        "so make sure all fields in your output match the schema exactly and there are no trailing commas!\n\n"
        "Here is the JSON Schema instance your output must adhere to. Include the enclosing markdown codeblock:\n"
        f"```json\n{json.dumps(schema)}\n```"
    )


def fix_prompt(response: str, schema: dict) -> str:
    """Corrective prompt sent after an unparseable answer."""
    return (
        "The following response was supposed to be a valid JSON object matching the schema below, "
        "but it could not be parsed.\n\n"
        f"Response:\n{response}\n\n"
        f"Expected JSON Schema:\n```json\n{json.dumps(schema, indent=2)}\n```\n\n"
        "Please output ONLY a valid JSON object that matches the schema. No additional text."
    )


def _parse(response: str, model: type[Model]) -> Model:
    return model.model_validate(extract_json(response))


def parse_structured_output(
    response: str,
    model: type[Model],
    schema: dict,
    chat: ChatFunction | None = None,
    messages: Messages | None = None,
) -> Model:
    """Parse a model answer into ``model``.

    Args:
        response: Raw answer text.
        model: Pydantic model to validate against.
        schema: JSON schema shown to the model in the corrective prompt.
        chat: Sends messages to the model and returns its answer. Without it
            no retry is attempted.
        messages: Conversation that produced ``response``.

    Raises:
        StructuredOutputError: If the answer, and the corrected answer when a
            retry was possible, do not match.
    """
    try:
        return _parse(response, model)
    except (json.JSONDecodeError, ValidationError) as e:
        if chat is None or messages is None:
            raise StructuredOutputError(model.__name__, response, e) from e
        logger.info(f"{model.__name__} output did not parse, asking for a fix: {e}")

    fix_messages = list(messages) + [{"role": "user", "content": fix_prompt(response, schema)}]
    fixed = chat(fix_messages)
    try:
        return _parse(fixed, model)
    except (json.JSONDecodeError, ValidationError) as e:
        raise StructuredOutputError(model.__name__, fixed, e) from e
