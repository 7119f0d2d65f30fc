"""Tests for structured output parsing."""

import json

import pytest
from pydantic import ValidationError

from ai_helper.exceptions import StructuredOutputError
from ai_helper.planning import (
    GOAL_SCHEMA,
    STEPS_SCHEMA,
    Goal,
    StepPlan,
    fix_prompt,
    format_instructions,
    parse_structured_output,
)

PLAN = {
    "steps": [
        {"agent": "project_agent", "step": "Find demo", "humanDescription": "Finding demo..."},
        {"agent": "issue_agent", "step": "List issues", "humanDescription": "Listing issues..."},
        {"agent": "project_agent", "step": "Summarise", "humanDescription": "Summarising..."},
    ]
}


def test_bare_json():
    goal = parse_structured_output('{"goal": "Say hi", "decompositionRequired": false}', Goal, GOAL_SCHEMA)
    assert goal == Goal(goal="Say hi", decomposition_required=False)


def test_fenced_json():
    response = f"Here is the plan:\n```json\n{json.dumps(PLAN)}\n```"
    plan = parse_structured_output(response, StepPlan, STEPS_SCHEMA)
    assert [step.agent for step in plan.steps] == ["project_agent", "issue_agent", "project_agent"]
    assert plan.steps[0].human_description == "Finding demo..."


def test_legacy_field_names():
    goal = Goal.model_validate({"goal": "x", "generate_steps_required": False})
    assert goal.decomposition_required is False
    step = StepPlan.model_validate(
        {"steps": [{"agent": "a", "step": "b", "description_for_human": "c"}]}
    ).steps[0]
    assert step.human_description == "c"


@pytest.mark.parametrize("model, payload", [
    (StepPlan, {"steps": [{"agent": "issue_agent", "step": "List issues"}]}),
    (Goal, {"goal": "List issues"}),
])
def test_missing_required_field_is_rejected(model, payload):
    with pytest.raises(ValidationError):
        model.model_validate(payload)


def test_missing_human_description_triggers_fix_up():
    messages = [{"role": "user", "content": "issues?"}]
    sent = []

    def chat(fix_messages):
        sent.append(fix_messages)
        return json.dumps(PLAN)

    incomplete = json.dumps({"steps": [{"agent": "issue_agent", "step": "List issues"}]})
    plan = parse_structured_output(incomplete, StepPlan, STEPS_SCHEMA, chat=chat, messages=messages)
    assert len(sent) == 1
    assert plan.steps[0].human_description == "Finding demo..."


def test_plan_agents_distinct_in_first_seen_order():
    assert StepPlan.model_validate(PLAN).agents == ["project_agent", "issue_agent"]


def test_goal_is_immutable():
    goal = Goal(goal="x", decomposition_required=False)
    with pytest.raises(ValidationError):
        goal.goal = "y"  # type: ignore[misc]


def test_serialises_wire_names():
    assert Goal(goal="x", decomposition_required=True).model_dump(by_alias=True) == {
        "goal": "x",
        "decompositionRequired": True,
    }


def test_one_fix_up_retry():
    messages = [{"role": "user", "content": "hello"}]
    sent = []

    def chat(fix_messages):
        sent.append(fix_messages)
        return '{"goal": "Greet", "decompositionRequired": false}'

    goal = parse_structured_output("not json at all", Goal, GOAL_SCHEMA, chat=chat, messages=messages)
    assert goal.goal == "Greet"
    assert len(sent) == 1
    assert sent[0][:-1] == messages
    assert "not json at all" in sent[0][-1]["content"]


def test_fails_after_one_retry():
    calls = []

    def chat(fix_messages):
        calls.append(fix_messages)
        return '{"steps": "still wrong"}'

    with pytest.raises(StructuredOutputError):
        parse_structured_output("nope", StepPlan, STEPS_SCHEMA, chat=chat, messages=[])
    assert len(calls) == 1


def test_fails_without_chat():
    with pytest.raises(StructuredOutputError, match="Goal"):
        parse_structured_output('{"decompositionRequired": true}', Goal, GOAL_SCHEMA)


def test_prompts_embed_schema():
    assert json.dumps(GOAL_SCHEMA) in format_instructions(GOAL_SCHEMA)
    assert "garbage" in fix_prompt("garbage", STEPS_SCHEMA)
