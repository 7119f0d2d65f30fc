from ai_helper import AiHelper, register_agent
from ai_helper.agents.base import BaseAgent
from ai_helper.tools import BaseTools, define_function, prop

# Issues of a pretend tracker; a real tool would call its API
ISSUES = {
    "demo": ["#1 Login broken", "#2 Slow search"],
    "website": ["#7 Broken footer link"],
}


# 1. Declare the tools an agent may call
class IssueTools(BaseTools):
    @define_function(
        "List the open issues of a project",
        prop("project", "string", "Project name", required=True, enum=sorted(ISSUES)),
    )
    def list_issues(self, project: str) -> list[str]:
        return ISSUES[project]


# 2. Register an agent that uses them; the leader can now plan steps for it
@register_agent("issue_agent")
class IssueAgent(BaseAgent):
    def backstory(self) -> str:
        return "Knows the open issues of every project in the tracker."

    def available_tool_providers(self):
        return [IssueTools]


def main():
    # 3. Ask the helper; provider and model come from the environment (.env)
    helper = AiHelper()

    print("Agents available to the leader:")
    for agent in helper.list_agents():
        print(f"- {agent['agent_name']}")

    messages = [{"role": "user", "content": "Which issues are open in the demo project?"}]

    # Option A: Non-streaming
    # print(helper.chat(messages))

    # Option B: Streaming (progress notices, then the answer)
    helper.chat(messages, callback=lambda chunk: print(chunk, end="", flush=True))
    print()


if __name__ == "__main__":
    main()
