"""Main entry point for the ai-helper CLI.

Handles provider selection, MCP agent loading and the interaction loop.
"""

import argparse
import sys

import yaml

from .chat import ChatProvider
from .clients.factory import get_available_providers
from .config import Settings, get_settings
from .helper import AiHelper
from .logging import setup_logging
from .mcp_loader import load_mcp_agents


def load_yaml_config(path: str = "config.yaml") -> dict:
    """Load configuration from config.yaml if it exists."""
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}


def resolve_settings(args: argparse.Namespace, yaml_config: dict) -> Settings:
    """Apply config file and CLI overrides to the environment settings.

    Priority order:
    1. CLI arguments
    2. Config file (config.yaml)
    3. Environment variables (via pydantic settings)
    4. Auto-detection based on available API keys
    """
    settings = get_settings()
    llm_config = yaml_config.get("llm", {})

    # priority: cli > yaml > env
    overrides = {
        "llm_provider": args.provider or llm_config.get("provider") or settings.llm_provider,
        "llm_model": args.model or llm_config.get("model") or settings.llm_model,
        "llm_temperature": llm_config.get("temperature", settings.llm_temperature),
        "llm_max_tokens": llm_config.get("max_tokens", settings.llm_max_tokens),
        "language": args.language or yaml_config.get("language") or settings.language,
        "mcp_config_path": args.mcp_config or yaml_config.get("mcp_config") or settings.mcp_config_path,
        "file_agent_roots": yaml_config.get("file_agent_roots") or settings.file_agent_roots,
    }
    return settings.model_copy(update=overrides)


def _start_server(helper: AiHelper, host: str, port: int) -> None:
    """Start the API server."""
    import uvicorn

    from .api import app
    from .api.server import get_helper

    app.dependency_overrides[get_helper] = lambda: helper
    print(f"Starting API server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    uvicorn.run(app, host=host, port=port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ai-helper: a team of AI agents answering your requests")
    parser.add_argument(
        "--provider",
        choices=get_available_providers(),
        help="LLM provider to use (overrides config and auto-detection)"
    )
    parser.add_argument(
        "--model",
        help="LLM model to use (overrides config)"
    )
    parser.add_argument(
        "--language",
        help="Language the agents answer in (default: English)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (also settable via AI_HELPER_LOG_LEVEL env var)"
    )
    parser.add_argument(
        "--mcp-config",
        help="JSON file declaring MCP servers to expose as agents"
    )
    parser.add_argument(
        "--no-stream",
        action="store_true",
        help="Print answers only once they are complete"
    )
    parser.add_argument(
        "--list-agents",
        action="store_true",
        help="Print the agents available to the leader and exit"
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the API server instead of CLI"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the API server (default: 8000)"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for the API server (default: 127.0.0.1)"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the ai-helper CLI."""
    args = build_parser().parse_args(argv)
    yaml_config = load_yaml_config()
    settings = resolve_settings(args, yaml_config)

    # setup logging early
    setup_logging(args.log_level or yaml_config.get("log_level") or settings.log_level, settings.log_file)

    if settings.mcp_config_path:
        load_mcp_agents(settings.mcp_config_path)

    helper = AiHelper(settings=settings, provider=ChatProvider(settings))

    if args.list_agents:
        for agent in helper.list_agents():
            print(f"{agent['agent_name']}:")
            for line in agent["backstory"].splitlines():
                print(f"    {line}")
        return

    if not settings.detect_provider():
        print("Error: No LLM provider specified and no API keys found.")
        print("Please set one of the following:")
        print("  - LLM_PROVIDER environment variable or --provider")
        print("  - provider in config.yaml")
        print("  - OPENAI_API_KEY, ANTHROPIC_API_KEY, GOOGLE_API_KEY, AZURE_OPENAI_API_KEY")
        print("    or OPENAI_COMPATIBLE_BASE_URL")
        sys.exit(1)

    if args.serve:
        _start_server(helper, args.host, args.port)
        return

    print(f"Using provider: {settings.detect_provider()}")
    if settings.llm_model:
        print(f"Using model: {settings.llm_model}")

    run_repl(helper, stream=not args.no_stream)


def run_repl(helper: AiHelper, stream: bool = True) -> None:
    """Run the interactive REPL loop.

    The conversation is kept for the lifetime of the loop so follow-up
    questions can refer to earlier answers.

    Args:
        helper: The AiHelper instance to use.
        stream: Whether to stream responses.
    """
    print("ai-helper ready. Type 'exit' to quit.")
    print("-" * 50)
    messages: list[dict[str, str]] = []

    while True:
        try:
            user_input = input("You: ")
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if user_input.lower() in ("exit", "quit"):
            print("Goodbye!")
            break

        if not user_input.strip():
            continue

        messages.append({"role": "user", "content": user_input})
        if stream:
            print("Assistant: ", end="", flush=True)
            answer = helper.chat(messages, callback=lambda chunk: print(chunk, end="", flush=True))
            print()
        else:
            answer = helper.chat(messages)
            print(f"Assistant: {answer}")
        messages.append({"role": "assistant", "content": answer})


if __name__ == "__main__":
    main()
