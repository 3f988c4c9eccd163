"""CLI for supermemory-tools."""

import json
import logging
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the working directory first, then the project root
load_dotenv()
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown

from supermemory_tools import __version__
from supermemory_tools.memory.client import build_client, search_memories
from supermemory_tools.memory.config import AugmentationConfig, SupermemoryToolsConfig
from supermemory_tools.memory.shared import get_container_tags
from supermemory_tools.memory.tools import add_memory_tool, search_memories_tool
from supermemory_tools.session import load_session, save_session
from supermemory_tools.utils.text import message_text

logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
    handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
)
# httpx logs every request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)
log = logging.getLogger("supermemory_tools")

app = typer.Typer(no_args_is_help=True)
console = Console()

_TAG_HELP = "Container tag to scope memories (repeatable). Defaults to sm_project_default."


def _tools_config(tags: list[str] | None, project: str | None) -> SupermemoryToolsConfig:
    return SupermemoryToolsConfig(container_tags=tags or None, project_id=project)


def _client_or_exit(config: SupermemoryToolsConfig | None = None):
    """Build the API client, turning a missing key into a clean CLI error."""
    try:
        return build_client(config=config)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


def _print_result(result: dict) -> None:
    console.print_json(json.dumps(result, default=str))
    if not result.get("success"):
        raise typer.Exit(1)


@app.command()
def search(
    query: str = typer.Argument(..., help="What to look for in memories."),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum number of results."),
    full_docs: bool = typer.Option(False, "--full-docs", help="Include full document content."),
    tag: list[str] | None = typer.Option(None, "--tag", "-t", help=_TAG_HELP),
    project: str | None = typer.Option(None, "--project", help="Project id (overrides --tag)."),
) -> None:
    """Search memories with the searchMemories tool and print the JSON result."""
    config = _tools_config(tag, project)
    tool = search_memories_tool(config=config, client=_client_or_exit(config))
    _print_result(tool.invoke({"informationToGet": query, "includeFullDocs": full_docs, "limit": limit}))


@app.command()
def add(
    memory: str = typer.Argument(..., help="Text to remember."),
    tag: list[str] | None = typer.Option(None, "--tag", "-t", help=_TAG_HELP),
    project: str | None = typer.Option(None, "--project", help="Project id (overrides --tag)."),
) -> None:
    """Add a memory with the addMemory tool and print the JSON result."""
    config = _tools_config(tag, project)
    tool = add_memory_tool(config=config, client=_client_or_exit(config))
    _print_result(tool.invoke({"memory": memory}))


def _print_reply(reply) -> None:
    text = message_text(reply)
    if text:
        console.print()
        console.print(Markdown(text))
        console.print()


def _chat_turn(model, messages: list, user_input: str) -> list:
    """Send one user turn through the memory-augmented model; return the updated history."""
    from langchain_core.messages import AIMessage, HumanMessage

    messages = messages + [HumanMessage(content=user_input)]
    log.info("Sending (session has %d messages)", len(messages))
    reply = model.invoke(messages)
    _print_reply(reply)
    return messages + [AIMessage(content=message_text(reply))]


@app.command()
def chat(
    message: str | None = typer.Argument(None, help="One-shot message. Omit for interactive mode."),
    tag: list[str] | None = typer.Option(None, "--tag", "-t", help=_TAG_HELP),
    project: str | None = typer.Option(None, "--project", help="Project id (overrides --tag)."),
    mode: str = typer.Option("full", help="Memory injection mode: full or query."),
    add_memory: str = typer.Option(
        "never",
        "--add-memory",
        help="Write-back policy: always or never. 'conditional' needs a Python predicate and is not available here.",
    ),
    conversation_id: str | None = typer.Option(None, "--conversation-id", help="Groups written-back turns."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log memory search and write-back."),
) -> None:
    """Chat with Claude, augmented with memories. Session is loaded/saved to file."""
    from supermemory_tools.agent import build_llm
    from supermemory_tools.memory.wrapper import with_supermemory

    try:
        options = AugmentationConfig(
            mode=mode, add_memory=add_memory, conversation_id=conversation_id, verbose=verbose
        )
    except ValidationError as e:
        typer.echo(f"Invalid options: {e}", err=True)
        raise typer.Exit(1)
    tags = get_container_tags(_tools_config(tag, project))
    model = with_supermemory(build_llm(), tags, options, client=_client_or_exit())

    messages = load_session()
    try:
        if message:
            save_session(_chat_turn(model, messages, message))
            return
        console.print("[bold green]Memory chat[/] interactive mode. Type [bold]quit[/] or [bold]exit[/] to leave.\n")
        while True:
            try:
                user_input = console.input("[bold cyan]You:[/] ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print("\nBye!")
                break
            if not user_input or user_input.lower() in ("quit", "exit"):
                console.print("Bye!")
                break
            messages = _chat_turn(model, messages, user_input)
            save_session(messages)
    finally:
        model.flush(timeout=30)


@app.command()
def agent(
    message: str = typer.Argument(..., help="Message for the tool-calling memory agent."),
    tag: list[str] | None = typer.Option(None, "--tag", "-t", help=_TAG_HELP),
    project: str | None = typer.Option(None, "--project", help="Project id (overrides --tag)."),
) -> None:
    """Run one turn of the ReAct agent that can call searchMemories and addMemory."""
    from langchain_core.messages import HumanMessage

    from supermemory_tools.agent import create_memory_agent

    config = _tools_config(tag, project)
    memory_agent = create_memory_agent(config=config, client=_client_or_exit(config))
    result = memory_agent.invoke({"messages": [HumanMessage(content=message)]})
    log.info("Agent: done, %d messages in result", len(result["messages"]))
    _print_reply(result["messages"][-1])


@app.command()
def check_env() -> None:
    """Verify SUPERMEMORY_API_KEY by making one minimal search."""
    client = _client_or_exit()
    try:
        search_memories(client, "ping", get_container_tags(), limit=1)
    except Exception as e:
        typer.echo(f"Supermemory API error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo("SUPERMEMORY_API_KEY is valid.")


@app.command()
def version() -> None:
    """Show version."""
    typer.echo(__version__)


if __name__ == "__main__":
    app()
