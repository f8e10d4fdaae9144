"""Main CLI application using Typer."""
import asyncio
import contextlib
import signal

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..conversation import Message, Role, TurnOrchestrator
from ..exceptions import CortexError
from ..llm import MODELS
from .providers import configure_logging, get_model_id, get_session_store, get_storage, require_llm

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="cortex",
    help="Streaming chat client for Gemini models with persistent sessions",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

HELP_TEXT = """[dim]Commands:
  /attach <path>   queue a file for the next message
  /detach <id>     remove a queued file
  /model <id>      switch model (flash, reasoning, research)
  /new             save and start a new conversation
  /sessions        list saved conversations
  /switch <id>     open a saved conversation
  /delete <id>     delete a saved conversation
  /clear           discard the current conversation
  /quit            leave
Press Ctrl+C while a reply streams to stop it.[/dim]
"""


class StreamPrinter:
    """Prints streamed message content as it grows."""

    def __init__(self, out: Console):
        self._console = out
        self._printed: dict[str, int] = {}

    def __call__(self, message: Message) -> None:
        if message.role != Role.ASSISTANT:
            return
        if message.is_error:
            self._console.print(f"[red]{message.content}[/red]")
            return

        if message.id not in self._printed:
            if not message.is_streaming:
                return
            self._console.print("[bold green]Cortex:[/bold green] ", end="")
            self._printed[message.id] = 0
        shown = self._printed[message.id]
        delta = message.content[shown:]
        if delta:
            self._console.print(delta, end="", markup=False, highlight=False)
            self._printed[message.id] = len(message.content)

        if not message.is_streaming:
            self._console.print()
            for source in message.grounding_sources or []:
                self._console.print(f"[dim]  - {source.title}: {source.uri}[/dim]")
            if message.latency is not None:
                self._console.print(
                    f"[dim]{message.model_used} • {message.latency / 1000:.1f}s[/dim]\n"
                )
            del self._printed[message.id]


def print_sessions(orchestrator: TurnOrchestrator) -> None:
    sessions = orchestrator.sessions
    if not sessions:
        console.print("[yellow]No saved conversations[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Messages", width=8)
    table.add_column("Updated", style="green")

    for session in sessions:
        marker = "*" if session.id == orchestrator.context.session_id else ""
        table.add_row(
            session.id + marker,
            session.title,
            str(len(session.messages)),
            session.updated_at.astimezone().strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


async def run_turn(orchestrator: TurnOrchestrator, text: str) -> None:
    """Run one turn, mapping SIGINT to cooperative cancellation."""
    loop = asyncio.get_running_loop()
    installed = False
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
        installed = True
    try:
        await orchestrator.submit(text)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


async def handle_command(orchestrator: TurnOrchestrator, line: str) -> bool:
    """Run a slash command. Returns False when the user wants to leave."""
    command, _, arg = line[1:].partition(" ")
    arg = arg.strip()

    if command in ("quit", "exit", "q"):
        return False
    if command == "help":
        console.print(HELP_TEXT)
    elif command == "attach":
        attachment = await orchestrator.attach_file(arg)
        console.print(f"[dim]Attached {attachment.name} ({attachment.id})[/dim]")
    elif command == "detach":
        if not orchestrator.remove_attachment(arg):
            console.print(f"[yellow]No queued attachment {arg}[/yellow]")
    elif command == "model":
        config = orchestrator.select_model(arg)
        console.print(f"[dim]Using {config.name} ({config.api_model})[/dim]")
    elif command == "new":
        await orchestrator.new_session()
        console.print("[dim]Started a new conversation[/dim]")
    elif command == "sessions":
        print_sessions(orchestrator)
    elif command == "switch":
        session = await orchestrator.switch_session(arg)
        console.print(f"[dim]Opened '{session.title}'[/dim]")
        for message in orchestrator.messages[-4:]:
            label = "You" if message.role == Role.USER else "Cortex"
            console.print(f"[bold]{label}:[/bold] {escape(message.content)}")
    elif command == "delete":
        if not await orchestrator.delete_session(arg):
            console.print(f"[yellow]No saved conversation {arg}[/yellow]")
    elif command == "clear":
        await orchestrator.clear_conversation()
        console.print("[dim]Conversation cleared[/dim]")
    else:
        console.print(f"[yellow]Unknown command: /{command}[/yellow]")
    return True


@app.command()
def chat(
    model: str = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to start with (flash, reasoning, research)"
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level (debug, info, warning, error)"
    )
):
    """Interactive chat with streamed responses."""
    configure_logging(log_level)

    async def _chat():
        llm = require_llm(console)
        storage = get_storage()

        try:
            await storage.connect()
            orchestrator = TurnOrchestrator(
                provider=llm,
                store=get_session_store(storage),
                model_id=model or get_model_id(),
                on_update=StreamPrinter(console),
            )
            await orchestrator.start()

            console.print("[bold cyan]Cortex[/bold cyan]")
            console.print(orchestrator.messages[0].content)
            console.print(HELP_TEXT)

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")
                except (KeyboardInterrupt, EOFError):
                    console.print("\n[dim]Goodbye![/dim]")
                    break

                line = user_input.strip()
                if line.startswith("/"):
                    try:
                        if not await handle_command(orchestrator, line):
                            console.print("[dim]Goodbye![/dim]")
                            break
                    except (CortexError, KeyError, ValueError, OSError) as e:
                        console.print(f"[red]Error: {e}[/red]")
                    continue

                if not line and not orchestrator.pending_attachments:
                    continue
                await run_turn(orchestrator, line)

            await orchestrator.save_current_session()

        finally:
            await storage.disconnect()
            await llm.close()

    asyncio.run(_chat())


@app.command()
def sessions():
    """List saved conversations."""
    configure_logging()

    async def _sessions():
        storage = get_storage()
        try:
            await storage.connect()
            store = get_session_store(storage)
            stored = await store.load()

            if not stored:
                console.print("[yellow]No saved conversations[/yellow]")
                return

            table = Table(show_header=True, header_style="bold cyan")
            table.add_column("ID", style="dim")
            table.add_column("Title", style="cyan")
            table.add_column("Messages", width=8)
            table.add_column("Model", style="yellow")
            table.add_column("Created", style="green")

            for session in stored:
                table.add_row(
                    session.id,
                    session.title,
                    str(len(session.messages)),
                    session.last_model_id or "-",
                    session.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
                )
            console.print(table)
        finally:
            await storage.disconnect()

    asyncio.run(_sessions())


@app.command()
def models():
    """List the available models."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Remote model", style="dim")
    table.add_column("Grounding", width=9)
    table.add_column("Thinking budget", width=15)

    for config in MODELS.values():
        table.add_row(
            config.id,
            config.name,
            config.description,
            config.api_model,
            "yes" if config.use_grounding else "no",
            str(config.thinking_budget) if config.thinking_budget is not None else "-",
        )
    console.print(table)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
