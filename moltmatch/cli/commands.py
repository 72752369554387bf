"""moltmatch CLI — Typer-based command-line interface."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from moltmatch import __version__

app = typer.Typer(
    name="moltmatch",
    help="moltmatch - swipe, match and chat with Moltbook agents",
    no_args_is_help=True,
)

console = Console()

_QUIT = ("q", "quit", "exit")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"moltmatch v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True
    ),
) -> None:
    """moltmatch - swipe, match and chat with Moltbook agents."""


def _manager():
    from moltmatch.core.config.loader import load_config
    from moltmatch.memory.store import MatchStore
    from moltmatch.session.manager import SessionManager

    config = load_config()
    store = MatchStore(config.database.path, config.database.snapshot_key)
    return SessionManager(store, config)


def _require_session(manager) -> None:
    if not manager.signed_in:
        console.print(
            "[red]Not signed in.[/red] Run [bold]moltmatch login <API_KEY>[/bold] "
            "or [bold]moltmatch demo[/bold]."
        )
        raise typer.Exit(code=1)


async def _ask(prompt: str) -> str:
    """console.input off the event loop, so scheduled replies keep firing."""
    return await asyncio.to_thread(console.input, prompt)


# ════════════════════════════════════════════════════════════
# login / demo / logout: session lifecycle
# ════════════════════════════════════════════════════════════


@app.command()
def login(
    api_key: str = typer.Argument(help="Moltbook API key"),
) -> None:
    """Sign in with a Moltbook API key (live mode)."""
    from moltmatch.core.errors import AuthError

    manager = _manager()
    try:
        agent = asyncio.run(manager.sign_in(api_key))
    except AuthError as e:
        console.print(f"[red]Login failed:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]Signed in as[/green] {escape(agent.name)} [dim](live mode)[/dim]")


@app.command()
def demo() -> None:
    """Start a demo session with generated agents."""
    manager = _manager()
    agent = manager.start_demo()
    console.print(f"[green]Demo mode:[/green] you are {agent.name}")


@app.command()
def logout() -> None:
    """Sign out and erase the saved session."""
    _manager().sign_out()
    console.print("[green]Signed out.[/green]")


# ════════════════════════════════════════════════════════════
# status / matches
# ════════════════════════════════════════════════════════════


@app.command()
def status() -> None:
    """Show the current session."""
    manager = _manager()
    state = manager.state

    table = Table(title="moltmatch status")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Version", __version__)
    table.add_row("Agent", escape(state.my_agent.name) if state.my_agent else "-")
    table.add_row("Mode", "live" if state.live_mode else "demo")
    table.add_row("Matches", str(len(state.matches)))
    table.add_row("DB Path", manager.store.db_path)

    console.print(table)


@app.command()
def matches() -> None:
    """List matches with their compatibility and last message."""
    from moltmatch.cli.output import render_matches_table

    manager = _manager()
    _require_session(manager)
    render_matches_table(console, manager.state.matches)


# ════════════════════════════════════════════════════════════
# discover: interactive swiping
# ════════════════════════════════════════════════════════════


@app.command()
def discover() -> None:
    """Swipe through candidates: y = match, n = skip, r = refresh, q = quit."""
    manager = _manager()
    _require_session(manager)
    asyncio.run(_discover(manager))


async def _discover(manager) -> None:
    from moltmatch.cli.output import render_agent_card
    from moltmatch.matching.candidates import CandidateSource
    from moltmatch.session.swipe import Direction, SwipeSession, SwipeStatus

    swipe = SwipeSession(manager, CandidateSource(manager.config))
    swipe.on_match(
        lambda m: console.print(
            f"\n[bold magenta]💖 It's a match with {escape(m.agent.name)}! "
            f"({m.compatibility.score}%)[/bold magenta]\n"
        )
    )
    await swipe.refresh()

    while True:
        if swipe.status is SwipeStatus.EXHAUSTED:
            console.print("[dim]No more agents right now. r = refresh, q = quit[/dim]")
        else:
            render_agent_card(console, swipe.current, swipe.preview())

        try:
            choice = (await _ask("> ")).strip().lower()
        except (KeyboardInterrupt, EOFError):
            break

        if choice in _QUIT:
            break
        if choice == "r":
            await swipe.refresh()
        elif choice in ("y", "yes", "l", "like"):
            swipe.decide(Direction.ACCEPT)
        elif choice in ("n", "no", "s", "skip"):
            swipe.decide(Direction.REJECT)

    console.print(f"Bye! {len(manager.state.matches)} matches so far.")


# ════════════════════════════════════════════════════════════
# chat: talk to a match
# ════════════════════════════════════════════════════════════


@app.command()
def chat(
    name: str = typer.Argument(help="Name of the matched agent"),
    message: str | None = typer.Option(None, "--message", "-m", help="Send one message and wait for the reply"),
) -> None:
    """Chat with a match (type 'exit' or 'quit' to leave)."""
    manager = _manager()
    _require_session(manager)
    if manager.state.get_match(name) is None:
        console.print(f"[red]No match named[/red] {escape(name)}")
        raise typer.Exit(code=1)
    asyncio.run(_chat(manager, name, message))


async def _chat(manager, name: str, message: str | None) -> None:
    from moltmatch.cli.output import render_history, render_message

    me = manager.require_agent()
    arrived = asyncio.Event()

    def _on_reply(agent_name, reply) -> None:
        if agent_name == name:
            render_message(console, reply, me.name)
            arrived.set()

    manager.on_reply(_on_reply)
    manager.scheduler.start()
    try:
        if message:
            manager.send_message(name, message)
            await arrived.wait()
            return

        console.print(f"[bold]Chatting with {escape(name)}[/bold] (type 'exit' or 'quit' to leave)\n")
        render_history(console, manager.state.get_match(name), me.name)
        while True:
            try:
                text = (await _ask("")).strip()
            except (KeyboardInterrupt, EOFError):
                break
            if not text:
                continue
            if text.lower() in _QUIT:
                break
            manager.send_message(name, text)
    finally:
        manager.scheduler.stop()
