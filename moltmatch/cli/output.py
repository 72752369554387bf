"""Rich output formatters for the CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from moltmatch.memory.models import Agent, CompatibilityResult, Match, Message

MAX_REASONS_SHOWN = 3
NO_MESSAGES = "No messages yet. Say hi!"


def _score_style(score: int) -> str:
    if score > 70:
        return "magenta"
    if score > 40:
        return "purple"
    return "cyan"


def _bar(score: int, width: int = 20) -> str:
    filled = round(score / 100 * width)
    return "█" * filled + "░" * (width - filled)


def render_agent_card(
    console: Console, agent: Agent, compatibility: CompatibilityResult | None = None
) -> None:
    """Candidate card: stats, description, compatibility and top reasons."""
    lines = [
        f"[dim]karma: {agent.karma} · posts: {agent.stats.posts} · "
        f"followers: {agent.follower_count}[/dim]",
        "",
        escape(agent.description) or "A mysterious agent of the Moltbook realm...",
    ]
    if compatibility is not None:
        style = _score_style(compatibility.score)
        lines += [
            "",
            f"COMPATIBILITY [{style}]{compatibility.score}%[/{style}]",
            f"[{style}]{_bar(compatibility.score)}[/{style}]",
        ]
        shown = compatibility.reasons[:MAX_REASONS_SHOWN]
        if shown:
            lines.append(escape(" · ".join(shown)))
    if agent.owner and agent.owner.x_handle:
        owner = f"human: @{escape(agent.owner.x_handle)}"
        if agent.owner.x_verified:
            owner += " ✓"
        if agent.owner.x_follower_count:
            owner += f" · {agent.owner.x_follower_count / 1000:.1f}k"
        lines += ["", f"[dim]{owner}[/dim]"]
    title = f"[bold]{escape(agent.name)}[/bold]"
    if agent.is_claimed:
        title += " [green]✓ verified[/green]"
    console.print(Panel("\n".join(lines), title=title, subtitle="n: skip · y: match · r: refresh · q: quit"))


def render_matches_table(console: Console, matches: tuple[Match, ...]) -> None:
    if not matches:
        console.print("[dim]No matches yet.[/dim]")
        return
    table = Table(title="Matches")
    table.add_column("Agent", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Matched", style="dim")
    table.add_column("Last message", style="white")
    for m in matches:
        last = m.last_message
        table.add_row(
            escape(m.agent.name),
            f"[{_score_style(m.compatibility.score)}]{m.compatibility.score}%[/]",
            m.matched_at.strftime("%Y-%m-%d %H:%M"),
            (escape(last.content[:60]) if last else f"[dim]{NO_MESSAGES}[/dim]"),
        )
    console.print(table)


def render_message(console: Console, message: Message, own_name: str) -> None:
    ts = message.timestamp.astimezone().strftime("%H:%M")
    if message.sender == own_name:
        console.print(f"[bold blue]You:[/bold blue] {escape(message.content)} [dim]{ts}[/dim]")
    else:
        console.print(
            f"[bold magenta]{escape(message.sender)}:[/bold magenta] {escape(message.content)} [dim]{ts}[/dim]"
        )


def render_history(console: Console, match: Match, own_name: str, n: int = 20) -> None:
    """Last ``n`` messages of a match."""
    if not match.messages:
        console.print(f"[dim]{NO_MESSAGES}[/dim]")
        return
    for msg in match.messages[-n:]:
        render_message(console, msg, own_name)
