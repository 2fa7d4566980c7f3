"""Custom database CLI commands for cheesepants-py.

Adds query helpers for inspecting stored game rooms.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

import rich_click as click
from litestar.plugins import CLIPluginProtocol
from rich.console import Console
from rich.table import Table
from sqlalchemy import create_engine, inspect, select, text
from sqlalchemy.orm import Session, sessionmaker

from cheesepants_py.game.models import GamePhase, GameState
from cheesepants_py.storage.db.models import GameRecordModel, game_from_model

if TYPE_CHECKING:
    from collections.abc import Generator

console = Console()

PHASE_STYLES = {
    GamePhase.LOBBY: "yellow",
    GamePhase.PLAYING: "cyan",
    GamePhase.COMPLETE: "green",
}


def get_database_url() -> str:
    """Get the database URL from environment or default to SQLite."""
    url = os.environ.get("DATABASE_URL", "sqlite:///./data/cheesepants.db")
    # Convert async URL to sync for CLI
    if "+aiosqlite" in url:
        url = url.replace("+aiosqlite", "")
    if "+asyncpg" in url:
        url = url.replace("+asyncpg", "+psycopg2")
    return url


@contextmanager
def get_sync_session() -> Generator[Session, None, None]:
    """Get a sync database session for CLI operations."""
    engine = create_engine(get_database_url())
    session_factory = sessionmaker(bind=engine)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _phase_label(state: GameState) -> str:
    style = PHASE_STYLES.get(state.phase, "white")
    return f"[{style}]{state.phase.value}[/{style}]"


@click.group(name="query", help="Query stored game rooms for debugging and inspection.")
def query_group() -> None:
    """Query stored game rooms for debugging and inspection."""


@query_group.command(name="games", help="List stored game rooms.")
@click.option("--limit", "-l", default=20, help="Number of games to show")
@click.option(
    "--phase",
    "-p",
    type=click.Choice([p.value for p in GamePhase]),
    default=None,
    help="Only show games in this phase",
)
def query_games(limit: int, phase: str | None) -> None:
    """List stored game rooms."""
    with get_sync_session() as session:
        stmt = select(GameRecordModel).order_by(GameRecordModel.updated_at.desc()).limit(limit)
        if phase:
            stmt = stmt.where(GameRecordModel.phase == phase)
        records = session.execute(stmt).scalars().all()

        table = Table(title=f"Games (showing {len(records)})")
        table.add_column("Game ID", style="cyan")
        table.add_column("Phase")
        table.add_column("Players", style="green", justify="right")
        table.add_column("Online", style="green", justify="right")
        table.add_column("Words", style="blue", justify="right")
        table.add_column("Required", style="magenta")
        table.add_column("Updated", style="dim")

        for record in records:
            state = game_from_model(record)
            required = ", ".join(
                f"[green]{w}[/green]" if done else w
                for w, done in zip(state.required_words, state.has_required_words, strict=False)
            )
            table.add_row(
                state.game_id,
                _phase_label(state),
                str(len(state.players)),
                str(len(state.connected_players)),
                str(len(state.words)),
                required,
                record.updated_at.strftime("%Y-%m-%d %H:%M") if record.updated_at else "-",
            )

        console.print(table)


@query_group.command(name="game", help="Show a game room's sentence and players.")
@click.argument("game_id")
def query_game(game_id: str) -> None:
    """Show a game room's sentence and players."""
    with get_sync_session() as session:
        stmt = select(GameRecordModel).where(GameRecordModel.game_id == game_id)
        record = session.execute(stmt).scalar_one_or_none()
        if record is None:
            console.print(f"[red]Game not found: {game_id}[/red]")
            return

        state = game_from_model(record)
        console.print(f"[bold]Game[/bold] {state.game_id} ({_phase_label(state)})")
        sentence = " ".join(
            f"[bold magenta]{w.text}[/bold magenta]" if w.is_required else w.text for w in state.words
        )
        console.print(f"[bold]Sentence:[/bold] {sentence or '[dim](empty)[/dim]'}")
        if state.turn_time_limit:
            console.print(f"[bold]Turn limit:[/bold] {state.turn_time_limit}s")
        admin = state.admin
        console.print(f"[bold]Admin:[/bold] {admin.name if admin else '[dim](left the room)[/dim]'}")

        table = Table(title="Players")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("ID", style="dim")
        table.add_column("Role")
        table.add_column("Turn")
        table.add_column("Online")
        table.add_column("Words", justify="right")

        for i, player in enumerate(state.players, 1):
            table.add_row(
                str(i),
                player.name,
                player.id,
                "[yellow]admin[/yellow]" if state.is_admin(player.id) else "",
                "[bold green]>[/bold green]" if player.is_current_turn else "",
                "[green]yes[/green]" if player.id in state.connected_players else "[red]no[/red]",
                str(sum(1 for w in state.words if w.author_id == player.id)),
            )

        console.print(table)


@query_group.command(name="tables", help="List all database tables and row counts.")
def query_tables() -> None:
    """List all database tables and row counts."""
    engine = create_engine(get_database_url())

    inspector = inspect(engine)
    tables_list = inspector.get_table_names()

    table = Table(title="Database Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green", justify="right")

    with engine.connect() as conn:
        for table_name in sorted(tables_list):
            try:
                count = conn.execute(text(f'SELECT COUNT(*) FROM "{table_name}"')).scalar()
            except Exception:  # noqa: BLE001
                count = "?"
            table.add_row(table_name, str(count))

    engine.dispose()
    console.print(table)


class CheesePantsCLIPlugin(CLIPluginProtocol):
    """CLI plugin that adds the `query` command group.

    Subcommands:
    - games: List stored game rooms
    - game: Show one room's sentence and players
    - tables: List all database tables and row counts
    """

    def on_cli_init(self, cli: click.Group) -> None:
        """Register the query command group."""
        cli.add_command(query_group)
