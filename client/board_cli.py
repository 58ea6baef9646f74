from __future__ import annotations

from itertools import zip_longest
from typing import List

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from board_api import BoardApiClient
from board_app import BoardController
from board_session import SessionStore
from board_store import COLUMN_TITLES, COLUMNS, BoardState, Card
from config import settings
from logging_setup import setup_logging

app = typer.Typer(help="Kanban board in the terminal.", no_args_is_help=True, add_completion=False)
console = Console()
err_console = Console(stderr=True)

COLUMN_ICONS = {"todo": "📝", "inProgress": "⏳", "done": "✅"}
COLUMN_ALIASES = {
    "todo": "todo",
    "to-do": "todo",
    "inprogress": "inProgress",
    "in-progress": "inProgress",
    "progress": "inProgress",
    "doing": "inProgress",
    "done": "done",
}
ID_WIDTH = 8


def _controller() -> BoardController:
    return BoardController(BoardApiClient(settings.api_url), SessionStore(settings.session_file))


def _fail(ctl: BoardController, fallback: str = "Request failed") -> None:
    err_console.print(f"[red]{escape(ctl.error or fallback)}[/red]")
    raise typer.Exit(code=1)


def _column_key(raw: str) -> str:
    key = COLUMN_ALIASES.get(raw.strip().lower())
    if key is None:
        raise typer.BadParameter(f"expected one of: {', '.join(COLUMNS)}")
    return key


def _card_cell(card: Card) -> str:
    return f"{escape(card.text)} [dim]{card.id[:ID_WIDTH]}[/dim]"


def render_board(state: BoardState, username: str = "") -> Table:
    table = Table(title=f"Logged in as: {escape(username)}" if username else None, expand=True)
    for key in COLUMNS:
        table.add_column(f"{COLUMN_ICONS[key]} {COLUMN_TITLES[key]}", ratio=1)
    rows = zip_longest(*(state.column(key) for key in COLUMNS))
    for row in rows:
        table.add_row(*(_card_cell(c) if c else "" for c in row))
    return table


def _logged_in_board() -> BoardController:
    ctl = _controller()
    if not ctl.logged_in:
        err_console.print("[red]Not logged in. Run `taskboard login` first.[/red]")
        raise typer.Exit(code=1)
    if not ctl.refresh():
        _fail(ctl)
    return ctl


def _resolve(ctl: BoardController, ref: str) -> Card:
    card = ctl.find_card(ref)
    if card is None:
        err_console.print(f"[red]No card matches {escape(ref)!r}[/red]")
        raise typer.Exit(code=1)
    return card


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr.")) -> None:
    setup_logging("DEBUG" if verbose else "WARNING")


@app.command()
def signup(
    username: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    """Create an account."""
    ctl = _controller()
    if not ctl.signup(username, password):
        if "Username already exists" in ctl.error:
            ctl.error = "Signup failed. Username already exists. Please choose another."
        _fail(ctl)
    console.print("Signup successful. You can now log in.")


@app.command()
def login(
    username: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Log in with username and password."""
    ctl = _controller()
    if not ctl.login(username, password):
        _fail(ctl, "Login failed")
    console.print(f"Logged in as [bold]{escape(ctl.username)}[/bold]")


@app.command("google-login")
def google_login(credential: str = typer.Argument(..., help="Google ID token (JWT credential).")) -> None:
    """Log in with a Google identity token."""
    ctl = _controller()
    if not ctl.google_login(credential):
        _fail(ctl, "Google login failed")
    console.print(f"Logged in as [bold]{escape(ctl.username)}[/bold]")


@app.command()
def logout() -> None:
    """Forget the stored token."""
    _controller().logout()
    console.print("Logged out.")


@app.command()
def whoami() -> None:
    ctl = _controller()
    if not ctl.logged_in:
        err_console.print("Not logged in.")
        raise typer.Exit(code=1)
    console.print(ctl.username)


@app.command()
def show() -> None:
    """Show the board."""
    ctl = _logged_in_board()
    console.print(render_board(ctl.store.state, ctl.username))


@app.command()
def add(words: List[str] = typer.Argument(..., help="Task text.")) -> None:
    """Add a task to To-Do."""
    ctl = _logged_in_board()
    if not ctl.add_task(" ".join(words)):
        _fail(ctl)
    console.print(render_board(ctl.store.state, ctl.username))


@app.command()
def move(card: str = typer.Argument(..., help="Card id or id prefix."), column: str = typer.Argument(...)) -> None:
    """Move a card to another column."""
    dest = _column_key(column)
    ctl = _logged_in_board()
    if not ctl.move_card(_resolve(ctl, card).id, dest):
        _fail(ctl)
    console.print(render_board(ctl.store.state, ctl.username))


@app.command()
def rm(card: str = typer.Argument(..., help="Card id or id prefix.")) -> None:
    """Delete a card."""
    ctl = _logged_in_board()
    if not ctl.delete_card(_resolve(ctl, card).id):
        _fail(ctl)
    console.print(render_board(ctl.store.state, ctl.username))


@app.command()
def share(card: str = typer.Argument(..., help="Card id or id prefix."), username: str = typer.Argument(...)) -> None:
    """Share a card with another user."""
    ctl = _logged_in_board()
    target = _resolve(ctl, card)
    if not ctl.share_card(target.id, username):
        _fail(ctl)
    console.print(f"Shared {escape(target.text)!r} with {escape(username)}")


if __name__ == "__main__":
    app()
