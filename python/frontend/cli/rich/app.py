"""Rich terminal frontend — the picture as coloured blocks.

Each tile is drawn in the average colour of its slice of the image, so the
scrambled picture is still recognisable in a terminal.  Press N to overlay
each tile's home position number.
"""

from __future__ import annotations

from functools import lru_cache

import rich.box
from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from backend.engine.gameplay import GamePlay
from backend.engine.gamestate import Phase
from backend.engine.imageslicer import ImageSlicer
from backend.errors import PuzzleError
from backend.models.board import Board, Direction, Tile
from backend.services import ImageGenerator
from frontend.cli.input_handler import get_key_timeout

console = Console()

CELL_W = 8
CELL_H = 3

_DIRECTIONS = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}


# -- helpers ------------------------------------------------------------------


def _format_time(seconds: int) -> str:
    m, s = divmod(seconds, 60)
    return f"{m:02d}:{s:02d}"


@lru_cache(maxsize=256)
def _tile_color(image: bytes) -> str:
    r, g, b = ImageSlicer.average_color(image)
    return f"#{r:02x}{g:02x}{b:02x}"


def _label_color(background: str) -> str:
    r, g, b = (int(background[i : i + 2], 16) for i in (1, 3, 5))
    return "black" if (r * 299 + g * 587 + b * 114) // 1000 > 140 else "white"


# -- board rendering ----------------------------------------------------------


def _render_cell(tile: Tile, show_numbers: bool) -> Text:
    blank_line = " " * CELL_W
    if tile.is_empty:
        return Text("\n".join([blank_line] * CELL_H), style="on grey11")

    bg = _tile_color(tile.image)
    label = str(tile.correct_pos + 1) if show_numbers else ""
    lines = [blank_line] * CELL_H
    lines[CELL_H // 2] = label.center(CELL_W)
    style = f"bold {_label_color(bg)} on {bg}"
    return Text("\n".join(lines), style=style)


def _render_board(game: GamePlay, board: Board) -> Table:
    """Return a Rich Table representing the puzzle grid."""
    border = "bold green" if game.is_won else "bright_blue"
    table = Table(
        show_header=False,
        show_edge=True,
        box=rich.box.HEAVY,
        border_style=border,
        padding=0,
    )
    for _ in range(board.size):
        table.add_column(width=CELL_W, no_wrap=True)

    show_numbers = game.state.show_numbers
    for row in range(board.size):
        table.add_row(
            *(
                _render_cell(board.tile_at(row, col), show_numbers)
                for col in range(board.size)
            )
        )
    return table


# -- screens ------------------------------------------------------------------


def _status_line(game: GamePlay) -> Text:
    stats = Text()
    stats.append("  Moves: ", style="dim")
    stats.append(str(game.state.moves), style="bold yellow")
    stats.append("    Time: ", style="dim")
    stats.append(_format_time(game.state.elapsed), style="bold yellow")
    stats.append("    Phase: ", style="dim")
    stats.append(game.phase.value.upper(), style="bold cyan")
    return stats


def _controls(game: GamePlay) -> Text:
    controls = Text()
    if game.phase is Phase.PLAYING:
        pairs = [
            ("↑↓←→/WASD", "move"),
            ("G", "give up"),
            ("N", "numbers"),
            ("P", "peek"),
            ("Q", "quit"),
        ]
    else:
        pairs = [
            ("Enter", "shuffle & play"),
            ("3/4/5", "size"),
            ("I", "AI image"),
            ("O", "open image"),
            ("N", "numbers"),
            ("P", "peek"),
            ("Q", "quit"),
        ]
    for key, label in pairs:
        controls.append(f"  {key}", style="bold cyan")
        controls.append(f" {label} ", style="dim")
    return controls


def _draw(game: GamePlay, status: str = "") -> None:
    console.clear()

    size = game.size
    board = game.board
    if board is None:
        parts: list = [Align.center(Text("No image loaded. Press O or I.", style="dim"))]
    else:
        parts = [Align.center(_render_board(game, board))]
    if game.is_won:
        congrats = Text()
        congrats.append("\n  ★ ", style="bold yellow")
        congrats.append("SOLVED!", style="bold green")
        congrats.append(" ★\n", style="bold yellow")
        parts.append(Align.center(congrats))

    panel = Panel(
        Group(*parts),
        title=f"[bold cyan]Image Slide Puzzle  {size}×{size}[/bold cyan]",
        border_style="bold green" if game.is_won else "bright_blue",
        padding=(1, 2),
    )

    console.print()
    console.print(Align.center(panel))
    console.print(Align.center(_status_line(game)))
    if status:
        console.print(Align.center(Text.from_markup(f"  {status}")))
    elif game.state.error:
        console.print(Align.center(Text(f"  {game.state.error}", style="red")))
    console.print(Align.center(_controls(game)))


# -- actions ------------------------------------------------------------------


def _peek(game: GamePlay) -> str:
    """Show the whole source picture until the next key press."""
    if game.preview is None:
        return "[yellow]No image loaded.[/yellow]"
    grid = ImageSlicer.color_grid(game.preview, game.size * CELL_W, game.size * CELL_H)
    picture = Text()
    for y, row in enumerate(grid):
        if y:
            picture.append("\n")
        for r, g, b in row:
            picture.append(" ", style=f"on #{r:02x}{g:02x}{b:02x}")

    console.clear()
    console.print()
    console.print(
        Align.center(
            Panel(picture, title="[bold cyan]Peek[/bold cyan]", border_style="bright_blue")
        )
    )
    console.print(Align.center(Text("  Press any key to return.", style="dim")))
    # The clock keeps running underneath, but the board is not redrawn.
    while get_key_timeout(1.0) is None:
        game.tick()
    return ""


def _open_image(game: GamePlay) -> str:
    source = console.input("  Image path or URL: ").strip()
    if not source:
        return ""
    try:
        game.load_image(source)
    except PuzzleError as exc:
        return f"[red]{exc}[/red]"
    return "[green]Image loaded.[/green]"


def _generate_image(game: GamePlay, generator: ImageGenerator) -> str:
    prompt = console.input("  Describe an image: ").strip()
    if not prompt:
        return ""
    try:
        with console.status("Dreaming up a puzzle…", spinner="dots"):
            game.generate(prompt, generator)
    except PuzzleError:
        return f"[red]{game.state.error}[/red]"
    return "[green]New puzzle ready.[/green]"


# -- game loop ----------------------------------------------------------------


def _wait_for_key(game: GamePlay, status: str) -> str:
    """Block for a key, advancing the session clock once per idle second."""
    while True:
        key = get_key_timeout(1.0)
        if key is not None:
            return key
        if game.phase is Phase.PLAYING:
            game.tick()
            _draw(game, status)


def _game_loop(game: GamePlay, generator: ImageGenerator) -> None:
    status = ""
    while True:
        _draw(game, status)
        key = _wait_for_key(game, status)
        status = ""

        if key in _DIRECTIONS:
            game.move_direction(_DIRECTIONS[key])
        elif key == "start":
            if game.start():
                status = "[yellow]Shuffled![/yellow]"
        elif key == "giveup":
            game.give_up()
        elif key == "numbers":
            game.toggle_numbers()
        elif key == "peek":
            status = _peek(game)
        elif key in ("3", "4", "5"):
            try:
                if not game.set_difficulty(int(key)):
                    status = "[yellow]Finish or give up first.[/yellow]"
            except PuzzleError as exc:
                status = f"[red]{exc}[/red]"
        elif key == "open" and game.phase is not Phase.PLAYING:
            status = _open_image(game)
        elif key == "generate" and game.phase is not Phase.PLAYING:
            status = _generate_image(game, generator)
        elif key == "quit":
            console.clear()
            console.print(Align.center(Text("\nGoodbye!\n", style="bold cyan")))
            return


# -- public entry point -------------------------------------------------------


def run(game: GamePlay, generator: ImageGenerator) -> None:
    """Launch the Rich terminal frontend on a prepared session."""
    _game_loop(game, generator)
