"""Pygame GUI frontend — the real picture, click a tile to slide it.

One screen: the board, a stats line, a row of action buttons and a text
box that feeds either the AI image generator or the image opener.
"""

from __future__ import annotations

import threading
from io import BytesIO

import pygame

from backend.engine.gameplay import GamePlay
from backend.engine.gamestate import Phase
from backend.errors import PuzzleError
from backend.models.board import Difficulty, Direction
from backend.services import ImageGenerator

# ---------------------------------------------------------------------------
# Catppuccin Mocha palette
# ---------------------------------------------------------------------------
COL_BASE = (30, 30, 46)
COL_MANTLE = (24, 24, 37)
COL_SURFACE0 = (49, 50, 68)
COL_SURFACE1 = (69, 71, 90)
COL_OVERLAY0 = (108, 112, 134)
COL_TEXT = (205, 214, 244)
COL_SUBTEXT = (166, 173, 200)
COL_BLUE = (137, 180, 250)
COL_LAVENDER = (180, 190, 254)
COL_GREEN = (166, 227, 161)
COL_PINK = (245, 194, 231)
COL_YELLOW = (249, 226, 175)
COL_RED = (243, 139, 168)

# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------
WIN_W, WIN_H = 520, 820
TILE_GAP = 4
MARGIN = 20
BOARD_TOP = 80
BOARD_MAX = WIN_W - 2 * MARGIN  # max board width/height in px

TICK_EVENT = pygame.USEREVENT + 1


# ---------------------------------------------------------------------------
# Simple clickable button
# ---------------------------------------------------------------------------
class _Btn:
    __slots__ = ("rect", "text", "font", "bg", "hover", "fg", "_hot")

    def __init__(
        self,
        rect: tuple[int, int, int, int],
        text: str,
        font: pygame.font.Font,
        *,
        bg: tuple = COL_SURFACE0,
        hover: tuple = COL_SURFACE1,
        fg: tuple = COL_TEXT,
    ) -> None:
        self.rect = pygame.Rect(rect)
        self.text = text
        self.font = font
        self.bg = bg
        self.hover = hover
        self.fg = fg
        self._hot = False

    def draw(self, surf: pygame.Surface, *, enabled: bool = True) -> None:
        c = self.hover if self._hot and enabled else self.bg
        pygame.draw.rect(surf, c, self.rect, border_radius=8)
        lbl = self.font.render(self.text, True, self.fg if enabled else COL_OVERLAY0)
        surf.blit(
            lbl,
            (
                self.rect.centerx - lbl.get_width() // 2,
                self.rect.centery - lbl.get_height() // 2,
            ),
        )

    def motion(self, pos: tuple[int, int]) -> None:
        self._hot = self.rect.collidepoint(pos)

    def hit(self, pos: tuple[int, int]) -> bool:
        return self.rect.collidepoint(pos)


def _cx(w: int) -> int:
    return (WIN_W - w) // 2


def _blit_center(surf: pygame.Surface, rendered: pygame.Surface, y: int) -> None:
    surf.blit(rendered, (_cx(rendered.get_width()), y))


# ---------------------------------------------------------------------------
# Main application
# ---------------------------------------------------------------------------
class PygameApp:
    def __init__(self, game: GamePlay, generator: ImageGenerator) -> None:
        self._game = game
        self._generator = generator
        self._tile_cache: dict[bytes, pygame.Surface] = {}
        self._cache_px = 0
        self._input = ""
        self._status = ""
        self._peeking = False
        self._preview_surf: tuple[bytes, pygame.Surface] | None = None

        pygame.init()
        self._surf = pygame.display.set_mode((WIN_W, WIN_H))
        pygame.display.set_caption("Image Slide Puzzle")
        self._clock = pygame.time.Clock()

        self._f_title = pygame.font.SysFont("Helvetica", 22, bold=True)
        self._f_big = pygame.font.SysFont("Helvetica", 44, bold=True)
        self._f_body = pygame.font.SysFont("Helvetica", 16)
        self._f_btn = pygame.font.SysFont("Helvetica", 14, bold=True)
        self._f_small = pygame.font.SysFont("Helvetica", 13)

        self._build_btns()

    # ── buttons ─────────────────────────────────────────────────────────────

    def _build_btns(self) -> None:
        row1 = BOARD_TOP + BOARD_MAX + 14
        row2 = row1 + 46
        bw, gap = 90, 8

        self._size_btns: dict[int, _Btn] = {}
        sx = MARGIN
        for i, d in enumerate(Difficulty):
            self._size_btns[d] = _Btn(
                (sx + i * (bw + gap), row1, bw, 36), f"{d}×{d}", self._f_btn
            )
        self._numbers_btn = _Btn(
            (WIN_W - MARGIN - 2 * bw - gap, row1, bw, 36), "NUMBERS", self._f_btn
        )
        self._peek_btn = _Btn((WIN_W - MARGIN - bw, row1, bw, 36), "PEEK", self._f_btn)

        wide = (BOARD_MAX - gap) // 2
        self._play_btn = _Btn(
            (MARGIN, row2, wide, 40), "SHUFFLE & PLAY", self._f_btn,
            bg=COL_BLUE, hover=COL_LAVENDER, fg=COL_BASE,
        )
        self._giveup_btn = _Btn(
            (MARGIN + wide + gap, row2, wide, 40), "GIVE UP", self._f_btn,
            bg=COL_RED, hover=(255, 170, 185), fg=COL_BASE,
        )

        row3 = row2 + 92
        self._gen_btn = _Btn(
            (MARGIN, row3, wide, 36), "GENERATE (AI)", self._f_btn,
            bg=COL_PINK, hover=(245, 210, 227), fg=COL_BASE,
        )
        self._open_btn = _Btn(
            (MARGIN + wide + gap, row3, wide, 36), "OPEN FILE / URL", self._f_btn,
            bg=COL_YELLOW, hover=(255, 240, 200), fg=COL_BASE,
        )
        self._input_rect = pygame.Rect(MARGIN, row2 + 50, BOARD_MAX, 34)

        self._all_btns: list[_Btn] = [
            *self._size_btns.values(),
            self._numbers_btn,
            self._peek_btn,
            self._play_btn,
            self._giveup_btn,
            self._gen_btn,
            self._open_btn,
        ]

    # ── helpers ─────────────────────────────────────────────────────────────

    @staticmethod
    def _fmt(seconds: int) -> str:
        m, s = divmod(seconds, 60)
        return f"{m:02d}:{s:02d}"

    def _tile_layout(self) -> tuple[int, int, int]:
        """Return (tile_px, origin_x, total_px) for the current grid size."""
        sz = self._game.size
        tile_px = (BOARD_MAX - (sz + 1) * TILE_GAP) // sz
        total = sz * tile_px + (sz + 1) * TILE_GAP
        return tile_px, _cx(total), total

    def _tile_rect(self, index: int) -> pygame.Rect:
        tpx, ox, _ = self._tile_layout()
        r, c = divmod(index, self._game.size)
        return pygame.Rect(
            ox + TILE_GAP + c * (tpx + TILE_GAP),
            BOARD_TOP + TILE_GAP + r * (tpx + TILE_GAP),
            tpx,
            tpx,
        )

    def _tile_surface(self, image: bytes, tpx: int) -> pygame.Surface:
        if tpx != self._cache_px or len(self._tile_cache) > 64:
            self._tile_cache = {}
            self._cache_px = tpx
        surf = self._tile_cache.get(image)
        if surf is None:
            raw = pygame.image.load(BytesIO(image), "tile.jpg").convert()
            surf = pygame.transform.smoothscale(raw, (tpx, tpx))
            self._tile_cache[image] = surf
        return surf

    def _preview_surface(self, image: bytes, px: int) -> pygame.Surface:
        cached = self._preview_surf
        if cached is None or cached[0] is not image or cached[1].get_width() != px:
            raw = pygame.image.load(BytesIO(image), "preview.jpg").convert()
            cached = (image, pygame.transform.smoothscale(raw, (px, px)))
            self._preview_surf = cached
        return cached[1]

    # ── drawing ─────────────────────────────────────────────────────────────

    def _draw(self) -> None:
        self._surf.fill(COL_BASE)
        game = self._game
        sz = game.size

        _blit_center(
            self._surf,
            self._f_title.render(f"Image Slide Puzzle  {sz}×{sz}", True, COL_TEXT),
            14,
        )
        _blit_center(
            self._surf,
            self._f_body.render(
                f"Moves: {game.state.moves}    Time: {self._fmt(game.state.elapsed)}",
                True,
                COL_PINK,
            ),
            46,
        )

        self._draw_board()

        playing = game.phase is Phase.PLAYING
        for d, btn in self._size_btns.items():
            btn.bg = COL_GREEN if d == sz else COL_SURFACE0
            btn.fg = COL_BASE if d == sz else COL_TEXT
            btn.draw(self._surf, enabled=not playing)
        self._numbers_btn.draw(self._surf)
        self._peek_btn.draw(self._surf, enabled=game.preview is not None)
        self._play_btn.text = "PLAY AGAIN" if game.is_won else "SHUFFLE & PLAY"
        self._play_btn.draw(self._surf, enabled=not playing and game.board is not None)
        self._giveup_btn.draw(self._surf, enabled=playing)
        self._gen_btn.draw(self._surf, enabled=not playing)
        self._open_btn.draw(self._surf, enabled=not playing)

        pygame.draw.rect(self._surf, COL_MANTLE, self._input_rect, border_radius=6)
        pygame.draw.rect(self._surf, COL_SURFACE1, self._input_rect, width=1, border_radius=6)
        shown = self._input or "Describe an image, or paste a path / URL…"
        colour = COL_TEXT if self._input else COL_OVERLAY0
        self._surf.blit(
            self._f_body.render(shown[-52:], True, colour),
            (self._input_rect.x + 8, self._input_rect.y + 8),
        )

        message = self._status or (game.state.error or "")
        if message:
            _blit_center(
                self._surf,
                self._f_small.render(message, True, COL_RED if game.state.error else COL_YELLOW),
                self._gen_btn.rect.bottom + 12,
            )

        _blit_center(
            self._surf,
            self._f_small.render(
                "Click / arrows move    Enter play    N numbers    hold P peek    Esc quit",
                True,
                COL_OVERLAY0,
            ),
            WIN_H - 24,
        )

    def _draw_board(self) -> None:
        game = self._game
        board = game.board
        tpx, ox, total = self._tile_layout()
        pygame.draw.rect(
            self._surf, COL_MANTLE,
            pygame.Rect(ox, BOARD_TOP, total, total), border_radius=10,
        )
        if board is None:
            _blit_center(
                self._surf,
                self._f_body.render("No image loaded", True, COL_OVERLAY0),
                BOARD_TOP + total // 2,
            )
            return

        if self._peeking and game.preview is not None:
            inner = total - 2 * TILE_GAP
            self._surf.blit(
                self._preview_surface(game.preview, inner),
                (ox + TILE_GAP, BOARD_TOP + TILE_GAP),
            )
            return

        f_badge = pygame.font.SysFont("Helvetica", max(10, tpx // 6), bold=True)
        for index, tile in enumerate(board.tiles):
            if tile.is_empty:
                continue
            rect = self._tile_rect(index)
            self._surf.blit(self._tile_surface(tile.image, tpx), rect.topleft)
            if game.state.show_numbers:
                lbl = f_badge.render(str(tile.correct_pos + 1), True, (255, 255, 255))
                badge = pygame.Surface(
                    (lbl.get_width() + 8, lbl.get_height() + 4), pygame.SRCALPHA
                )
                badge.fill((0, 0, 0, 150))
                badge.blit(lbl, (4, 2))
                self._surf.blit(badge, (rect.x + 2, rect.y + 2))
            if game.phase is Phase.PLAYING and board.is_tile_correct(index):
                pygame.draw.rect(self._surf, COL_GREEN, rect, width=1, border_radius=4)

        if game.is_won:
            veil = pygame.Surface((total, total), pygame.SRCALPHA)
            veil.fill((0, 0, 0, 140))
            self._surf.blit(veil, (ox, BOARD_TOP))
            _blit_center(
                self._surf,
                self._f_big.render("SOLVED!", True, COL_YELLOW),
                BOARD_TOP + total // 2 - 40,
            )
            _blit_center(
                self._surf,
                self._f_body.render(
                    f"Moves: {game.state.moves} | Time: {game.state.elapsed}s",
                    True,
                    COL_TEXT,
                ),
                BOARD_TOP + total // 2 + 14,
            )

    def _draw_generating(self) -> None:
        _, ox, total = self._tile_layout()
        veil = pygame.Surface((total, total), pygame.SRCALPHA)
        veil.fill((0, 0, 0, 200))
        self._surf.blit(veil, (ox, BOARD_TOP))
        _blit_center(
            self._surf,
            self._f_title.render("Dreaming up a puzzle…", True, COL_BLUE),
            BOARD_TOP + total // 2 - 12,
        )
        pygame.display.flip()

    # ── actions ─────────────────────────────────────────────────────────────

    def _do_generate(self) -> None:
        prompt = self._input.strip()
        if not prompt:
            return
        failures: list[PuzzleError] = []

        def work() -> None:
            try:
                self._game.generate(prompt, self._generator)
            except PuzzleError as exc:
                failures.append(exc)

        worker = threading.Thread(target=work, name="generate", daemon=True)
        worker.start()
        # Input is left queued until the request settles.
        while worker.is_alive():
            pygame.event.pump()
            self._draw()
            self._draw_generating()
            self._clock.tick(30)
        worker.join()
        if failures:
            self._status = ""
            return
        self._input = ""
        self._status = "New puzzle ready."

    def _do_open(self) -> None:
        source = self._input.strip()
        if not source:
            return
        try:
            self._game.load_image(source)
        except PuzzleError:
            self._status = ""
            return
        self._input = ""
        self._status = "Image loaded."

    def _do_size(self, size: int) -> None:
        try:
            self._game.set_difficulty(size)
        except PuzzleError as exc:
            self._status = str(exc)

    # ── event handling ──────────────────────────────────────────────────────

    def _on_click(self, pos: tuple[int, int]) -> None:
        game = self._game
        playing = game.phase is Phase.PLAYING
        self._status = ""

        if self._peek_btn.hit(pos):
            self._peeking = True
            return
        if playing and game.board is not None:
            for index in range(len(game.board.tiles)):
                if self._tile_rect(index).collidepoint(pos):
                    game.move(index)
                    return
            if self._giveup_btn.hit(pos):
                game.give_up()
        else:
            for d, btn in self._size_btns.items():
                if btn.hit(pos):
                    self._do_size(d)
                    return
            if self._play_btn.hit(pos):
                game.start()
            elif self._gen_btn.hit(pos):
                self._do_generate()
            elif self._open_btn.hit(pos):
                self._do_open()

        if self._numbers_btn.hit(pos):
            game.toggle_numbers()

    def _on_key(self, ev: pygame.event.Event) -> bool:
        game = self._game
        if ev.key == pygame.K_ESCAPE:
            return False

        if game.phase is Phase.PLAYING:
            _dirs = {
                pygame.K_UP: Direction.UP,
                pygame.K_w: Direction.UP,
                pygame.K_DOWN: Direction.DOWN,
                pygame.K_s: Direction.DOWN,
                pygame.K_LEFT: Direction.LEFT,
                pygame.K_a: Direction.LEFT,
                pygame.K_RIGHT: Direction.RIGHT,
                pygame.K_d: Direction.RIGHT,
            }
            if ev.key in _dirs:
                game.move_direction(_dirs[ev.key])
            elif ev.key == pygame.K_n:
                game.toggle_numbers()
            elif ev.key == pygame.K_g:
                game.give_up()
            elif ev.key == pygame.K_p:
                self._peeking = True
            return True

        # Outside play, the keyboard types into the text box.
        if ev.key == pygame.K_RETURN:
            if self._input.strip():
                self._do_generate()
            else:
                game.start()
        elif ev.key == pygame.K_BACKSPACE:
            self._input = self._input[:-1]
        elif ev.unicode and ev.unicode.isprintable():
            self._input += ev.unicode
        return True

    # ── main loop ───────────────────────────────────────────────────────────

    def run_loop(self) -> None:
        pygame.time.set_timer(TICK_EVENT, 1000)
        running = True
        while running:
            for ev in pygame.event.get():
                if ev.type == pygame.QUIT:
                    running = False
                    break
                if ev.type == TICK_EVENT:
                    self._game.tick()
                elif ev.type == pygame.MOUSEMOTION:
                    for btn in self._all_btns:
                        btn.motion(ev.pos)
                elif ev.type == pygame.MOUSEBUTTONDOWN and ev.button == 1:
                    self._on_click(ev.pos)
                elif ev.type == pygame.MOUSEBUTTONUP and ev.button == 1:
                    self._peeking = False
                elif ev.type == pygame.KEYUP and ev.key == pygame.K_p:
                    self._peeking = False
                elif ev.type == pygame.KEYDOWN and not self._on_key(ev):
                    running = False
                    break

            self._draw()
            pygame.display.flip()
            self._clock.tick(30)

        pygame.quit()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def run(game: GamePlay, generator: ImageGenerator) -> None:
    """Launch the Pygame GUI on a prepared session."""
    app = PygameApp(game, generator)
    app.run_loop()
