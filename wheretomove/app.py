"""Pygame UI shell for the Where to Move game.

One screen drives the whole game from the session phase:
- questioning: swipe cards (drag, or Left/Right) over a rotating city map
- loading: short "analyzing" interlude, auto-advances after the timer fires
- results: match card, collapsible answer list, Try Again and Share

Deterministic phase/timer state lives in wheretomove/game_state.py; map
loading lives in wheretomove/map_loader.py.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from typing import Protocol

import pygame

from .clock import Clock, RealClock
from .config import AppConfig
from .game_state import GameSession, GameSnapshot, Phase
from .logging_config import setup_logging
from .map_loader import LibraryFetcher, LibraryRegistry, MapBackground, default_registry
from .matching import MatchGenerator, MatchRecord, PlaceholderMatchGenerator, format_share_text
from .questions import QUESTIONS, Question
from .share import PygameClipboardBackend, ShareBackend, ShareOutcome, share_result
from .static_maps import StaticMapsFetcher
from .swipe import NO, YES, card_rotation_deg, left_opacity, right_opacity, swipe_choice

logger = logging.getLogger(__name__)

WINDOW_SIZE = (720, 780)
TARGET_FPS = 60
SHARE_MESSAGE_S = 2.5

BRAND_BLUE = (0, 106, 255)
BG = (243, 244, 246)
TEXT_MAIN = (31, 41, 55)
TEXT_MUTED = (75, 85, 99)
CARD_BG = (255, 255, 255)
NO_RED = (239, 68, 68)
YES_GREEN = (34, 197, 94)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...
    def close(self) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def update(self) -> None:
        if not self._screens:
            return
        self._screens[-1].update()

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)

    def close(self) -> None:
        while self._screens:
            self._screens.pop().close()


def _wrap_text(font: pygame.font.Font, text: str, max_width: int) -> list[str]:
    lines: list[str] = []
    line = ""
    for word in text.split():
        candidate = word if line == "" else f"{line} {word}"
        if font.size(candidate)[0] <= max_width or line == "":
            line = candidate
        else:
            lines.append(line)
            line = word
    if line:
        lines.append(line)
    return lines


class QuizScreen:
    def __init__(
        self,
        app: App,
        *,
        session: GameSession,
        config: AppConfig,
        clock: Clock,
        fetcher_factory: Callable[[str], LibraryFetcher],
        registry: LibraryRegistry | None = None,
        match_generator: MatchGenerator | None = None,
        share_backends: Sequence[ShareBackend] | None = None,
    ) -> None:
        self._app = app
        self._session = session
        self._config = config
        self._clock = clock
        self._fetcher_factory = fetcher_factory
        self._registry = registry if registry is not None else default_registry()
        self._match_generator = match_generator or PlaceholderMatchGenerator()
        self._share_backends = list(share_backends) if share_backends is not None else [PygameClipboardBackend()]

        self._title_font = pygame.font.Font(None, 52)
        self._big_font = pygame.font.Font(None, 44)
        self._body_font = pygame.font.Font(None, 30)
        self._small_font = pygame.font.Font(None, 24)

        self._phase: Phase | None = None
        self._question_map: MapBackground | None = None
        self._results_map: MapBackground | None = None
        self._match: MatchRecord | None = None

        self._dragging = False
        self._drag_start_x = 0
        self._drag_x = 0.0

        self._show_answers = False
        self._share_status: ShareOutcome | None = None
        self._share_status_until_s = 0.0
        self._button_hitboxes: dict[str, pygame.Rect] = {}

        self._sync_phase()

    @property
    def drag_x(self) -> float:
        return self._drag_x

    @property
    def share_status(self) -> ShareOutcome | None:
        return self._share_status

    @property
    def question_map(self) -> MapBackground | None:
        return self._question_map

    @property
    def results_map(self) -> MapBackground | None:
        return self._results_map

    def handle_event(self, event: pygame.event.Event) -> None:
        phase = self._session.phase
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self._app.quit()
            return
        if phase is Phase.QUESTIONING:
            self._handle_questioning_event(event)
        elif phase is Phase.RESULTS:
            self._handle_results_event(event)

    def update(self) -> None:
        self._session.update()
        self._registry.update()
        self._sync_phase()
        if self._question_map is not None:
            self._question_map.update()
        if self._results_map is not None:
            self._results_map.update()
        if self._share_status is not None and self._clock.now() >= self._share_status_until_s:
            self._share_status = None

    def render(self, surface: pygame.Surface) -> None:
        snap = self._session.snapshot()
        surface.fill(BG)
        if snap.phase is Phase.LOADING:
            self._render_loading(surface)
        elif snap.phase is Phase.RESULTS:
            self._render_results(surface, snap)
        else:
            self._render_questioning(surface, snap)

    def close(self) -> None:
        if self._question_map is not None:
            self._question_map.unmount()
        if self._results_map is not None:
            self._results_map.unmount()
        self._session.teardown()

    # Phase bookkeeping

    def _sync_phase(self) -> None:
        phase = self._session.phase
        if phase is self._phase:
            if phase is Phase.QUESTIONING and self._question_map is not None:
                self._question_map.set_position(index=self._session.current_index)
            return

        previous = self._phase
        self._phase = phase
        logger.debug("Screen phase %s -> %s", None if previous is None else previous.value, phase.value)
        bounds = self._app_bounds()

        if phase is Phase.QUESTIONING:
            if self._results_map is not None:
                self._results_map.unmount()
            self._match = None
            self._show_answers = False
            self._share_status = None
            self._reset_drag()
            if self._question_map is None:
                self._question_map = self._new_map(index=self._session.current_index)
            else:
                self._question_map.set_position(index=self._session.current_index)
            self._question_map.mount(bounds)
        elif phase is Phase.LOADING:
            if self._question_map is not None:
                self._question_map.unmount()
        else:
            self._match = self._session.match(self._match_generator)
            if self._results_map is None:
                self._results_map = self._new_map(label=self._match.place)
            else:
                self._results_map.set_position(label=self._match.place)
            self._results_map.mount(bounds)

    def _new_map(self, *, index: int | None = None, label: str | None = None) -> MapBackground:
        return MapBackground(
            self._config,
            fetcher_factory=self._fetcher_factory,
            registry=self._registry,
            index=index,
            label=label,
        )

    def _app_bounds(self) -> pygame.Rect:
        surface = pygame.display.get_surface()
        if surface is None:
            return pygame.Rect((0, 0), WINDOW_SIZE)
        return surface.get_rect()

    # Questioning

    def _handle_questioning_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key in (pygame.K_RIGHT, pygame.K_y):
                self._answer(YES)
            elif event.key in (pygame.K_LEFT, pygame.K_n):
                self._answer(NO)
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._dragging = True
            self._drag_start_x = event.pos[0]
            self._drag_x = 0.0
            return
        if event.type == pygame.MOUSEMOTION and self._dragging:
            self._drag_x = float(event.pos[0] - self._drag_start_x)
            return
        if event.type == pygame.MOUSEBUTTONUP and event.button == 1 and self._dragging:
            choice = swipe_choice(float(event.pos[0] - self._drag_start_x))
            self._reset_drag()
            if choice is not None:
                self._answer(choice)

    def _answer(self, choice: str) -> None:
        if self._session.current_question() is None:
            return
        self._session.submit_answer(choice)
        self._reset_drag()
        self._sync_phase()

    def _reset_drag(self) -> None:
        self._dragging = False
        self._drag_start_x = 0
        self._drag_x = 0.0

    def _render_questioning(self, surface: pygame.Surface, snap: GameSnapshot) -> None:
        if self._question_map is not None:
            self._question_map.render(surface)

        w, _ = surface.get_size()
        title = self._title_font.render("Where to Move Game", True, BRAND_BLUE)
        surface.blit(title, title.get_rect(midtop=(w // 2, 40)))
        sub = self._small_font.render(
            "Discover your perfect city through our card-swiping adventure", True, TEXT_MUTED
        )
        surface.blit(sub, sub.get_rect(midtop=(w // 2, 90)))

        question = snap.current_question
        if question is None:
            return
        self._render_card(surface, question, index=snap.current_index, total=snap.total_questions)

        hint = self._small_font.render("Swipe or press Left (No) / Right (Yes)", True, TEXT_MUTED)
        surface.blit(hint, hint.get_rect(midbottom=(w // 2, surface.get_height() - 24)))

    def _render_card(self, surface: pygame.Surface, question: Question, *, index: int, total: int) -> None:
        w, h = surface.get_size()
        card_w = min(460, w - 80)
        card_h = min(420, h - 260)
        card = pygame.Surface((card_w, card_h), pygame.SRCALPHA)
        pygame.draw.rect(card, CARD_BG, card.get_rect(), border_radius=18)

        progress = self._small_font.render(f"Question {index + 1} of {total}", True, TEXT_MUTED)
        card.blit(progress, (24, 20))
        category = self._body_font.render(question.category.upper(), True, BRAND_BLUE)
        card.blit(category, (24, 52))

        y = 110
        for line in _wrap_text(self._big_font, question.text, card_w - 48):
            img = self._big_font.render(line, True, TEXT_MAIN)
            card.blit(img, (24, y))
            y += img.get_height() + 6

        x = self._drag_x
        rotated = pygame.transform.rotate(card, -card_rotation_deg(x))
        center = (w // 2 + int(x), 140 + card_h // 2)
        surface.blit(rotated, rotated.get_rect(center=center))

        self._render_indicator(surface, "<", NO_RED, left_opacity(x), (60, center[1]))
        self._render_indicator(surface, ">", YES_GREEN, right_opacity(x), (w - 60, center[1]))

    def _render_indicator(
        self,
        surface: pygame.Surface,
        glyph: str,
        color: tuple[int, int, int],
        opacity: float,
        center: tuple[int, int],
    ) -> None:
        if opacity <= 0.0:
            return
        badge = pygame.Surface((72, 48), pygame.SRCALPHA)
        pygame.draw.rect(badge, color, badge.get_rect(), border_radius=24)
        label = self._big_font.render(glyph, True, (255, 255, 255))
        badge.blit(label, label.get_rect(center=badge.get_rect().center))
        badge.set_alpha(int(round(255 * opacity)))
        surface.blit(badge, badge.get_rect(center=center))

    # Loading

    def _render_loading(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        cx, cy = w // 2, h // 2 - 60
        radius = 56
        # One turn every 2 seconds.
        angle = (self._clock.now() % 2.0) / 2.0 * 2.0 * math.pi
        pygame.draw.circle(surface, (96, 165, 250), (cx, cy), radius)
        pygame.draw.circle(surface, BRAND_BLUE, (cx, cy), radius, 3)
        offset = int(round(math.sin(angle) * radius))
        pygame.draw.ellipse(
            surface,
            (22, 163, 74),
            pygame.Rect(cx - abs(offset) // 2, cy - radius, max(2, abs(offset)), radius * 2),
            3,
        )

        title = self._big_font.render("Analyzing your preferences...", True, TEXT_MAIN)
        surface.blit(title, title.get_rect(midtop=(cx, cy + radius + 30)))
        sub = self._body_font.render("Finding your perfect city match", True, TEXT_MUTED)
        surface.blit(sub, sub.get_rect(midtop=(cx, cy + radius + 76)))

    # Results

    def _handle_results_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_r:
                self._restart()
            elif event.key == pygame.K_s:
                self._share()
            elif event.key == pygame.K_a:
                self._show_answers = not self._show_answers
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            for name, rect in self._button_hitboxes.items():
                if rect.collidepoint(event.pos):
                    if name == "restart":
                        self._restart()
                    elif name == "share":
                        self._share()
                    elif name == "answers":
                        self._show_answers = not self._show_answers
                    return

    def _restart(self) -> None:
        self._session.restart()
        self._sync_phase()

    def _share(self) -> None:
        if self._match is None:
            return
        self._share_status = share_result(format_share_text(self._match), self._share_backends)
        self._share_status_until_s = self._clock.now() + SHARE_MESSAGE_S

    def _render_results(self, surface: pygame.Surface, snap: GameSnapshot) -> None:
        if self._results_map is not None:
            self._results_map.render(surface)
        match = self._match
        if match is None:
            return

        w, h = surface.get_size()
        self._button_hitboxes = {}
        title = self._title_font.render("Your Perfect Match!", True, BRAND_BLUE)
        surface.blit(title, title.get_rect(midtop=(w // 2, 28)))

        panel = pygame.Rect(40, 84, w - 80, 0)
        content_w = panel.w - 48
        y = panel.y + 20
        blocks: list[tuple[pygame.Surface, tuple[int, int]]] = []

        place = self._title_font.render(match.place, True, TEXT_MAIN)
        blocks.append((place, (panel.centerx - place.get_width() // 2, y)))
        y += place.get_height() + 4
        region = self._body_font.render(match.region, True, TEXT_MUTED)
        blocks.append((region, (panel.centerx - region.get_width() // 2, y)))
        y += region.get_height() + 16
        why = self._body_font.render(f"Why {match.place}?", True, TEXT_MAIN)
        blocks.append((why, (panel.x + 24, y)))
        y += why.get_height() + 8
        for line in _wrap_text(self._small_font, match.explanation, content_w):
            img = self._small_font.render(line, True, TEXT_MUTED)
            blocks.append((img, (panel.x + 24, y)))
            y += img.get_height() + 4
        panel.h = y - panel.y + 16
        pygame.draw.rect(surface, CARD_BG, panel, border_radius=16)
        for img, pos in blocks:
            surface.blit(img, pos)

        y = panel.bottom + 16
        sign = "-" if self._show_answers else "+"
        toggle = pygame.Rect(40, y, w - 80, 44)
        pygame.draw.rect(surface, CARD_BG, toggle, border_radius=12)
        label = self._body_font.render(f"View Your Answers ({len(snap.answers)})", True, TEXT_MAIN)
        surface.blit(label, (toggle.x + 20, toggle.centery - label.get_height() // 2))
        sign_img = self._body_font.render(sign, True, BRAND_BLUE)
        surface.blit(sign_img, (toggle.right - 32, toggle.centery - sign_img.get_height() // 2))
        self._button_hitboxes["answers"] = toggle
        y = toggle.bottom + 8

        buttons_top = h - 120
        if self._show_answers:
            for i, answer in enumerate(snap.answers):
                text = f"{i + 1}. {answer.category}: {answer.question_text} -> {answer.choice}"
                img = self._small_font.render(text, True, TEXT_MAIN)
                if y + img.get_height() > buttons_top - 8:
                    more = self._small_font.render(f"... {len(snap.answers) - i} more", True, TEXT_MUTED)
                    surface.blit(more, (60, y))
                    break
                surface.blit(img, (60, y))
                y += img.get_height() + 2

        half = (w - 80 - 16) // 2
        restart = pygame.Rect(40, buttons_top, half, 52)
        share = pygame.Rect(restart.right + 16, buttons_top, half, 52)
        pygame.draw.rect(surface, CARD_BG, restart, border_radius=10)
        pygame.draw.rect(surface, BRAND_BLUE, restart, 2, border_radius=10)
        pygame.draw.rect(surface, BRAND_BLUE, share, border_radius=10)
        r_img = self._body_font.render("Try Again (R)", True, BRAND_BLUE)
        s_img = self._body_font.render("Share Result (S)", True, (255, 255, 255))
        surface.blit(r_img, r_img.get_rect(center=restart.center))
        surface.blit(s_img, s_img.get_rect(center=share.center))
        self._button_hitboxes["restart"] = restart
        self._button_hitboxes["share"] = share

        if self._share_status is not None:
            color = YES_GREEN if self._share_status.ok else NO_RED
            msg = self._small_font.render(self._share_status.message, True, color)
            surface.blit(msg, msg.get_rect(midtop=(w // 2, restart.bottom + 12)))


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    config: AppConfig | None = None,
    clock: Clock | None = None,
    fetcher_factory: Callable[[str], LibraryFetcher] | None = None,
) -> int:
    cfg = config or AppConfig.from_env()
    setup_logging(cfg.log_level, cfg.log_file)

    pygame.init()
    pygame.display.set_caption("Where to Move Game")
    surface = pygame.display.set_mode(WINDOW_SIZE)

    frame_clock = pygame.time.Clock()
    game_clock = clock or RealClock()
    registry = default_registry()

    app = App(surface=surface)
    session = GameSession(QUESTIONS, clock=game_clock, loading_duration_s=cfg.loading_duration_s)
    app.push(
        QuizScreen(
            app,
            session=session,
            config=cfg,
            clock=game_clock,
            fetcher_factory=fetcher_factory or StaticMapsFetcher,
            registry=registry,
        )
    )

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        app.close()
        registry.close()
        pygame.quit()

    return 0
