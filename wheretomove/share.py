from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import pygame

logger = logging.getLogger(__name__)

SHARE_TITLE = "Where to Move Game"
COPIED_MESSAGE = "Result copied to clipboard!"
FAILED_MESSAGE = "Unable to copy to clipboard"


class ShareBackend(Protocol):
    name: str

    def share(self, *, title: str, text: str) -> None:
        """Deliver the text or raise on failure."""
        ...


@dataclass(frozen=True, slots=True)
class ShareOutcome:
    ok: bool
    message: str
    backend: str | None = None


class PygameClipboardBackend:
    """Clipboard copy through pygame.scrap (needs an initialised display)."""

    name = "clipboard"

    def share(self, *, title: str, text: str) -> None:
        if not pygame.display.get_init() or pygame.display.get_surface() is None:
            raise pygame.error("clipboard needs an open display")
        if not pygame.scrap.get_init():
            pygame.scrap.init()
        pygame.scrap.put_text(text)


def share_result(text: str, backends: Sequence[ShareBackend], *, title: str = SHARE_TITLE) -> ShareOutcome:
    """Try each backend in order; failures stay local and become a user message."""

    for backend in backends:
        try:
            backend.share(title=title, text=text)
        except Exception:
            logger.warning("Share backend %r failed", backend.name, exc_info=True)
            continue
        logger.info("Result shared via %s", backend.name)
        return ShareOutcome(ok=True, message=COPIED_MESSAGE, backend=backend.name)
    return ShareOutcome(ok=False, message=FAILED_MESSAGE)
