from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .game_state import AnswerRecord


@dataclass(frozen=True, slots=True)
class MatchRecord:
    place: str
    region: str
    explanation: str


class MatchGenerator(Protocol):
    """Turns the full ordered answer sequence into a single match."""

    def generate(self, answers: Sequence[AnswerRecord]) -> MatchRecord:
        ...


PLACEHOLDER_MATCH = MatchRecord(
    place="Tokyo",
    region="Japan",
    explanation=(
        "Based on your preferences, Tokyo is your perfect match! You appreciate a vibrant "
        "urban lifestyle with access to incredible food diversity, efficient public "
        "transportation, and a dynamic cultural scene. Tokyo offers the perfect blend of "
        "modern technology and traditional culture, with something happening at all hours. "
        "The city's walkability, world-class transit system, and endless dining options "
        "align perfectly with your desire for an energetic, connected lifestyle."
    ),
)


class PlaceholderMatchGenerator:
    """Fixed result regardless of answers, until a real matcher exists."""

    def generate(self, answers: Sequence[AnswerRecord]) -> MatchRecord:
        return PLACEHOLDER_MATCH


def format_share_text(match: MatchRecord) -> str:
    return (
        f"I just discovered my perfect city: {match.place}, {match.region}! "
        'Take the "Where to Move" quiz to find yours.'
    )
