from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .clock import Clock, OneShotTimer
from .questions import Question

if TYPE_CHECKING:
    from .matching import MatchGenerator, MatchRecord

logger = logging.getLogger(__name__)

LOADING_DURATION_S = 2.0


class InvariantViolation(RuntimeError):
    """Raised when an operation is invoked outside its valid phase."""


class Phase(str, Enum):
    QUESTIONING = "questioning"
    LOADING = "loading"
    RESULTS = "results"


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    question_id: int
    category: str
    question_text: str
    choice: str


@dataclass(frozen=True, slots=True)
class GameSnapshot:
    """View model for the UI (pure data)."""

    phase: Phase
    answers: tuple[AnswerRecord, ...]
    current_index: int
    total_questions: int
    current_question: Question | None
    loading_remaining_s: float | None


class GameSession:
    """Phase controller: questioning -> loading -> results, restartable.

    - Answers are append-only and cleared only by restart().
    - The loading -> results transition is driven by a one-shot timer polled
      from update(); time comes entirely from the injected Clock.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        *,
        clock: Clock,
        loading_duration_s: float = LOADING_DURATION_S,
    ) -> None:
        if len(questions) == 0:
            raise ValueError("questions must not be empty")
        if loading_duration_s <= 0.0:
            raise ValueError("loading_duration_s must be > 0")

        self._questions = tuple(questions)
        self._clock = clock
        self._loading_duration_s = float(loading_duration_s)

        self._phase = Phase.QUESTIONING
        self._answers: list[AnswerRecord] = []
        self._current_index = 0
        self._loading_timer: OneShotTimer | None = None

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def answers(self) -> tuple[AnswerRecord, ...]:
        return tuple(self._answers)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def loading_duration_s(self) -> float:
        return self._loading_duration_s

    def current_question(self) -> Question | None:
        if self._current_index >= len(self._questions):
            return None
        return self._questions[self._current_index]

    def submit_answer(self, choice: str) -> None:
        if self._phase is not Phase.QUESTIONING:
            raise InvariantViolation(f"cannot submit an answer while {self._phase.value}")
        question = self.current_question()
        if question is None:
            raise InvariantViolation("no current question to answer")

        self._answers.append(
            AnswerRecord(
                question_id=question.id,
                category=question.category,
                question_text=question.text,
                choice=str(choice),
            )
        )
        self._current_index += 1

        if self._current_index == len(self._questions):
            self._enter_loading()

    def complete_loading(self) -> bool:
        """Move loading -> results. A no-op (returns False) in any other phase."""

        if self._phase is not Phase.LOADING:
            return False
        self._cancel_timer()
        self._phase = Phase.RESULTS
        logger.info("Loading complete, showing results for %d answers", len(self._answers))
        return True

    def restart(self) -> None:
        self._cancel_timer()
        self._phase = Phase.QUESTIONING
        self._answers.clear()
        self._current_index = 0
        logger.info("Session restarted")

    def update(self) -> None:
        if self._loading_timer is not None:
            self._loading_timer.poll()

    def teardown(self) -> None:
        """Cancel any pending auto-transition; the session is not mutated afterwards."""

        self._cancel_timer()

    def loading_remaining_s(self) -> float | None:
        if self._phase is not Phase.LOADING or self._loading_timer is None:
            return None
        return self._loading_timer.remaining_s()

    def match(self, generator: MatchGenerator) -> MatchRecord:
        if self._phase is not Phase.RESULTS:
            raise InvariantViolation(f"no match result while {self._phase.value}")
        return generator.generate(self.answers)

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            phase=self._phase,
            answers=self.answers,
            current_index=self._current_index,
            total_questions=len(self._questions),
            current_question=self.current_question(),
            loading_remaining_s=self.loading_remaining_s(),
        )

    def _enter_loading(self) -> None:
        self._phase = Phase.LOADING
        self._cancel_timer()
        self._loading_timer = OneShotTimer(
            clock=self._clock,
            duration_s=self._loading_duration_s,
            callback=self.complete_loading,
        )
        logger.info("All %d questions answered, loading results", len(self._questions))

    def _cancel_timer(self) -> None:
        if self._loading_timer is not None:
            self._loading_timer.cancel()
            self._loading_timer = None
