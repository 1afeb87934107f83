from __future__ import annotations

from dataclasses import dataclass

from wheretomove.game_state import GameSession, Phase
from wheretomove.questions import QUESTIONS


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _answer_all(session: GameSession, clock: FakeClock, choice: str = "Yes") -> None:
    for _ in range(session.total_questions):
        clock.advance(0.5)
        session.update()
        session.submit_answer(choice)


def test_headless_sim_twenty_answers_then_timer_shows_results() -> None:
    clock = FakeClock()
    session = GameSession(QUESTIONS, clock=clock)

    _answer_all(session, clock)
    assert session.phase is Phase.LOADING

    clock.advance(1.5)
    session.update()
    assert session.phase is Phase.LOADING

    clock.advance(0.5)
    session.update()
    assert session.phase is Phase.RESULTS
    assert len(session.answers) == 20
    assert [a.question_id for a in session.answers] == [q.id for q in QUESTIONS]
    assert all(a.choice == "Yes" for a in session.answers)


def test_restart_mid_loading_cancels_auto_transition() -> None:
    clock = FakeClock()
    session = GameSession(QUESTIONS, clock=clock)
    _answer_all(session, clock)

    clock.advance(1.0)
    session.update()
    session.restart()

    clock.advance(5.0)
    session.update()
    assert session.phase is Phase.QUESTIONING
    assert session.complete_loading() is False
    assert session.phase is Phase.QUESTIONING
    assert session.answers == ()


def test_teardown_cancels_pending_timer() -> None:
    clock = FakeClock()
    session = GameSession(QUESTIONS, clock=clock)
    _answer_all(session, clock)

    session.teardown()
    clock.advance(10.0)
    session.update()

    assert session.phase is Phase.LOADING
    assert session.loading_remaining_s() is None


def test_second_round_after_restart_gets_fresh_timer() -> None:
    clock = FakeClock()
    session = GameSession(QUESTIONS, clock=clock, loading_duration_s=2.0)

    _answer_all(session, clock, "No")
    clock.advance(2.0)
    session.update()
    assert session.phase is Phase.RESULTS

    session.restart()
    _answer_all(session, clock, "Yes")
    assert session.phase is Phase.LOADING

    clock.advance(1.0)
    session.update()
    assert session.phase is Phase.LOADING

    clock.advance(1.0)
    session.update()
    assert session.phase is Phase.RESULTS
    assert {a.choice for a in session.answers} == {"Yes"}


def test_manual_completion_then_timer_does_not_fire_again() -> None:
    clock = FakeClock()
    session = GameSession(QUESTIONS, clock=clock)
    _answer_all(session, clock)

    assert session.complete_loading() is True
    session.restart()
    clock.advance(3.0)
    session.update()

    assert session.phase is Phase.QUESTIONING
