from __future__ import annotations

import pytest

from wheretomove.swipe import NO, YES, card_rotation_deg, left_opacity, right_opacity, swipe_choice


@pytest.mark.parametrize(
    "x,left,right",
    [
        (-200.0, 1.0, 0.0),
        (-100.0, 1.0, 0.0),
        (-50.0, 0.5, 0.0),
        (0.0, 0.0, 0.0),
        (25.0, 0.0, 0.25),
        (100.0, 0.0, 1.0),
        (300.0, 0.0, 1.0),
    ],
)
def test_indicator_opacity_mapping(x: float, left: float, right: float) -> None:
    assert left_opacity(x) == pytest.approx(left)
    assert right_opacity(x) == pytest.approx(right)


def test_swipe_choice_threshold() -> None:
    assert swipe_choice(100.0) == YES
    assert swipe_choice(250.0) == YES
    assert swipe_choice(-100.0) == NO
    assert swipe_choice(99.9) is None
    assert swipe_choice(-40.0) is None
    assert swipe_choice(30.0, threshold=20.0) == YES


def test_swipe_choice_rejects_non_positive_threshold() -> None:
    with pytest.raises(ValueError):
        swipe_choice(10.0, threshold=0.0)


def test_card_rotation_is_clamped_and_signed() -> None:
    assert card_rotation_deg(0.0) == pytest.approx(0.0)
    assert card_rotation_deg(100.0) == pytest.approx(7.5)
    assert card_rotation_deg(-1000.0) == pytest.approx(-15.0)
    assert card_rotation_deg(1000.0) == pytest.approx(15.0)
