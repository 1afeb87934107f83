from __future__ import annotations

SWIPE_THRESHOLD_PX = 100.0
INDICATOR_RANGE_PX = 100.0
MAX_TILT_DEG = 15.0
TILT_RANGE_PX = 200.0

YES = "Yes"
NO = "No"


def _interp_clamped(x: float, x0: float, x1: float, y0: float, y1: float) -> float:
    """Linear map of x from [x0, x1] onto [y0, y1], clamped to the output range."""

    if x0 == x1:
        return y1
    t = (float(x) - x0) / (x1 - x0)
    t = 0.0 if t <= 0.0 else 1.0 if t >= 1.0 else t
    return y0 + (y1 - y0) * t


def left_opacity(x: float) -> float:
    # Visible when dragging left.
    return _interp_clamped(x, -INDICATOR_RANGE_PX, 0.0, 1.0, 0.0)


def right_opacity(x: float) -> float:
    return _interp_clamped(x, 0.0, INDICATOR_RANGE_PX, 0.0, 1.0)


def card_rotation_deg(x: float) -> float:
    return _interp_clamped(x, -TILT_RANGE_PX, TILT_RANGE_PX, -MAX_TILT_DEG, MAX_TILT_DEG)


def swipe_choice(x: float, *, threshold: float = SWIPE_THRESHOLD_PX) -> str | None:
    """Decide the answer for a released drag; None means snap back."""

    if threshold <= 0.0:
        raise ValueError("threshold must be > 0")
    if x >= threshold:
        return YES
    if x <= -threshold:
        return NO
    return None
