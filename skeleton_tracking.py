"""
Skeleton tracking helpers.

Maps the right hand joint of the tracked body from skeleton space
into color frame pixels.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from kinect_camera import HAND_RIGHT, TRACKED, Skeleton

STALE_POLICIES = ("clear", "retain")


@dataclass(frozen=True)
class TrackedBodyState:
    """Body carried from one frame to the next."""
    active_skeleton: Optional[Skeleton] = None


@dataclass(frozen=True)
class HandPoint:
    x: float
    y: float


def scale(max_pixel: int, max_skeleton: float, position: float) -> float:
    """
    Scale a joint coordinate from [-max_skeleton, max_skeleton] to [0, max_pixel].

    Results outside the frame are clamped to the nearest edge.
    """
    value = ((max_pixel / max_skeleton) / 2) * position + (max_pixel / 2)

    if value > max_pixel:
        return float(max_pixel)
    if value < 0:
        return 0.0

    return value


def select_active_skeleton(skeletons: Iterable[Optional[Skeleton]],
                           state: TrackedBodyState,
                           stale_policy: str = "clear") -> TrackedBodyState:
    """
    Pick the body to follow in this frame.

    The last skeleton in TRACKED state wins. When none is tracked,
    stale_policy decides: "clear" forgets the previous body, "retain"
    hands back the previous state untouched.
    """
    if stale_policy not in STALE_POLICIES:
        raise ValueError(f"Unknown stale skeleton policy: {stale_policy!r}")

    active = None
    for skeleton in skeletons:
        if skeleton is not None and skeleton.tracking_state == TRACKED:
            active = skeleton

    if active is not None:
        return TrackedBodyState(active)

    if stale_policy == "retain":
        return state

    return TrackedBodyState()


def locate_right_hand(state: TrackedBodyState,
                      frame_size: Tuple[int, int],
                      max_skeleton: float = 1.0,
                      legacy_zero_sentinel: bool = False) -> Optional[HandPoint]:
    """
    Returns:
        HandPoint in pixel coordinates, or None when no hand was found.
    """
    skeleton = state.active_skeleton
    if skeleton is None or skeleton.tracking_state != TRACKED:
        return None

    joint = skeleton.joints.get(HAND_RIGHT)
    if joint is None:
        return None

    width, height = frame_size
    x = scale(width, max_skeleton, joint.x)
    # Skeleton Y points up, image Y points down
    y = scale(height, max_skeleton, -joint.y)

    if legacy_zero_sentinel and (x == 0 or y == 0):
        return None

    return HandPoint(x, y)
