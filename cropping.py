"""
Crop window placement around the hand.
"""

from typing import NamedTuple

import numpy as np

from skeleton_tracking import HandPoint

BOUNDS_POLICIES = ("clamp", "reject")


class CropOutOfBoundsError(Exception):
    """The crop window cannot be placed inside the color frame."""


class CropRect(NamedTuple):
    left: int
    top: int
    width: int
    height: int

    def inside(self, frame_width: int, frame_height: int) -> bool:
        return (self.left >= 0 and self.top >= 0
                and self.left + self.width <= frame_width
                and self.top + self.height <= frame_height)


def compute_crop_rect(point: HandPoint, width: int, height: int,
                      vertical_bias_divisor: float = 1.5) -> CropRect:
    """
    Window centred horizontally on the hand. Vertically the hand sits
    height / vertical_bias_divisor below the top edge.
    """
    left = int(point.x) - width // 2
    top = int(point.y) - int(round(height / vertical_bias_divisor))
    return CropRect(left, top, width, height)


def apply_bounds_policy(rect: CropRect, frame_width: int, frame_height: int,
                        policy: str = "clamp") -> CropRect:
    """
    "reject" raises CropOutOfBoundsError for any rect leaving the frame.
    "clamp" slides the rect back inside, keeping its size.
    """
    if policy not in BOUNDS_POLICIES:
        raise ValueError(f"Unknown crop bounds policy: {policy!r}")

    if rect.width > frame_width or rect.height > frame_height:
        raise CropOutOfBoundsError(
            f"Crop {rect.width}x{rect.height} larger than frame {frame_width}x{frame_height}"
        )

    if rect.inside(frame_width, frame_height):
        return rect

    if policy == "reject":
        raise CropOutOfBoundsError(f"Crop {rect} leaves frame {frame_width}x{frame_height}")

    left = min(max(rect.left, 0), frame_width - rect.width)
    top = min(max(rect.top, 0), frame_height - rect.height)
    return CropRect(left, top, rect.width, rect.height)


def crop_image(image: np.ndarray, rect: CropRect) -> np.ndarray:
    """Copy rect out of image. The rect must lie fully inside the image."""
    frame_height, frame_width = image.shape[:2]
    if not rect.inside(frame_width, frame_height):
        raise CropOutOfBoundsError(f"Crop {rect} leaves frame {frame_width}x{frame_height}")

    return image[rect.top:rect.top + rect.height, rect.left:rect.left + rect.width].copy()
