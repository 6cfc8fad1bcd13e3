"""
models.py
Value objects passed between the caller and the capture/send pipeline.
All of them are immutable so a snapshot can be swapped in with a single
attribute assignment.
"""

from typing import NamedTuple, Optional, Tuple


class Color(NamedTuple):
    r: int
    g: int
    b: int

    def distance(self, other: "Color") -> int:
        """Manhattan distance in channel space."""
        return abs(self.r - other.r) + abs(self.g - other.g) + abs(self.b - other.b)

    def __str__(self):
        return f"{self.r},{self.g},{self.b}"


BLACK = Color(0, 0, 0)
RED = Color(255, 0, 0)


class CaptureRegion(NamedTuple):
    """Square of `size` pixels centred on (x, y) in screen coordinates."""

    x: int
    y: int
    size: int = 10

    def rect(self) -> Tuple[int, int, int, int]:
        """(left, top, width, height) before clipping; never smaller than 1x1."""
        left = self.x - self.size // 2
        top = self.y - self.size // 2
        width = height = self.size
        if width <= 0 or height <= 0:
            width, height = 1, 1
        return left, top, width, height


class CorrectionParams(NamedTuple):
    gamma: float = 1.0
    saturation: float = 1.0
    red: float = 1.0
    green: float = 1.0
    blue: float = 1.0

    @property
    def gains(self) -> Tuple[float, float, float]:
        return self.red, self.green, self.blue


class DeviceTarget(NamedTuple):
    host: str
    port: int = 38899
    brightness: int = 100


def intersect(rect, bounds) -> Optional[Tuple[int, int, int, int]]:
    """Intersect two (left, top, width, height) rectangles, None if empty."""
    left = max(rect[0], bounds[0])
    top = max(rect[1], bounds[1])
    right = min(rect[0] + rect[2], bounds[0] + bounds[2])
    bottom = min(rect[1] + rect[3], bounds[1] + bounds[3])
    if right <= left or bottom <= top:
        return None
    return left, top, right - left, bottom - top
