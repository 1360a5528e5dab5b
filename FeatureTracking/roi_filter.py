"""
Region-of-interest filtering for keypoints.
"""

import cv2
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class RegionOfInterest:
    """Axis-aligned rectangle in image coordinates (same convention as cv::Rect)"""
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"ROI width and height must be positive, got ({self.width}, {self.height})"
            )

    @classmethod
    def from_sequence(cls, rect: Sequence[float]) -> 'RegionOfInterest':
        """Build from (x, y, width, height)"""
        if isinstance(rect, RegionOfInterest):
            return rect
        if rect is None or len(rect) != 4:
            raise ConfigurationError(f"ROI must be (x, y, width, height), got {rect!r}")
        return cls(*[float(v) for v in rect])

    def contains(self, point: Tuple[float, float]) -> bool:
        # left/top edges inclusive, right/bottom exclusive
        px, py = point
        return (self.x <= px < self.x + self.width and
                self.y <= py < self.y + self.height)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


def filter_keypoints(keypoints: List[cv2.KeyPoint], roi: RegionOfInterest) -> List[cv2.KeyPoint]:
    """
    Keep the keypoints whose position lies inside the ROI

    Args:
        keypoints: Detected keypoints
        roi: Rectangle to keep

    Returns:
        Ordered subsequence of keypoints inside roi
    """
    return [kp for kp in keypoints if roi.contains(kp.pt)]


class ROIFilter:
    """Togglable ROI policy applied by the pipeline after detection"""

    def __init__(self, roi: RegionOfInterest, enabled: bool = True):
        self.roi = RegionOfInterest.from_sequence(roi)
        self.enabled = enabled

    def apply(self, keypoints: List[cv2.KeyPoint]) -> List[cv2.KeyPoint]:
        if not self.enabled:
            return list(keypoints)
        return filter_keypoints(keypoints, self.roi)

    def __repr__(self):
        state = "enabled" if self.enabled else "disabled"
        return f"ROIFilter({self.roi.as_tuple()}, {state})"
