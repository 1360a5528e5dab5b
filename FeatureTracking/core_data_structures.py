"""
Core data structures and enums for the feature tracking system.

This module contains the strategy enumerations, the per-frame record that
travels through the pipeline, and the matcher policy handed to matchers.
"""

import cv2
import numpy as np
from typing import List, Optional
from dataclasses import dataclass, field
from enum import Enum

from .exceptions import ConfigurationError


class _NamedEnum(Enum):
    """Enum that can be built from a case-insensitive identifier"""

    @classmethod
    def from_name(cls, name):
        if isinstance(name, cls):
            return name
        for member in cls:
            if str(name).upper() in (member.value.upper(), member.name):
                return member
        available = ', '.join(m.value for m in cls)
        raise ConfigurationError(f"Unknown {cls.__name__}: {name}. Available: {available}")


class DetectorType(_NamedEnum):
    """Enumeration of available keypoint detectors"""
    SHITOMASI = "SHITOMASI"
    HARRIS = "HARRIS"
    FAST = "FAST"
    BRISK = "BRISK"
    ORB = "ORB"
    AKAZE = "AKAZE"
    SIFT = "SIFT"


class DescriptorType(_NamedEnum):
    """Enumeration of available descriptor extractors"""
    BRISK = "BRISK"
    BRIEF = "BRIEF"
    ORB = "ORB"
    FREAK = "FREAK"
    AKAZE = "AKAZE"
    SIFT = "SIFT"


class DistanceFamily(_NamedEnum):
    """Numeric nature of a descriptor, which fixes the distance norm"""
    FLOAT = "DES_HOG"      # L2
    BINARY = "DES_BINARY"  # Hamming

    @property
    def norm_type(self) -> int:
        return cv2.NORM_L2 if self is DistanceFamily.FLOAT else cv2.NORM_HAMMING


class MatcherBackend(_NamedEnum):
    """Nearest-neighbour search backend"""
    BRUTE_FORCE = "MAT_BF"
    FLANN = "MAT_FLANN"


class SelectorType(_NamedEnum):
    """Match selection strategy"""
    NN = "SEL_NN"    # best match only
    KNN = "SEL_KNN"  # k=2 with distance-ratio test


class FrameState(Enum):
    """Processing state of a single frame"""
    LOADED = "loaded"
    DETECTED = "detected"
    FILTERED = "filtered"
    DESCRIBED = "described"
    MATCHED = "matched"
    SKIPPED_MATCH = "skipped_match"

    @property
    def is_terminal(self) -> bool:
        return self in (FrameState.MATCHED, FrameState.SKIPPED_MATCH)


@dataclass(frozen=True)
class MatchPolicy:
    """Matcher configuration selected from the descriptor identity"""
    distance_family: DistanceFamily
    matcher_backend: MatcherBackend = MatcherBackend.BRUTE_FORCE
    selector: SelectorType = SelectorType.KNN
    ratio_threshold: float = 0.8

    @property
    def norm_type(self) -> int:
        return self.distance_family.norm_type


@dataclass
class FrameRecord:
    """One processed camera frame and everything computed for it"""
    image: np.ndarray
    frame_index: int = 0
    keypoints: List[cv2.KeyPoint] = field(default_factory=list)
    descriptors: Optional[np.ndarray] = None
    matches: List[cv2.DMatch] = field(default_factory=list)
    state: FrameState = FrameState.LOADED

    def __len__(self):
        return len(self.keypoints)

    @property
    def is_described(self) -> bool:
        return self.descriptors is not None

    def __repr__(self) -> str:
        rows = self.descriptors.shape[0] if self.descriptors is not None else None
        return (f"FrameRecord(index={self.frame_index}, state={self.state.value}, "
                f"keypoints={len(self.keypoints)}, descriptor_rows={rows}, "
                f"matches={len(self.matches)})")


def empty_descriptors(family: DistanceFamily = DistanceFamily.BINARY) -> np.ndarray:
    """Zero-row descriptor matrix for frames without keypoints"""
    dtype = np.float32 if family is DistanceFamily.FLOAT else np.uint8
    return np.zeros((0, 0), dtype=dtype)

