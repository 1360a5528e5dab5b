"""
Shared fixtures and fake strategy providers.

The fakes let the orchestrator be exercised without image files: the image
source hands out blank frames, the detector replays scripted keypoints and
the describer/matcher produce deterministic, correctly shaped results.
"""

import os
import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

project_root = Path(__file__).parent.parent  # Go up from tests/ to project root
sys.path.insert(0, str(project_root))
os.environ.setdefault("MPLBACKEND", "Agg")

from FeatureTracking.base_classes import (
    BaseKeypointDetector, BaseDescriptorExtractor, BaseDescriptorMatcher
)
from FeatureTracking.exceptions import InputError

# default ROI of the configuration: x=535, y=180, w=180, h=150
INSIDE_ROI = [(540.0, 200.0, 2.0), (600.0, 250.0, 4.0), (700.0, 320.0, 6.0)]
OUTSIDE_ROI = [(10.0, 10.0, 3.0), (1000.0, 300.0, 3.0)]


def make_keypoints(points):
    return [cv2.KeyPoint(x, y, size) for x, y, size in points]


class FakeImageSource:
    """Blank frames of KITTI size; indices in missing raise InputError"""

    def __init__(self, num_frames=10, missing=(), shape=(375, 1242)):
        self.num_frames = num_frames
        self.missing = set(missing)
        self.shape = shape
        self.loaded = []

    def load(self, frame_index):
        if frame_index in self.missing or not 0 <= frame_index < self.num_frames:
            raise InputError(f"Frame {frame_index}: not available", frame_index=frame_index)
        self.loaded.append(frame_index)
        return np.zeros(self.shape, dtype=np.uint8)


class FakeDetector(BaseKeypointDetector):
    """Replays one scripted keypoint list per call (the last one repeats)"""

    def __init__(self, script=None):
        super().__init__()
        self.script = script or [INSIDE_ROI + OUTSIDE_ROI]
        self.calls = 0

    def _detect(self, gray):
        points = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        return make_keypoints(points)


class FakeDescriber(BaseDescriptorExtractor):
    """32-byte binary descriptors; optionally drops the last keypoint"""

    def __init__(self, drop_last=False):
        super().__init__()
        self.drop_last = drop_last
        self.calls = 0

    def describe(self, image, keypoints):
        self.calls += 1
        keypoints = list(keypoints)
        if self.drop_last and keypoints:
            keypoints = keypoints[:-1]
        descriptors = np.zeros((len(keypoints), 32), dtype=np.uint8)
        for i in range(len(keypoints)):
            descriptors[i, :] = i
        return keypoints, descriptors, 0.5


class FakeMatcher(BaseDescriptorMatcher):
    """Pairs row i with row i; remembers every call"""

    def __init__(self):
        self.calls = []

    def match(self, descriptors_prev, descriptors_curr, policy):
        self.calls.append((descriptors_prev, descriptors_curr, policy))
        n = min(len(descriptors_prev), len(descriptors_curr))
        return [cv2.DMatch(i, i, 0.0) for i in range(n)], 0.25


@pytest.fixture
def image_source():
    return FakeImageSource()


@pytest.fixture
def providers():
    return {
        'detector': FakeDetector(),
        'describer': FakeDescriber(),
        'matcher': FakeMatcher(),
    }


@pytest.fixture
def quiet_config():
    """Configuration dictionary without console reports or memory sampling"""
    return {
        'detector_type': 'FAST',
        'descriptor_type': 'BRISK',
        'print_per_frame_report': False,
        'print_summary_report': False,
        'sample_memory': False,
    }


@pytest.fixture
def textured_image():
    """Deterministic grayscale image with plenty of corners and blobs"""
    rng = np.random.RandomState(42)
    image = np.zeros((375, 1242), dtype=np.uint8)
    for _ in range(120):
        x, y = int(rng.randint(0, 1200)), int(rng.randint(0, 340))
        w, h = int(rng.randint(8, 40)), int(rng.randint(8, 30))
        cv2.rectangle(image, (x, y), (x + w, y + h), int(rng.randint(60, 255)), -1)
    for _ in range(60):
        center = (int(rng.randint(0, 1242)), int(rng.randint(0, 375)))
        cv2.circle(image, center, int(rng.randint(4, 15)), int(rng.randint(60, 255)), -1)
    return cv2.GaussianBlur(image, (3, 3), 0)
