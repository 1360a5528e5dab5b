"""
Base classes and interfaces for keypoint detection, description and matching.

This module defines the abstract base classes that all strategy providers
must implement. Every provider reports the elapsed wall time of its work in
milliseconds alongside its result.
"""

import cv2
import numpy as np
import time
from abc import ABC, abstractmethod
from typing import List, Tuple

from .core_data_structures import MatchPolicy
from .exceptions import ConfigurationError


def create_feature2d(name: str, **kwargs):
    """
    Construct an OpenCV Feature2D algorithm by name

    cv2.<name>_create is preferred; cv2.xfeatures2d is searched next. The
    contrib build keeps BRIEF and FREAK there, and OpenCV 5 moved BRISK and
    AKAZE there as well.

    Args:
        name: Algorithm name, e.g. 'BRISK' or 'BriefDescriptorExtractor'
        **kwargs: Parameters of the OpenCV factory

    Raises:
        ConfigurationError: If the installed OpenCV build has no such algorithm
    """
    factory_name = f"{name}_create"
    for namespace in (cv2, getattr(cv2, 'xfeatures2d', None)):
        factory = getattr(namespace, factory_name, None)
        if factory is not None:
            return factory(**kwargs)
    raise ConfigurationError(
        f"OpenCV build provides no {factory_name} (opencv-contrib-python is required)"
    )


class BaseKeypointDetector(ABC):
    """Abstract base class for all keypoint detectors"""

    def __init__(self, **kwargs):
        self.name = self.__class__.__name__

    @abstractmethod
    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        """Locate keypoints in a grayscale image"""
        pass

    def detect(self, image: np.ndarray) -> Tuple[List[cv2.KeyPoint], float]:
        """
        Detect keypoints in an image

        Args:
            image: Input image (grayscale or BGR)

        Returns:
            Tuple of (keypoints, elapsed time in ms)
        """
        start_time = time.time()
        gray = self.preprocess_image(image)
        keypoints = list(self._detect(gray))
        return keypoints, (time.time() - start_time) * 1000.0

    def preprocess_image(self, image: np.ndarray) -> np.ndarray:
        """
        Preprocess image for keypoint detection

        Args:
            image: Input image

        Returns:
            Grayscale image
        """
        if len(image.shape) == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image


class BaseDescriptorExtractor(ABC):
    """Abstract base class for descriptor extractors"""

    def __init__(self, **kwargs):
        self.name = self.__class__.__name__

    @abstractmethod
    def describe(self, image: np.ndarray,
                 keypoints: List[cv2.KeyPoint]) -> Tuple[List[cv2.KeyPoint], np.ndarray, float]:
        """
        Compute one descriptor row per keypoint

        Args:
            image: Grayscale image the keypoints were detected in
            keypoints: Keypoints to describe

        Returns:
            Tuple of (described keypoints, descriptor matrix, elapsed time in ms).
            Keypoints the algorithm cannot describe are dropped, so row i of
            the matrix always belongs to keypoint i of the returned list.
        """
        pass


class BaseDescriptorMatcher(ABC):
    """Abstract base class for descriptor matchers"""

    @abstractmethod
    def match(self, descriptors_prev: np.ndarray, descriptors_curr: np.ndarray,
              policy: MatchPolicy) -> Tuple[List[cv2.DMatch], float]:
        """
        Match descriptors of the previous frame against the current frame

        Args:
            descriptors_prev: Descriptors of the previous frame (query set)
            descriptors_curr: Descriptors of the current frame (train set)
            policy: Distance family, backend and selection strategy

        Returns:
            Tuple of (matches, elapsed time in ms)
        """
        pass

    def validate_descriptors(self, descriptors_prev: np.ndarray, descriptors_curr: np.ndarray) -> bool:
        """True if both descriptor sets contain at least one row"""
        return (descriptors_prev is not None and descriptors_curr is not None and
                len(descriptors_prev) > 0 and len(descriptors_curr) > 0)
