"""
Traditional keypoint detectors (Shi-Tomasi, Harris, FAST, BRISK, ORB, AKAZE, SIFT).

This module contains the classical OpenCV keypoint detectors used by the
tracking pipeline. Detectors only locate keypoints; descriptors are computed
separately by descriptor_extractors so any compatible pair can be evaluated.
"""

import cv2
import numpy as np
from typing import List, Union

from .base_classes import BaseKeypointDetector, create_feature2d
from .core_data_structures import DetectorType


class ShiTomasiDetector(BaseKeypointDetector):
    """Shi-Tomasi (good features to track) corner detector"""

    def __init__(self, block_size: int = 4, max_overlap: float = 0.0,
                 quality_level: float = 0.01, k: float = 0.04):
        """
        Initialize Shi-Tomasi corner detector

        Args:
            block_size: Size of averaging block; also used as keypoint size
            max_overlap: Maximum permissible overlap between two features in %
            quality_level: Minimal accepted quality of image corners
            k: Free parameter of the Harris detector
        """
        super().__init__()
        self.block_size = block_size
        self.min_distance = (1.0 - max_overlap) * block_size
        self.quality_level = quality_level
        self.k = k

    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        max_corners = int(gray.shape[0] * gray.shape[1] / max(1.0, self.min_distance))

        corners = cv2.goodFeaturesToTrack(
            gray,
            maxCorners=max_corners,
            qualityLevel=self.quality_level,
            minDistance=self.min_distance,
            blockSize=self.block_size,
            useHarrisDetector=False,
            k=self.k
        )

        keypoints = []
        if corners is not None:
            for corner in corners:
                x, y = corner.ravel()
                keypoints.append(cv2.KeyPoint(float(x), float(y), float(self.block_size)))
        return keypoints


class HarrisCornerDetector(BaseKeypointDetector):
    """Harris corner detector with response threshold and non-maximum suppression"""

    def __init__(self, block_size: int = 2, aperture_size: int = 3,
                 k: float = 0.04, min_response: float = 100, max_overlap: float = 0.0):
        """
        Initialize Harris corner detector

        Args:
            block_size: Neighbourhood size considered for every pixel
            aperture_size: Sobel aperture; keypoint size is 2 * aperture_size
            k: Harris detector free parameter
            min_response: Minimum normalized (0..255) corner response
            max_overlap: Maximum permissible overlap between keypoints during NMS
        """
        super().__init__()
        self.block_size = block_size
        self.aperture_size = aperture_size
        self.k = k
        self.min_response = min_response
        self.max_overlap = max_overlap

    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        response = cv2.cornerHarris(gray, self.block_size, self.aperture_size, self.k)
        response = cv2.normalize(response, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_32F)

        ys, xs = np.nonzero(response > self.min_response)
        if len(xs) == 0:
            return []

        strengths = response[ys, xs]
        order = np.argsort(-strengths, kind='stable')

        # Strongest first; a candidate closer than the suppression radius to an
        # accepted corner is dropped.
        size = 2.0 * self.aperture_size
        radius = (1.0 - self.max_overlap) * size
        accepted = []
        accepted_pts = np.empty((0, 2), dtype=np.float32)
        for idx in order:
            pt = np.array([xs[idx], ys[idx]], dtype=np.float32)
            if len(accepted_pts) and np.min(np.linalg.norm(accepted_pts - pt, axis=1)) < radius:
                continue
            accepted.append(cv2.KeyPoint(float(pt[0]), float(pt[1]), size, -1,
                                         float(strengths[idx])))
            accepted_pts = np.vstack([accepted_pts, pt])
        return accepted


class FASTDetector(BaseKeypointDetector):
    """FAST corner detector"""

    def __init__(self, threshold: int = 30, nonmax_suppression: bool = True,
                 detector_type: int = cv2.FAST_FEATURE_DETECTOR_TYPE_9_16):
        super().__init__()
        self.detector = create_feature2d(
            'FastFeatureDetector',
            threshold=threshold,
            nonmaxSuppression=nonmax_suppression,
            type=detector_type
        )

    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        return self.detector.detect(gray, None)


class BRISKDetector(BaseKeypointDetector):
    """BRISK (Binary Robust Invariant Scalable Keypoints) detector"""

    def __init__(self, threshold: int = 30, octaves: int = 3, pattern_scale: float = 1.0):
        """
        Initialize BRISK detector

        Args:
            threshold: AGAST detection threshold
            octaves: Detection octaves
            pattern_scale: Apply this scale to the pattern used for sampling
        """
        super().__init__()
        self.detector = create_feature2d(
            'BRISK',
            thresh=threshold,
            octaves=octaves,
            patternScale=pattern_scale
        )

    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        return self.detector.detect(gray, None)


class ORBDetector(BaseKeypointDetector):
    """ORB (Oriented FAST and Rotated BRIEF) detector"""

    def __init__(self, max_features: int = 500, scale_factor: float = 1.2,
                 n_levels: int = 8, edge_threshold: int = 31):
        super().__init__()
        self.detector = create_feature2d(
            'ORB',
            nfeatures=max_features,
            scaleFactor=scale_factor,
            nlevels=n_levels,
            edgeThreshold=edge_threshold
        )

    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        return self.detector.detect(gray, None)


class AKAZEDetector(BaseKeypointDetector):
    """AKAZE (Accelerated-KAZE) detector"""

    def __init__(self, threshold: float = 0.001, n_octaves: int = 4):
        super().__init__()
        self.detector = create_feature2d('AKAZE', threshold=threshold, nOctaves=n_octaves)

    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        return self.detector.detect(gray, None)


class SIFTDetector(BaseKeypointDetector):
    """SIFT (Scale-Invariant Feature Transform) detector"""

    def __init__(self, max_features: int = 0, contrast_threshold: float = 0.04,
                 edge_threshold: float = 10, sigma: float = 1.6):
        super().__init__()
        self.detector = create_feature2d(
            'SIFT',
            nfeatures=max_features,
            contrastThreshold=contrast_threshold,
            edgeThreshold=edge_threshold,
            sigma=sigma
        )

    def _detect(self, gray: np.ndarray) -> List[cv2.KeyPoint]:
        return self.detector.detect(gray, None)


DETECTOR_MAP = {
    DetectorType.SHITOMASI: ShiTomasiDetector,
    DetectorType.HARRIS: HarrisCornerDetector,
    DetectorType.FAST: FASTDetector,
    DetectorType.BRISK: BRISKDetector,
    DetectorType.ORB: ORBDetector,
    DetectorType.AKAZE: AKAZEDetector,
    DetectorType.SIFT: SIFTDetector,
}


def create_detector(detector_type: Union[str, DetectorType], **kwargs) -> BaseKeypointDetector:
    """
    Factory function to create keypoint detectors

    Args:
        detector_type: Detector identifier (e.g. 'FAST', DetectorType.SIFT)
        **kwargs: Additional parameters for the detector

    Returns:
        Initialized detector instance

    Raises:
        ConfigurationError: If detector_type is not supported
    """
    detector_type = DetectorType.from_name(detector_type)
    return DETECTOR_MAP[detector_type](**kwargs)


def limit_keypoints(keypoints: List[cv2.KeyPoint], max_keypoints: int,
                    detector_type: Union[str, DetectorType]) -> List[cv2.KeyPoint]:
    """
    Keep at most max_keypoints keypoints

    Shi-Tomasi corners carry no response but are returned in descending
    quality order, so the first ones are kept; every other detector keeps the
    strongest responses.
    """
    if len(keypoints) <= max_keypoints:
        return list(keypoints)
    if DetectorType.from_name(detector_type) is DetectorType.SHITOMASI:
        return list(keypoints[:max_keypoints])
    return sorted(keypoints, key=lambda kp: kp.response, reverse=True)[:max_keypoints]
