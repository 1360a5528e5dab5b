"""
Descriptor extractors (BRISK, BRIEF, ORB, FREAK, AKAZE, SIFT).

BRIEF and FREAK live in the OpenCV contrib modules (cv2.xfeatures2d).
"""

import cv2
import numpy as np
import time
from typing import List, Tuple, Union

from .base_classes import BaseDescriptorExtractor, create_feature2d
from .core_data_structures import DescriptorType, empty_descriptors
from .matcher_compatibility import descriptor_family


class OpenCVDescriptorExtractor(BaseDescriptorExtractor):
    """Wraps an OpenCV Feature2D object's compute()"""

    descriptor_type: DescriptorType = None

    def __init__(self, extractor, **kwargs):
        super().__init__(**kwargs)
        self.extractor = extractor
        self.family = descriptor_family(self.descriptor_type)

    def describe(self, image: np.ndarray,
                 keypoints: List[cv2.KeyPoint]) -> Tuple[List[cv2.KeyPoint], np.ndarray, float]:
        start_time = time.time()

        if not keypoints:
            return [], empty_descriptors(self.family), 0.0

        if len(image.shape) == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        described, descriptors = self.extractor.compute(image, list(keypoints))
        described = list(described) if described is not None else []
        if descriptors is None:
            descriptors = empty_descriptors(self.family)
            described = []

        return described, descriptors, (time.time() - start_time) * 1000.0


class BRISKExtractor(OpenCVDescriptorExtractor):
    descriptor_type = DescriptorType.BRISK

    def __init__(self, threshold: int = 30, octaves: int = 3, pattern_scale: float = 1.0):
        super().__init__(create_feature2d('BRISK', thresh=threshold, octaves=octaves, patternScale=pattern_scale))


class BRIEFExtractor(OpenCVDescriptorExtractor):
    descriptor_type = DescriptorType.BRIEF

    def __init__(self, descriptor_bytes: int = 32, use_orientation: bool = False):
        super().__init__(create_feature2d(
            'BriefDescriptorExtractor',
            bytes=descriptor_bytes, use_orientation=use_orientation))


class ORBExtractor(OpenCVDescriptorExtractor):
    descriptor_type = DescriptorType.ORB

    def __init__(self, max_features: int = 500, scale_factor: float = 1.2, n_levels: int = 8):
        super().__init__(create_feature2d('ORB', nfeatures=max_features, scaleFactor=scale_factor, nlevels=n_levels))


class FREAKExtractor(OpenCVDescriptorExtractor):
    descriptor_type = DescriptorType.FREAK

    def __init__(self, orientation_normalized: bool = True, scale_normalized: bool = True,
                 pattern_scale: float = 22.0, n_octaves: int = 4):
        super().__init__(create_feature2d(
            'FREAK',
            orientationNormalized=orientation_normalized,
            scaleNormalized=scale_normalized,
            patternScale=pattern_scale,
            nOctaves=n_octaves
        ))


class AKAZEExtractor(OpenCVDescriptorExtractor):
    """AKAZE descriptor; needs keypoints produced by the AKAZE detector"""
    descriptor_type = DescriptorType.AKAZE

    def __init__(self, threshold: float = 0.001, n_octaves: int = 4):
        super().__init__(create_feature2d('AKAZE', threshold=threshold, nOctaves=n_octaves))


class SIFTExtractor(OpenCVDescriptorExtractor):
    """SIFT gradient-histogram descriptor (float family)"""
    descriptor_type = DescriptorType.SIFT

    def __init__(self, sigma: float = 1.6):
        super().__init__(create_feature2d('SIFT', sigma=sigma))


EXTRACTOR_MAP = {
    DescriptorType.BRISK: BRISKExtractor,
    DescriptorType.BRIEF: BRIEFExtractor,
    DescriptorType.ORB: ORBExtractor,
    DescriptorType.FREAK: FREAKExtractor,
    DescriptorType.AKAZE: AKAZEExtractor,
    DescriptorType.SIFT: SIFTExtractor,
}


def create_descriptor_extractor(descriptor_type: Union[str, DescriptorType], **kwargs) -> BaseDescriptorExtractor:
    """
    Factory function to create descriptor extractors

    Raises:
        ConfigurationError: If descriptor_type is not supported
    """
    descriptor_type = DescriptorType.from_name(descriptor_type)
    return EXTRACTOR_MAP[descriptor_type](**kwargs)
