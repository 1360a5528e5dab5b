"""
Strategy compatibility rules and matcher policy selection.

Two single-purpose strategies (SIFT, AKAZE) only work when the detector and
the descriptor are the same algorithm: AKAZE descriptors need the octave and
class information only AKAZE keypoints carry, and the SIFT detector/descriptor
pair is kept together for the float descriptor family. Every general-purpose
detector can be combined with every general-purpose descriptor.
"""

from typing import Dict, List, Tuple, Union

from .core_data_structures import (
    DetectorType, DescriptorType, DistanceFamily, MatcherBackend, SelectorType, MatchPolicy
)
from .exceptions import ConfigurationError


# detector -> the only descriptor it may be paired with
SINGLE_PURPOSE_PAIRS: Dict[DetectorType, DescriptorType] = {
    DetectorType.SIFT: DescriptorType.SIFT,
    DetectorType.AKAZE: DescriptorType.AKAZE,
}

GENERAL_PURPOSE_DETECTORS: List[DetectorType] = [
    DetectorType.SHITOMASI,
    DetectorType.HARRIS,
    DetectorType.FAST,
    DetectorType.BRISK,
    DetectorType.ORB,
]

GENERAL_PURPOSE_DESCRIPTORS: List[DescriptorType] = [
    DescriptorType.BRISK,
    DescriptorType.ORB,
    DescriptorType.BRIEF,
    DescriptorType.FREAK,
]

FLOAT_DESCRIPTORS = frozenset({DescriptorType.SIFT})

DEFAULT_RATIO_THRESHOLD = 0.8


def is_compatible(detector: Union[str, DetectorType], descriptor: Union[str, DescriptorType]) -> bool:
    """
    Check if a detector-descriptor combination is valid

    Raises:
        ConfigurationError: If either identifier is unknown
    """
    detector = DetectorType.from_name(detector)
    descriptor = DescriptorType.from_name(descriptor)

    if detector in SINGLE_PURPOSE_PAIRS:
        return SINGLE_PURPOSE_PAIRS[detector] == descriptor
    if descriptor in SINGLE_PURPOSE_PAIRS.values():
        return False
    return True


def validate_combination(detector: Union[str, DetectorType],
                         descriptor: Union[str, DescriptorType]) -> Tuple[DetectorType, DescriptorType]:
    """
    Resolve and validate a detector-descriptor configuration

    Returns:
        (DetectorType, DescriptorType)

    Raises:
        ConfigurationError: If an identifier is unknown or the pair is incompatible
    """
    detector = DetectorType.from_name(detector)
    descriptor = DescriptorType.from_name(descriptor)

    if not is_compatible(detector, descriptor):
        if detector in SINGLE_PURPOSE_PAIRS:
            partner = SINGLE_PURPOSE_PAIRS[detector].value
            raise ConfigurationError(
                f"{detector.value} detector only works with the {partner} descriptor, "
                f"got {descriptor.value}"
            )
        raise ConfigurationError(
            f"{descriptor.value} descriptor only works with the {descriptor.value} detector, "
            f"got {detector.value}"
        )
    return detector, descriptor


def descriptor_family(descriptor: Union[str, DescriptorType]) -> DistanceFamily:
    """Float (L2) family for gradient-histogram descriptors, binary (Hamming) otherwise"""
    descriptor = DescriptorType.from_name(descriptor)
    return DistanceFamily.FLOAT if descriptor in FLOAT_DESCRIPTORS else DistanceFamily.BINARY


def select_match_policy(descriptor: Union[str, DescriptorType],
                        matcher_backend: Union[str, MatcherBackend] = MatcherBackend.BRUTE_FORCE,
                        selector: Union[str, SelectorType] = SelectorType.KNN,
                        ratio_threshold: float = DEFAULT_RATIO_THRESHOLD) -> MatchPolicy:
    """
    Choose the matcher configuration for a descriptor

    Args:
        descriptor: Descriptor identifier
        matcher_backend: Search backend (brute force by default)
        selector: NN or KNN with ratio test (KNN by default)
        ratio_threshold: Distance-ratio threshold for the KNN selector

    Returns:
        MatchPolicy

    Raises:
        ConfigurationError: If any identifier is unknown or the ratio is outside (0, 1]
    """
    if not 0.0 < ratio_threshold <= 1.0:
        raise ConfigurationError(f"ratio_threshold must be in (0, 1], got {ratio_threshold}")

    return MatchPolicy(
        distance_family=descriptor_family(descriptor),
        matcher_backend=MatcherBackend.from_name(matcher_backend),
        selector=SelectorType.from_name(selector),
        ratio_threshold=float(ratio_threshold),
    )


def print_compatibility_matrix():
    """Print a compatibility matrix for all detectors and descriptors"""
    detectors = list(DetectorType)
    descriptors = list(DescriptorType)

    print("\n" + "=" * 60)
    print("DETECTOR-DESCRIPTOR COMPATIBILITY MATRIX")
    print("=" * 60)

    header = f"{'Detector':<12}"
    for descriptor in descriptors:
        header += f"{descriptor.value:<8}"
    print(header)
    print("-" * 60)

    for detector in detectors:
        row = f"{detector.value:<12}"
        for descriptor in descriptors:
            symbol = "x" if is_compatible(detector, descriptor) else "-"
            row += f"{symbol:<8}"
        print(row)

    print("\nx = Compatible | - = Incompatible")
