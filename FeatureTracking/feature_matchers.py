"""
Descriptor matching (brute force and FLANN, nearest neighbour or k-NN ratio test).
"""

import cv2
import numpy as np
import time
from typing import List, Tuple

from .base_classes import BaseDescriptorMatcher
from .core_data_structures import DistanceFamily, MatcherBackend, SelectorType, MatchPolicy
from .logger import get_logger

logger = get_logger("matching")

FLANN_INDEX_KDTREE = 1
FLANN_INDEX_LSH = 6


class DescriptorMatcher(BaseDescriptorMatcher):
    """
    Matches the previous frame's descriptors (query) against the current
    frame's descriptors (train) according to a MatchPolicy.

    Usage:
        policy = select_match_policy('BRISK')
        matches, elapsed_ms = DescriptorMatcher().match(prev.descriptors, curr.descriptors, policy)
    """

    def __init__(self, cross_check: bool = False, trees: int = 5, checks: int = 50):
        """
        Args:
            cross_check: Brute force cross check (only used by the NN selector)
            trees: Number of KD-trees for float FLANN matching
            checks: Number of leaf checks during FLANN search
        """
        self.cross_check = cross_check
        self.trees = trees
        self.checks = checks

    def _create_matcher(self, policy: MatchPolicy):
        if policy.matcher_backend is MatcherBackend.BRUTE_FORCE:
            cross_check = self.cross_check and policy.selector is SelectorType.NN
            return cv2.BFMatcher(policy.norm_type, crossCheck=cross_check)

        if policy.distance_family is DistanceFamily.FLOAT:
            index_params = dict(algorithm=FLANN_INDEX_KDTREE, trees=self.trees)
        else:
            # LSH (Locality Sensitive Hashing) for Hamming distance
            index_params = dict(
                algorithm=FLANN_INDEX_LSH,
                table_number=12,
                key_size=20,
                multi_probe_level=2
            )
        return cv2.FlannBasedMatcher(index_params, dict(checks=self.checks))

    def _prepare(self, descriptors: np.ndarray, policy: MatchPolicy) -> np.ndarray:
        # FLANN's KD-tree only accepts float32
        if (policy.matcher_backend is MatcherBackend.FLANN and
                policy.distance_family is DistanceFamily.FLOAT and
                descriptors.dtype != np.float32):
            return descriptors.astype(np.float32)
        return descriptors

    def match(self, descriptors_prev: np.ndarray, descriptors_curr: np.ndarray,
              policy: MatchPolicy) -> Tuple[List[cv2.DMatch], float]:
        start_time = time.time()

        if not self.validate_descriptors(descriptors_prev, descriptors_curr):
            logger.debug("Empty descriptor set, no matches")
            return [], (time.time() - start_time) * 1000.0

        query = self._prepare(descriptors_prev, policy)
        train = self._prepare(descriptors_curr, policy)
        matcher = self._create_matcher(policy)

        if policy.selector is SelectorType.NN:
            matches = list(matcher.match(query, train))
        else:
            matches = self._ratio_test(matcher.knnMatch(query, train, k=2), policy.ratio_threshold)

        return matches, (time.time() - start_time) * 1000.0

    @staticmethod
    def _ratio_test(knn_matches, ratio_threshold: float) -> List[cv2.DMatch]:
        """Keep the best candidate only if it is clearly better than the second best"""
        good_matches = []
        for match_pair in knn_matches:
            # a single candidate cannot be checked for ambiguity
            if len(match_pair) < 2:
                continue
            best, second = match_pair[0], match_pair[1]
            if best.distance < ratio_threshold * second.distance:
                good_matches.append(best)
        return good_matches
