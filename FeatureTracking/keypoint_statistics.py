"""
Keypoint statistics for tracking runs.

RunStatistics holds the ordered per-frame values of one (detector, descriptor)
run; KeypointStatisticsCollector records into it stage by stage.

Aggregates are the arithmetic mean over the frames that actually contributed a
value. Matching metrics therefore average over one frame fewer than detection
metrics, and frames whose ROI left no keypoints (recorded as None) are left
out of the size aggregates.
"""

import cv2
import numpy as np
import psutil
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .core_data_structures import DetectorType, DescriptorType
from .exceptions import DegenerateStateError
from .logger import get_logger

logger = get_logger("statistics")


# metric key -> label used in reports
METRIC_LABELS = {
    'num_keypoints': '# keypoints',
    'detect_times': 'Time [ms]',
    'num_selected_keypoints': '# selected keypoints',
    'mean_sizes': 'avg. keypoint size',
    'size_variances': 'keypoint size variance',
    'describe_times': 'describe time [ms]',
    'num_matches': '# matched keypoints',
    'match_times': 'match time [ms]',
    'memory_mb': 'memory [MB]',
}

BREAKDOWN_METRICS = [
    'num_keypoints',
    'detect_times',
    'num_selected_keypoints',
    'mean_sizes',
    'size_variances',
]


def keypoint_size_statistics(keypoints: List[cv2.KeyPoint]) -> Tuple[float, float]:
    """
    Mean and population variance of keypoint size

    Args:
        keypoints: Keypoints to summarize

    Returns:
        (mean, variance); variance divides by the number of keypoints

    Raises:
        DegenerateStateError: If keypoints is empty
    """
    if len(keypoints) == 0:
        raise DegenerateStateError("Cannot compute keypoint size statistics over an empty keypoint set")

    sizes = np.array([kp.size for kp in keypoints], dtype=np.float64)
    mean = float(np.mean(sizes))
    variance = float(np.mean((sizes - mean) ** 2))
    return mean, variance


@dataclass
class RunStatistics:
    """Per-frame values and aggregates of a single tracking run"""
    detector: DetectorType
    descriptor: DescriptorType
    frame_indices: List[int] = field(default_factory=list)
    num_keypoints: List[int] = field(default_factory=list)
    detect_times: List[float] = field(default_factory=list)
    num_selected_keypoints: List[int] = field(default_factory=list)
    mean_sizes: List[Optional[float]] = field(default_factory=list)
    size_variances: List[Optional[float]] = field(default_factory=list)
    describe_times: List[float] = field(default_factory=list)
    num_matches: List[int] = field(default_factory=list)
    match_times: List[float] = field(default_factory=list)
    memory_mb: List[float] = field(default_factory=list)
    degenerate_frames: List[int] = field(default_factory=list)

    @property
    def frames_processed(self) -> int:
        return len(self.frame_indices)

    def values(self, metric: str) -> List[Optional[float]]:
        if metric not in METRIC_LABELS:
            raise KeyError(f"Unknown metric: {metric}")
        return getattr(self, metric)

    def contributing_values(self, metric: str) -> List[float]:
        return [v for v in self.values(metric) if v is not None]

    def total(self, metric: str) -> float:
        return float(sum(self.contributing_values(metric)))

    def aggregate(self, metric: str) -> float:
        """
        Mean over the frames that contributed a value to metric

        Raises:
            DegenerateStateError: If no frame contributed a value
        """
        contributing = self.contributing_values(metric)
        if not contributing:
            raise DegenerateStateError(
                f"No frame of the {self.detector.value}/{self.descriptor.value} run "
                f"contributed to '{METRIC_LABELS[metric]}'"
            )
        return float(sum(contributing)) / len(contributing)

    def aggregate_or_none(self, metric: str) -> Optional[float]:
        """
        Like aggregate(), but None (with a warning) when no frame contributed

        Used by reports so a short or fully filtered run can still be shown.
        """
        try:
            return self.aggregate(metric)
        except DegenerateStateError as e:
            logger.warning(f"{e}; reported as n/a")
            return None

    def average_total_time(self) -> float:
        """Sum of the average detect, describe and match times"""
        return (self.aggregate('detect_times') +
                self.aggregate('describe_times') +
                self.aggregate('match_times'))

    def peak_memory(self) -> Optional[float]:
        return max(self.memory_mb) if self.memory_mb else None

    def summary(self) -> Dict[str, Any]:
        """
        Scalar averages of the run, as used by the summary report

        Averages without any contributing frame are None.
        """
        averages = {
            'avg_matches': self.aggregate_or_none('num_matches'),
            'avg_detect_time_ms': self.aggregate_or_none('detect_times'),
            'avg_describe_time_ms': self.aggregate_or_none('describe_times'),
            'avg_match_time_ms': self.aggregate_or_none('match_times'),
        }
        stage_times = [averages['avg_detect_time_ms'], averages['avg_describe_time_ms'],
                       averages['avg_match_time_ms']]
        total = None if None in stage_times else sum(stage_times)

        return {
            'detector': self.detector.value,
            'descriptor': self.descriptor.value,
            'frames': self.frames_processed,
            **averages,
            'avg_total_time_ms': total,
            'peak_memory_mb': self.peak_memory(),
        }


class KeypointStatisticsCollector:
    """Records stage results of one run into a RunStatistics instance"""

    def __init__(self, detector: DetectorType, descriptor: DescriptorType, sample_memory: bool = True):
        self.statistics = RunStatistics(detector=detector, descriptor=descriptor)
        self.sample_memory = sample_memory
        self._process = psutil.Process() if sample_memory else None

    def record_detection(self, frame_index: int, num_keypoints: int, detect_time_ms: float):
        self.statistics.frame_indices.append(frame_index)
        self.statistics.num_keypoints.append(num_keypoints)
        self.statistics.detect_times.append(detect_time_ms)

    def record_filtering(self, frame_index: int, keypoints: List[cv2.KeyPoint]):
        """
        Record filtered count, mean size and size variance

        A frame without keypoints keeps its count (0) but gets None markers
        for the size statistics.
        """
        self.statistics.num_selected_keypoints.append(len(keypoints))
        try:
            mean, variance = keypoint_size_statistics(keypoints)
        except DegenerateStateError:
            logger.warning(f"Frame {frame_index}: no keypoints left after filtering, "
                           f"size statistics skipped")
            self.statistics.degenerate_frames.append(frame_index)
            mean, variance = None, None
        self.statistics.mean_sizes.append(mean)
        self.statistics.size_variances.append(variance)

    def record_description(self, describe_time_ms: float):
        self.statistics.describe_times.append(describe_time_ms)

    def record_matching(self, num_matches: int, match_time_ms: float):
        self.statistics.num_matches.append(num_matches)
        self.statistics.match_times.append(match_time_ms)

    def record_memory(self):
        """Sample resident memory of the process in MB"""
        if self._process is None:
            return
        self.statistics.memory_mb.append(self._process.memory_info().rss / 1024 / 1024)
