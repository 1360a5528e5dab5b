"""
Frame pipeline orchestrator.

Drives every frame of a run through

    LOADED -> DETECTED -> FILTERED -> DESCRIBED -> (MATCHED | SKIPPED_MATCH)

Each new frame is pushed into the bounded FrameBuffer. Once two frames are
resident, the frame returned by second_latest() is matched against latest()
with the MatchPolicy chosen for the configured descriptor. Stage results are
recorded by a KeypointStatisticsCollector owned by the run.

Example:
    >>> config = TrackingConfig.from_dict({'detector_type': 'FAST', 'descriptor_type': 'BRIEF'})
    >>> pipeline = FeatureTrackingPipeline(config, ImageSequenceSource('../images/'))
    >>> result = pipeline.run()
    >>> result.matched_count
    9
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .base_classes import BaseKeypointDetector, BaseDescriptorExtractor, BaseDescriptorMatcher
from .config import TrackingConfig
from .core_data_structures import (
    DetectorType, DescriptorType, FrameRecord, FrameState, MatchPolicy
)
from .descriptor_extractors import create_descriptor_extractor
from .exceptions import FeatureTrackingError
from .feature_matchers import DescriptorMatcher
from .frame_buffer import FrameBuffer
from .keypoint_statistics import KeypointStatisticsCollector, RunStatistics
from .logger import get_logger
from .matcher_compatibility import validate_combination, select_match_policy
from .reporting import print_report
from .roi_filter import ROIFilter
from .traditional_detectors import create_detector, limit_keypoints
from .visualization import FrameObserver, OpenCVVisualizer

logger = get_logger("pipeline")


@dataclass
class RunResult:
    """Outcome of one (detector, descriptor) run"""
    detector: DetectorType
    descriptor: DescriptorType
    statistics: RunStatistics
    state_counts: Counter = field(default_factory=Counter)

    @property
    def frames_processed(self) -> int:
        return self.statistics.frames_processed

    @property
    def matched_count(self) -> int:
        return self.state_counts[FrameState.MATCHED]

    @property
    def skipped_match_count(self) -> int:
        return self.state_counts[FrameState.SKIPPED_MATCH]

    def __repr__(self):
        return (f"RunResult({self.detector.value}+{self.descriptor.value}, "
                f"frames={self.frames_processed}, matched={self.matched_count}, "
                f"skipped={self.skipped_match_count})")


class FeatureTrackingPipeline:
    """
    Tracks keypoints across consecutive frames of one image sequence

    Strategy providers are created from the configuration unless they are
    passed in explicitly.
    """

    def __init__(self,
                 config: TrackingConfig,
                 image_source: Any,
                 detector: Optional[BaseKeypointDetector] = None,
                 describer: Optional[BaseDescriptorExtractor] = None,
                 matcher: Optional[BaseDescriptorMatcher] = None,
                 observer: Optional[FrameObserver] = None):
        """
        Initialize pipeline

        Args:
            config: Validated run configuration
            image_source: Object with load(frame_index) -> grayscale image
            detector: Keypoint detector (default: from config.detector_type)
            describer: Descriptor extractor (default: from config.descriptor_type)
            matcher: Descriptor matcher (default: DescriptorMatcher)
            observer: Stage observer (default: OpenCVVisualizer if config.visualize)

        Raises:
            ConfigurationError: If the detector/descriptor pair is invalid
        """
        self.detector_type, self.descriptor_type = validate_combination(
            config.detector_type, config.descriptor_type
        )
        self.config = config
        self.image_source = image_source
        self.match_policy: MatchPolicy = select_match_policy(
            self.descriptor_type,
            matcher_backend=config.matcher_backend,
            selector=config.selector_type,
            ratio_threshold=config.ratio_threshold
        )

        self.detector = detector or create_detector(self.detector_type, **config.detector_params)
        self.describer = describer or create_descriptor_extractor(self.descriptor_type,
                                                                  **config.descriptor_params)
        self.matcher = matcher or DescriptorMatcher()
        if observer is None:
            observer = OpenCVVisualizer() if config.visualize else FrameObserver()
        self.observer = observer

        self.roi_filter = ROIFilter(config.roi_rectangle, enabled=config.roi_enabled)
        self.buffer = FrameBuffer(config.buffer_capacity)
        self.collector = self._new_collector()
        self.state_counts = Counter()

    @property
    def name(self) -> str:
        return f"{self.detector_type.value}+{self.descriptor_type.value}"

    def _new_collector(self) -> KeypointStatisticsCollector:
        return KeypointStatisticsCollector(self.detector_type, self.descriptor_type,
                                           sample_memory=self.config.sample_memory)

    def reset(self):
        """Forget all frames and statistics"""
        self.buffer.clear()
        self.collector = self._new_collector()
        self.state_counts = Counter()

    def _advance(self, record: FrameRecord, state: FrameState, previous: Optional[FrameRecord] = None):
        record.state = state
        logger.debug(f"Frame {record.frame_index}: {state.value}")
        self.observer.on_stage(record, previous)

    # =========================================================================
    # Per-frame state machine
    # =========================================================================

    def process_frame(self, frame_index: int) -> FrameRecord:
        """
        Load one frame and run it through every stage

        Raises:
            InputError: If the frame cannot be loaded
        """
        image = self.image_source.load(frame_index)
        record = FrameRecord(image=image, frame_index=frame_index)
        self.buffer.push(record)
        self._advance(record, FrameState.LOADED)

        self._detect(record)
        self._filter(record)
        self._describe(record)

        if self.buffer.has_predecessor():
            self._match(self.buffer.second_latest(), self.buffer.latest())
        else:
            self._advance(record, FrameState.SKIPPED_MATCH)

        self.collector.record_memory()
        self.state_counts[record.state] += 1
        return record

    def _detect(self, record: FrameRecord):
        keypoints, detect_time = self.detector.detect(record.image)
        record.keypoints = keypoints
        self.collector.record_detection(record.frame_index, len(keypoints), detect_time)
        logger.debug(f"Frame {record.frame_index}: {self.detector_type.value} detected "
                     f"{len(keypoints)} keypoints in {detect_time:.2f} ms")
        self._advance(record, FrameState.DETECTED)

    def _filter(self, record: FrameRecord):
        record.keypoints = self.roi_filter.apply(record.keypoints)
        self.collector.record_filtering(record.frame_index, record.keypoints)
        self._advance(record, FrameState.FILTERED)

        if self.config.limit_keypoints:
            record.keypoints = limit_keypoints(record.keypoints, self.config.max_keypoints,
                                               self.detector_type)
            logger.debug(f"Frame {record.frame_index}: keypoints limited to {len(record.keypoints)}")

    def _describe(self, record: FrameRecord):
        keypoints, descriptors, describe_time = self.describer.describe(record.image, record.keypoints)
        if descriptors.shape[0] != len(keypoints):
            raise FeatureTrackingError(
                f"Frame {record.frame_index}: {self.descriptor_type.value} returned "
                f"{descriptors.shape[0]} descriptor rows for {len(keypoints)} keypoints"
            )
        if len(keypoints) != len(record.keypoints):
            logger.debug(f"Frame {record.frame_index}: {len(record.keypoints) - len(keypoints)} "
                         f"keypoints could not be described and were dropped")

        record.keypoints = keypoints
        record.descriptors = descriptors
        self.collector.record_description(describe_time)
        self._advance(record, FrameState.DESCRIBED)

    def _match(self, previous: FrameRecord, current: FrameRecord):
        matches, match_time = self.matcher.match(previous.descriptors, current.descriptors,
                                                 self.match_policy)
        current.matches = matches
        self.collector.record_matching(len(matches), match_time)
        logger.debug(f"Frame {current.frame_index}: {len(matches)} matches against frame "
                     f"{previous.frame_index} in {match_time:.2f} ms")
        self._advance(current, FrameState.MATCHED, previous)

    # =========================================================================
    # Run driver
    # =========================================================================

    def run(self) -> RunResult:
        """
        Process the configured frame index range and emit the configured reports

        Returns:
            RunResult with statistics and per-state frame counts

        Raises:
            InputError: If any frame cannot be loaded (the run is aborted)
        """
        self.reset()
        start, end = self.config.frame_index_range
        logger.info(f"Run {self.name}: frames {start}-{end}, buffer capacity "
                    f"{self.buffer.capacity}, ROI {'on' if self.roi_filter.enabled else 'off'}")

        for frame_index in self.config.frame_indices:
            self.process_frame(frame_index)

        result = RunResult(
            detector=self.detector_type,
            descriptor=self.descriptor_type,
            statistics=self.collector.statistics,
            state_counts=Counter(self.state_counts)
        )
        logger.info(f"Run {self.name} finished: {result.matched_count} matched, "
                    f"{result.skipped_match_count} skipped")

        if self.config.print_per_frame_report or self.config.print_summary_report:
            print_report(result.statistics,
                         per_frame=self.config.print_per_frame_report,
                         summary=self.config.print_summary_report)
        return result


def track_features(config: Union[TrackingConfig, Dict[str, Any]], image_source: Any,
                   **pipeline_kwargs) -> RunResult:
    """
    Run one detector/descriptor combination over an image sequence

    Args:
        config: TrackingConfig or configuration dictionary
        image_source: Object with load(frame_index)
        **pipeline_kwargs: Provider/observer overrides for FeatureTrackingPipeline

    Returns:
        RunResult
    """
    if not isinstance(config, TrackingConfig):
        config = TrackingConfig.from_dict(config)
    return FeatureTrackingPipeline(config, image_source, **pipeline_kwargs).run()
