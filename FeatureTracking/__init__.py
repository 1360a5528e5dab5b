"""
FeatureTracking - 2D keypoint tracking across consecutive camera frames

Detects keypoints in every frame of an image sequence, keeps those inside a
region of interest, describes them and matches each frame against its
predecessor, collecting per-frame statistics to compare detector/descriptor
combinations.

Quick Start:
    >>> from FeatureTracking import track_features, ImageSequenceSource
    >>>
    >>> result = track_features(
    ...     {'detector_type': 'FAST', 'descriptor_type': 'BRIEF'},
    ...     ImageSequenceSource('../images/')
    ... )
    >>>
    >>> # Every general-purpose and single-purpose combination
    >>> from FeatureTracking import run_evaluation_plan
    >>> plan_result = run_evaluation_plan({}, ImageSequenceSource('../images/'))
"""

__version__ = '1.0.0'

# =============================================================================
# CORE PIPELINE
# =============================================================================

from .pipeline import (
    FeatureTrackingPipeline,
    RunResult,
    track_features,
)

from .evaluation import (
    PlanResult,
    build_evaluation_plan,
    run_evaluation_plan,
)

# =============================================================================
# CORE DATA STRUCTURES
# =============================================================================

from .core_data_structures import (
    DetectorType,
    DescriptorType,
    DistanceFamily,
    MatcherBackend,
    SelectorType,
    FrameState,
    FrameRecord,
    MatchPolicy,
)

from .frame_buffer import FrameBuffer
from .roi_filter import RegionOfInterest, ROIFilter, filter_keypoints

# =============================================================================
# STRATEGY PROVIDERS
# =============================================================================

from .traditional_detectors import create_detector, limit_keypoints
from .descriptor_extractors import create_descriptor_extractor
from .feature_matchers import DescriptorMatcher
from .matcher_compatibility import (
    is_compatible,
    validate_combination,
    select_match_policy,
    print_compatibility_matrix,
)

# =============================================================================
# STATISTICS, REPORTS AND IMAGES
# =============================================================================

from .keypoint_statistics import (
    RunStatistics,
    KeypointStatisticsCollector,
    keypoint_size_statistics,
)
from .reporting import (
    format_report,
    print_report,
    summary_dataframe,
    export_summary_csv,
    plot_summary,
)
from .image_loader import ImageSequenceSource, InMemoryImageSource
from .visualization import FrameObserver, OpenCVVisualizer

# =============================================================================
# CONFIGURATION, LOGGING, ERRORS
# =============================================================================

from .config import (
    TrackingConfig,
    get_default_config,
    create_config_from_preset,
    merge_configs,
    validate_config,
    load_config,
    save_config,
)
from .logger import get_logger, configure_logging
from .exceptions import (
    FeatureTrackingError,
    ConfigurationError,
    InputError,
    DegenerateStateError,
    PreconditionError,
)

__all__ = [
    'FeatureTrackingPipeline', 'RunResult', 'track_features',
    'PlanResult', 'build_evaluation_plan', 'run_evaluation_plan',
    'DetectorType', 'DescriptorType', 'DistanceFamily', 'MatcherBackend', 'SelectorType',
    'FrameState', 'FrameRecord', 'MatchPolicy',
    'FrameBuffer', 'RegionOfInterest', 'ROIFilter', 'filter_keypoints',
    'create_detector', 'limit_keypoints', 'create_descriptor_extractor', 'DescriptorMatcher',
    'is_compatible', 'validate_combination', 'select_match_policy', 'print_compatibility_matrix',
    'RunStatistics', 'KeypointStatisticsCollector', 'keypoint_size_statistics',
    'format_report', 'print_report', 'summary_dataframe', 'export_summary_csv', 'plot_summary',
    'ImageSequenceSource', 'InMemoryImageSource', 'FrameObserver', 'OpenCVVisualizer',
    'TrackingConfig', 'get_default_config', 'create_config_from_preset', 'merge_configs',
    'validate_config', 'load_config', 'save_config',
    'get_logger', 'configure_logging',
    'FeatureTrackingError', 'ConfigurationError', 'InputError',
    'DegenerateStateError', 'PreconditionError',
]
