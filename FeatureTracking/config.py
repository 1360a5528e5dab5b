"""
Configuration management for the feature tracking system.

This module provides the default configuration, presets, validation and the
typed TrackingConfig the pipeline runs from.
"""

import copy
import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .core_data_structures import (
    DetectorType, DescriptorType, MatcherBackend, SelectorType
)
from .exceptions import ConfigurationError
from .matcher_compatibility import is_compatible, DEFAULT_RATIO_THRESHOLD
from .roi_filter import RegionOfInterest
from .logger import get_logger

logger = get_logger("config")


# =============================================================================
# Default Configurations
# =============================================================================

DEFAULT_CONFIG = {
    'detector_type': 'FAST',
    'descriptor_type': 'BRISK',
    'visualize': False,
    'print_per_frame_report': True,
    'print_summary_report': True,
    'frame_index_range': [0, 9],   # inclusive
    'buffer_capacity': 2,
    'roi_enabled': True,
    'roi_rectangle': [535, 180, 180, 150],   # x, y, width, height: preceding vehicle
    'matcher_backend': 'MAT_BF',
    'selector_type': 'SEL_KNN',
    'ratio_threshold': DEFAULT_RATIO_THRESHOLD,
    'limit_keypoints': False,
    'max_keypoints': 50,
    'sample_memory': True,
    'detector_params': {},
    'descriptor_params': {},
    'image_source': {
        'base_path': '../images/',
        'prefix': 'KITTI/2011_09_26/image_00/data/000000',
        'file_type': '.png',
        'fill_width': 4
    },
    'logging': {
        'level': 'INFO',
        'log_file': None
    },
    'export': {
        'output_dir': None,
        'csv': True,
        'plot': False
    }
}


PRESET_CONFIGS = {
    'kitti': {},

    'quick': {
        'frame_index_range': [0, 3],
        'print_per_frame_report': False,
    },

    'headless': {
        'visualize': False,
        'print_per_frame_report': False,
        'print_summary_report': False,
        'sample_memory': False,
    },

    'visual': {
        'visualize': True,
        'frame_index_range': [0, 4],
    },
}


DETECTOR_SPECIFIC_CONFIGS = {
    'SHITOMASI': {
        'block_size': 4,
        'max_overlap': 0.0,
        'quality_level': 0.01,
        'k': 0.04
    },
    'HARRIS': {
        'block_size': 2,
        'aperture_size': 3,
        'k': 0.04,
        'min_response': 100,
        'max_overlap': 0.0
    },
    'FAST': {
        'threshold': 30,
        'nonmax_suppression': True
    },
    'BRISK': {
        'threshold': 30,
        'octaves': 3,
        'pattern_scale': 1.0
    },
    'ORB': {
        'max_features': 500,
        'scale_factor': 1.2,
        'n_levels': 8
    },
    'AKAZE': {
        'threshold': 0.001,
        'n_octaves': 4
    },
    'SIFT': {
        'contrast_threshold': 0.04,
        'edge_threshold': 10,
        'sigma': 1.6
    }
}


# =============================================================================
# Configuration Functions
# =============================================================================

def get_default_config() -> Dict[str, Any]:
    """Get a copy of the default configuration"""
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries

    Args:
        base_config: Base configuration
        override_config: Configuration to override base with

    Returns:
        Merged configuration
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def create_config_from_preset(preset: str) -> Dict[str, Any]:
    """
    Create configuration from a preset

    Raises:
        ConfigurationError: If preset is not available
    """
    if preset not in PRESET_CONFIGS:
        available = ', '.join(PRESET_CONFIGS.keys())
        raise ConfigurationError(f"Unknown preset: {preset}. Available: {available}")

    return merge_configs(get_default_config(), PRESET_CONFIGS[preset])


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Validate configuration and return any issues

    Args:
        config: Configuration to validate

    Returns:
        Dictionary with validation results:
        {
            'errors': [list of error messages],
            'warnings': [list of warning messages]
        }
    """
    errors = []
    warnings = []

    # Strategies
    detector = descriptor = None
    try:
        detector = DetectorType.from_name(config.get('detector_type'))
    except ConfigurationError as e:
        errors.append(str(e))
    try:
        descriptor = DescriptorType.from_name(config.get('descriptor_type'))
    except ConfigurationError as e:
        errors.append(str(e))
    if detector is not None and descriptor is not None and not is_compatible(detector, descriptor):
        errors.append(f"Detector {detector.value} cannot be combined with descriptor {descriptor.value}")

    for key, enum_type in (('matcher_backend', MatcherBackend), ('selector_type', SelectorType)):
        try:
            enum_type.from_name(config.get(key))
        except ConfigurationError as e:
            errors.append(str(e))

    # Buffer
    capacity = config.get('buffer_capacity')
    if not _is_int(capacity) or capacity <= 0:
        errors.append("'buffer_capacity' must be a positive integer")
    elif capacity > 2:
        warnings.append("Only the two newest frames are matched; extra buffer capacity is unused")

    # Frame range
    frame_range = config.get('frame_index_range')
    if (not isinstance(frame_range, (list, tuple)) or len(frame_range) != 2 or
            not all(_is_int(v) for v in frame_range)):
        errors.append("'frame_index_range' must be [start, end] integers")
    elif frame_range[0] < 0 or frame_range[1] < frame_range[0]:
        errors.append(f"'frame_index_range' must satisfy 0 <= start <= end, got {list(frame_range)}")
    elif frame_range[1] == frame_range[0]:
        warnings.append("Single-frame range: no frame pair will be matched")

    # ROI
    try:
        RegionOfInterest.from_sequence(config.get('roi_rectangle'))
    except (ConfigurationError, TypeError, ValueError) as e:
        errors.append(f"Invalid 'roi_rectangle': {e}")

    # Matching
    ratio = config.get('ratio_threshold')
    if not isinstance(ratio, (int, float)) or isinstance(ratio, bool) or not 0.0 < ratio <= 1.0:
        errors.append("'ratio_threshold' must be a number in (0, 1]")

    # Keypoint limiting
    if config.get('limit_keypoints'):
        max_keypoints = config.get('max_keypoints')
        if not _is_int(max_keypoints) or max_keypoints <= 0:
            errors.append("'max_keypoints' must be a positive integer when 'limit_keypoints' is set")

    for key in ('visualize', 'print_per_frame_report', 'print_summary_report',
                'roi_enabled', 'limit_keypoints', 'sample_memory'):
        if key in config and not isinstance(config[key], bool):
            errors.append(f"'{key}' must be a boolean")

    for key in ('detector_params', 'descriptor_params'):
        if not isinstance(config.get(key, {}), dict):
            errors.append(f"'{key}' must be a dictionary")

    return {'errors': errors, 'warnings': warnings}


def save_config(config: Dict[str, Any], filepath: str):
    """Save configuration to JSON file"""
    with open(filepath, 'w') as f:
        json.dump(config, f, indent=2)
    logger.info(f"Configuration saved to: {filepath}")


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from JSON file

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigurationError: If file is not valid JSON
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    with open(filepath, 'r') as f:
        try:
            config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {filepath}: {e}") from e

    logger.info(f"Configuration loaded from: {filepath}")
    return config


def get_detector_config(detector_type: str) -> Dict[str, Any]:
    """Default parameters for a detector"""
    return copy.deepcopy(DETECTOR_SPECIFIC_CONFIGS.get(str(detector_type).upper(), {}))


# =============================================================================
# Typed configuration
# =============================================================================

@dataclass
class TrackingConfig:
    """Validated configuration of a single tracking run"""
    detector_type: DetectorType
    descriptor_type: DescriptorType
    visualize: bool = False
    print_per_frame_report: bool = True
    print_summary_report: bool = True
    frame_index_range: Tuple[int, int] = (0, 9)
    buffer_capacity: int = 2
    roi_enabled: bool = True
    roi_rectangle: RegionOfInterest = field(default_factory=lambda: RegionOfInterest(535, 180, 180, 150))
    matcher_backend: MatcherBackend = MatcherBackend.BRUTE_FORCE
    selector_type: SelectorType = SelectorType.KNN
    ratio_threshold: float = DEFAULT_RATIO_THRESHOLD
    limit_keypoints: bool = False
    max_keypoints: int = 50
    sample_memory: bool = True
    detector_params: Dict[str, Any] = field(default_factory=dict)
    descriptor_params: Dict[str, Any] = field(default_factory=dict)

    @property
    def frame_indices(self) -> range:
        start, end = self.frame_index_range
        return range(start, end + 1)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'TrackingConfig':
        """
        Build from a (partial) configuration dictionary merged over DEFAULT_CONFIG

        Raises:
            ConfigurationError: If validation reports any error
        """
        merged = merge_configs(DEFAULT_CONFIG, config)
        result = validate_config(merged)
        for warning in result['warnings']:
            logger.warning(warning)
        if result['errors']:
            raise ConfigurationError("Invalid configuration: " + "; ".join(result['errors']))

        detector = DetectorType.from_name(merged['detector_type'])
        detector_params = get_detector_config(detector.value)
        detector_params.update(merged.get('detector_params', {}).get(detector.value, {}))
        descriptor = DescriptorType.from_name(merged['descriptor_type'])

        return cls(
            detector_type=detector,
            descriptor_type=descriptor,
            visualize=merged['visualize'],
            print_per_frame_report=merged['print_per_frame_report'],
            print_summary_report=merged['print_summary_report'],
            frame_index_range=tuple(merged['frame_index_range']),
            buffer_capacity=merged['buffer_capacity'],
            roi_enabled=merged['roi_enabled'],
            roi_rectangle=RegionOfInterest.from_sequence(merged['roi_rectangle']),
            matcher_backend=MatcherBackend.from_name(merged['matcher_backend']),
            selector_type=SelectorType.from_name(merged['selector_type']),
            ratio_threshold=float(merged['ratio_threshold']),
            limit_keypoints=merged['limit_keypoints'],
            max_keypoints=merged['max_keypoints'],
            sample_memory=merged['sample_memory'],
            detector_params=detector_params,
            descriptor_params=dict(merged.get('descriptor_params', {}).get(descriptor.value, {})),
        )

