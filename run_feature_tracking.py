"""
Feature Tracking - Command Line Runner
======================================

Tracks keypoints over a numbered image sequence with one detector/descriptor
combination, or runs the complete evaluation plan over all combinations.

Usage:
    python run_feature_tracking.py --detector FAST --descriptor BRIEF
    python run_feature_tracking.py --plan --images ../images/ --output-dir ./tracking_output
    python run_feature_tracking.py --list-strategies
"""

import argparse
import sys

from FeatureTracking import (
    ImageSequenceSource,
    FeatureTrackingError,
    configure_logging,
    create_config_from_preset,
    get_default_config,
    load_config,
    merge_configs,
    print_compatibility_matrix,
    run_evaluation_plan,
    track_features,
)
from FeatureTracking.config import PRESET_CONFIGS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="2D Feature Tracking over consecutive camera frames")

    # Configuration
    parser.add_argument('--config', type=str, default=None,
                        help='JSON configuration file (merged over the defaults)')
    parser.add_argument('--preset', type=str, default=None, choices=sorted(PRESET_CONFIGS.keys()),
                        help='Start from a configuration preset')

    # Strategy selection
    parser.add_argument('--detector', type=str, default=None,
                        help='Keypoint detector (SHITOMASI, HARRIS, FAST, BRISK, ORB, AKAZE, SIFT)')
    parser.add_argument('--descriptor', type=str, default=None,
                        help='Descriptor (BRISK, BRIEF, ORB, FREAK, AKAZE, SIFT)')
    parser.add_argument('--plan', action='store_true',
                        help='Run every valid detector/descriptor combination')
    parser.add_argument('--matcher', type=str, default=None, choices=['MAT_BF', 'MAT_FLANN'],
                        help='Matcher backend')
    parser.add_argument('--selector', type=str, default=None, choices=['SEL_NN', 'SEL_KNN'],
                        help='Match selector')
    parser.add_argument('--continue-on-error', action='store_true',
                        help='Keep running the plan after a failing combination')

    # Input
    parser.add_argument('--images', type=str, default=None,
                        help='Base path of the image sequence')
    parser.add_argument('--start', type=int, default=None,
                        help='First frame index (inclusive)')
    parser.add_argument('--end', type=int, default=None,
                        help='Last frame index (inclusive)')
    parser.add_argument('--no-roi', action='store_true',
                        help='Keep keypoints of the whole image')
    parser.add_argument('--max-keypoints', type=int, default=None,
                        help='Limit the number of keypoints per frame')

    # Output
    parser.add_argument('--visualize', action='store_true',
                        help='Show keypoints and matches in OpenCV windows')
    parser.add_argument('--no-per-frame', action='store_true',
                        help='Do not print the per-detector breakdown')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Export the plan summary as CSV into this directory')
    parser.add_argument('--plot', action='store_true',
                        help='Also export a bar chart of the plan summary')

    # Misc
    parser.add_argument('--list-strategies', action='store_true',
                        help='Print the detector/descriptor compatibility matrix and exit')
    parser.add_argument('--log-level', type=str, default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write the log to this file')
    return parser


def config_from_args(args) -> dict:
    """Merge defaults, preset, config file and command line overrides"""
    if args.preset:
        config = create_config_from_preset(args.preset)
    else:
        config = get_default_config()
    if args.config:
        config = merge_configs(config, load_config(args.config))

    overrides = {}
    if args.detector:
        overrides['detector_type'] = args.detector
    if args.descriptor:
        overrides['descriptor_type'] = args.descriptor
    if args.matcher:
        overrides['matcher_backend'] = args.matcher
    if args.selector:
        overrides['selector_type'] = args.selector
    if args.images:
        overrides['image_source'] = {'base_path': args.images}
    if args.start is not None or args.end is not None:
        start, end = config['frame_index_range']
        overrides['frame_index_range'] = [
            args.start if args.start is not None else start,
            args.end if args.end is not None else end,
        ]
    if args.no_roi:
        overrides['roi_enabled'] = False
    if args.max_keypoints is not None:
        overrides['limit_keypoints'] = True
        overrides['max_keypoints'] = args.max_keypoints
    if args.visualize:
        overrides['visualize'] = True
    if args.no_per_frame:
        overrides['print_per_frame_report'] = False
    if args.output_dir:
        overrides['export'] = {'output_dir': args.output_dir}
    if args.plot:
        overrides.setdefault('export', {})['plot'] = True
    if args.log_level:
        overrides['logging'] = {'level': args.log_level}
    if args.log_file:
        overrides.setdefault('logging', {})['log_file'] = args.log_file

    return merge_configs(config, overrides)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_strategies:
        print_compatibility_matrix()
        return 0

    try:
        config = config_from_args(args)
    except (FeatureTrackingError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(level=config['logging']['level'], log_file=config['logging']['log_file'])
    image_source = ImageSequenceSource(**config['image_source'])

    try:
        if args.plan:
            plan_result = run_evaluation_plan(config, image_source,
                                              continue_on_error=args.continue_on_error)
            if plan_result.csv_path:
                print(f"\n✓ Summary written to {plan_result.csv_path}")
            return 0 if plan_result.succeeded else 1

        result = track_features(config, image_source)
        print(f"\n✓ {result}")
        return 0
    except FeatureTrackingError as e:
        print(f"\n✗ Tracking failed: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
