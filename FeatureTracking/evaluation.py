"""
Evaluation plan driver.

Runs every supported detector/descriptor combination over the same image
sequence: the two single-purpose pairs first, then every general-purpose
detector with every general-purpose descriptor (detector-major order).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import TrackingConfig, merge_configs
from .core_data_structures import DetectorType, DescriptorType
from .exceptions import FeatureTrackingError
from .logger import get_logger
from .matcher_compatibility import (
    SINGLE_PURPOSE_PAIRS, GENERAL_PURPOSE_DETECTORS, GENERAL_PURPOSE_DESCRIPTORS
)
from .pipeline import FeatureTrackingPipeline, RunResult
from .reporting import export_summary_csv, plot_summary, format_summary_table
from .visualization import FrameObserver

logger = get_logger("evaluation")

Combination = Tuple[DetectorType, DescriptorType]


def build_evaluation_plan() -> List[Combination]:
    """
    All valid combinations in evaluation order

    Returns:
        [(SIFT, SIFT), (AKAZE, AKAZE), (SHITOMASI, BRISK), (SHITOMASI, ORB), ...]
    """
    plan = list(SINGLE_PURPOSE_PAIRS.items())
    for detector in GENERAL_PURPOSE_DETECTORS:
        for descriptor in GENERAL_PURPOSE_DESCRIPTORS:
            plan.append((detector, descriptor))
    return plan


@dataclass
class PlanResult:
    """Results of an evaluation plan, in plan order"""
    results: List[RunResult] = field(default_factory=list)
    failures: List[Tuple[Combination, FeatureTrackingError]] = field(default_factory=list)
    csv_path: Optional[Path] = None
    plot_path: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def result_for(self, detector, descriptor) -> Optional[RunResult]:
        detector = DetectorType.from_name(detector)
        descriptor = DescriptorType.from_name(descriptor)
        for result in self.results:
            if result.detector is detector and result.descriptor is descriptor:
                return result
        return None


def run_evaluation_plan(base_config: Dict[str, Any],
                        image_source: Any,
                        plan: Optional[Sequence[Combination]] = None,
                        continue_on_error: bool = False,
                        observer: Optional[FrameObserver] = None,
                        **pipeline_kwargs) -> PlanResult:
    """
    Run each combination of the plan with otherwise identical configuration

    Args:
        base_config: Configuration dictionary shared by every run; its
            detector and descriptor entries are replaced per run
        image_source: Object with load(frame_index)
        plan: Combinations to run (default: build_evaluation_plan())
        continue_on_error: Record a failing run and carry on instead of raising
        observer: Stage observer shared by every run
        **pipeline_kwargs: Provider overrides for FeatureTrackingPipeline

    Returns:
        PlanResult

    Raises:
        FeatureTrackingError: The first run failure, unless continue_on_error
    """
    if plan is None:
        plan = build_evaluation_plan()

    plan_result = PlanResult()
    logger.info(f"Evaluation plan with {len(plan)} combinations")

    for run_number, (detector, descriptor) in enumerate(plan, 1):
        detector = DetectorType.from_name(detector)
        descriptor = DescriptorType.from_name(descriptor)
        logger.info(f"[{run_number}/{len(plan)}] {detector.value} + {descriptor.value}")

        # summary rows are printed together once the plan is done
        run_config = merge_configs(base_config, {
            'detector_type': detector.value,
            'descriptor_type': descriptor.value,
            'print_summary_report': False,
        })
        try:
            config = TrackingConfig.from_dict(run_config)
            pipeline = FeatureTrackingPipeline(config, image_source, observer=observer, **pipeline_kwargs)
            plan_result.results.append(pipeline.run())
        except FeatureTrackingError as e:
            logger.error(f"Run {detector.value} + {descriptor.value} failed "
                         f"(frames {run_config.get('frame_index_range')}): {e}")
            if not continue_on_error:
                raise
            plan_result.failures.append(((detector, descriptor), e))

    if base_config.get('print_summary_report', True) and plan_result.results:
        print(format_summary_table([result.statistics for result in plan_result.results]))

    _export(plan_result, base_config.get('export', {}))

    logger.info(f"Evaluation finished: {len(plan_result.results)} runs, "
                f"{len(plan_result.failures)} failures")
    return plan_result


def _export(plan_result: PlanResult, export_config: Dict[str, Any]):
    output_dir = export_config.get('output_dir')
    if not output_dir or not plan_result.results:
        return

    runs = [result.statistics for result in plan_result.results]
    if export_config.get('csv', True):
        plan_result.csv_path = export_summary_csv(runs, output_dir)
    if export_config.get('plot', False):
        plan_result.plot_path = Path(output_dir) / 'tracking_summary.png'
        plot_summary(runs, output_path=str(plan_result.plot_path))
