"""
Console reports and exports for tracking runs.

Two report modes, toggled independently:
- per-detector breakdown: one pipe-delimited row per metric with the
  per-frame values followed by the run average
- per-(detector, descriptor) summary: one row of scalar averages

Summaries of several runs can also be collected into a pandas DataFrame,
written to CSV, and plotted with matplotlib.
"""

import time
from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
import pandas as pd

from .keypoint_statistics import RunStatistics, METRIC_LABELS, BREAKDOWN_METRICS
from .logger import get_logger

logger = get_logger("reporting")

SUMMARY_HEADER = [
    'Detector',
    'Descriptor',
    '# avg. matched keypoints',
    'avg. detect time [ms]',
    'avg. describe time [ms]',
    'avg. match time [ms]',
    'avg. total processing time [ms]',
    'peak memory [MB]',
]


def format_value(value) -> str:
    if value is None:
        return "n/a"
    if isinstance(value, int):
        return str(value)
    return f"{value:g}"


def _row(cells: Sequence[str]) -> str:
    return "|" + "|".join(f" {cell} " if cell else " " for cell in cells) + "|"


def format_breakdown(stats: RunStatistics) -> str:
    """Per-detector breakdown: rows = metric, columns = frames + average"""
    lines = []
    for i, metric in enumerate(BREAKDOWN_METRICS):
        first = stats.detector.value if i == 0 else ""
        cells = [first, METRIC_LABELS[metric]]
        cells += [format_value(v) for v in stats.values(metric)]
        cells.append(format_value(stats.aggregate_or_none(metric)))
        lines.append(_row(cells))
    return "\n".join(lines)


def format_summary_header() -> str:
    return _row(SUMMARY_HEADER)


def format_summary_row(stats: RunStatistics) -> str:
    """Per-(detector, descriptor) row of run averages"""
    summary = stats.summary()
    cells = [
        summary['detector'],
        summary['descriptor'],
        format_value(summary['avg_matches']),
        format_value(summary['avg_detect_time_ms']),
        format_value(summary['avg_describe_time_ms']),
        format_value(summary['avg_match_time_ms']),
        format_value(summary['avg_total_time_ms']),
        format_value(summary['peak_memory_mb']),
    ]
    return _row(cells)


def format_summary_table(runs: List[RunStatistics]) -> str:
    """Header followed by one summary row per run"""
    return "\n".join([format_summary_header()] + [format_summary_row(stats) for stats in runs])


def format_report(stats: RunStatistics, per_frame: bool = True, summary: bool = True,
                  summary_header: bool = False) -> str:
    """
    Build the console report of a run

    Args:
        stats: Statistics of the run
        per_frame: Include the per-detector breakdown
        summary: Include the summary row
        summary_header: Prefix the summary row with the column header

    Returns:
        Report text; breakdown and summary are separated by a blank line
    """
    sections = []
    if per_frame:
        sections.append(format_breakdown(stats))
    if summary:
        rows = [format_summary_row(stats)]
        if summary_header:
            rows.insert(0, format_summary_header())
        sections.append("\n".join(rows))
    return "\n\n".join(sections)


def print_report(stats: RunStatistics, per_frame: bool = True, summary: bool = True):
    report = format_report(stats, per_frame=per_frame, summary=summary)
    if report:
        print(report)


# =============================================================================
# Tabular export
# =============================================================================

def breakdown_dataframe(stats: RunStatistics) -> pd.DataFrame:
    """Breakdown as a DataFrame indexed by metric label, one column per frame plus 'average'"""
    columns = [str(i) for i in stats.frame_indices] + ['average']
    data = {}
    for metric in BREAKDOWN_METRICS:
        data[METRIC_LABELS[metric]] = list(stats.values(metric)) + [stats.aggregate_or_none(metric)]
    return pd.DataFrame.from_dict(data, orient='index', columns=columns)


def summary_dataframe(runs: List[RunStatistics]) -> pd.DataFrame:
    """One summary row per run"""
    return pd.DataFrame([stats.summary() for stats in runs])


def export_summary_csv(runs: List[RunStatistics], output_dir: str,
                       filename: Optional[str] = None) -> Path:
    """
    Write the summary of several runs to CSV

    Returns:
        Path to the written file
    """
    if filename is None:
        timestamp = time.strftime('%Y%m%d_%H%M%S')
        filename = f"tracking_summary_{timestamp}.csv"

    output_path = Path(output_dir) / filename
    output_path.parent.mkdir(parents=True, exist_ok=True)

    summary_dataframe(runs).to_csv(output_path, index=False)
    logger.info(f"Summary exported to CSV: {output_path}")
    return output_path


def plot_summary(runs: List[RunStatistics], output_path: Optional[str] = None, show: bool = False):
    """
    Bar charts of average matches and average total time per combination

    Args:
        runs: Statistics of the runs to compare
        output_path: Save the figure here if given
        show: Display the figure interactively

    Returns:
        The matplotlib figure
    """
    df = summary_dataframe(runs)
    labels = [f"{d}+{s}" for d, s in zip(df['detector'], df['descriptor'])]

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(16, 6))

    ax1.bar(labels, df['avg_matches'].astype(float).fillna(0.0), color='steelblue')
    ax1.set_title('Matched Keypoints per Frame Pair', fontsize=14, fontweight='bold')
    ax1.set_ylabel('# avg. matched keypoints')
    ax1.tick_params(axis='x', rotation=90)

    ax2.bar(labels, df['avg_total_time_ms'].astype(float).fillna(0.0), color='darkorange')
    ax2.set_title('Processing Time per Frame', fontsize=14, fontweight='bold')
    ax2.set_ylabel('avg. total time [ms]')
    ax2.tick_params(axis='x', rotation=90)

    fig.suptitle('Detector / Descriptor Comparison', fontsize=16, fontweight='bold')
    fig.tight_layout()

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        logger.info(f"Plot saved as: {output_path}")

    if show:
        plt.show()
    else:
        plt.close(fig)

    return fig
