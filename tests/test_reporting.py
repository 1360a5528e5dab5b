import pandas as pd
import pytest

from FeatureTracking.core_data_structures import DetectorType, DescriptorType
from FeatureTracking.keypoint_statistics import RunStatistics
from FeatureTracking.reporting import (
    format_value, format_breakdown, format_summary_row, format_report,
    format_summary_table, breakdown_dataframe, summary_dataframe, export_summary_csv, plot_summary
)


@pytest.fixture
def stats():
    return RunStatistics(
        DetectorType.FAST, DescriptorType.BRIEF,
        frame_indices=[0, 1, 2],
        num_keypoints=[10, 12, 14],
        detect_times=[1.0, 2.0, 3.0],
        num_selected_keypoints=[2, 0, 4],
        mean_sizes=[7.0, None, 7.0],
        size_variances=[0.0, None, 0.0],
        describe_times=[0.5, 0.5, 0.5],
        num_matches=[1, 3],
        match_times=[0.25, 0.75],
    )


def test_format_value():
    assert format_value(None) == "n/a"
    assert format_value(12) == "12"
    assert format_value(2.5) == "2.5"


def test_breakdown_row_order_and_aggregates(stats):
    lines = format_breakdown(stats).splitlines()
    assert len(lines) == 5
    assert lines[0] == "| FAST | # keypoints | 10 | 12 | 14 | 12 |"
    assert lines[1] == "| | Time [ms] | 1 | 2 | 3 | 2 |"
    assert lines[2] == "| | # selected keypoints | 2 | 0 | 4 | 2 |"
    assert lines[3] == "| | avg. keypoint size | 7 | n/a | 7 | 7 |"
    assert lines[4] == "| | keypoint size variance | 0 | n/a | 0 | 0 |"


def test_summary_row(stats):
    assert format_summary_row(stats) == "| FAST | BRIEF | 2 | 2 | 0.5 | 0.5 | 3 | n/a |"


def test_report_sections_separated_by_blank_line(stats):
    report = format_report(stats, per_frame=True, summary=True)
    breakdown, summary = report.split("\n\n")
    assert breakdown == format_breakdown(stats)
    assert summary == format_summary_row(stats)


def test_report_modes_toggle_independently(stats):
    assert format_report(stats, per_frame=True, summary=False) == format_breakdown(stats)
    assert format_report(stats, per_frame=False, summary=True) == format_summary_row(stats)
    assert format_report(stats, per_frame=False, summary=False) == ""

    with_header = format_report(stats, per_frame=False, summary=True, summary_header=True)
    assert with_header.splitlines()[0].startswith("| Detector | Descriptor |")


def test_breakdown_dataframe(stats):
    df = breakdown_dataframe(stats)
    assert list(df.columns) == ['0', '1', '2', 'average']
    assert list(df.index)[0] == '# keypoints'
    assert df.loc['# keypoints', 'average'] == 12


def test_export_summary_csv(stats, tmp_path):
    path = export_summary_csv([stats, stats], str(tmp_path), filename='summary.csv')
    assert path == tmp_path / 'summary.csv'

    df = pd.read_csv(path)
    assert len(df) == 2
    assert df.loc[0, 'detector'] == 'FAST'
    assert df.loc[0, 'avg_matches'] == 2.0


def test_summary_dataframe_columns(stats):
    df = summary_dataframe([stats])
    assert {'detector', 'descriptor', 'avg_matches', 'avg_total_time_ms'} <= set(df.columns)


def test_plot_summary(stats, tmp_path):
    output = tmp_path / 'plots' / 'summary.png'
    fig = plot_summary([stats], output_path=str(output))
    assert output.exists()
    assert len(fig.axes) == 2


@pytest.fixture
def single_frame_stats():
    return RunStatistics(
        DetectorType.ORB, DescriptorType.ORB,
        frame_indices=[0],
        num_keypoints=[4],
        detect_times=[1.5],
        num_selected_keypoints=[0],
        mean_sizes=[None],
        size_variances=[None],
        describe_times=[0.5],
    )


def test_single_frame_summary_row_shows_missing_averages(single_frame_stats):
    assert format_summary_row(single_frame_stats) == "| ORB | ORB | n/a | 1.5 | 0.5 | n/a | n/a | n/a |"


def test_breakdown_without_contributing_frames(single_frame_stats):
    lines = format_breakdown(single_frame_stats).splitlines()
    assert lines[0] == "| ORB | # keypoints | 4 | 4 |"
    assert lines[3] == "| | avg. keypoint size | n/a | n/a |"

    df = breakdown_dataframe(single_frame_stats)
    assert df.loc['avg. keypoint size', 'average'] is None or pd.isna(df.loc['avg. keypoint size', 'average'])


def test_summary_table(stats, single_frame_stats):
    lines = format_summary_table([stats, single_frame_stats]).splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("| Detector | Descriptor |")
    assert lines[1] == format_summary_row(stats)
    assert lines[2] == format_summary_row(single_frame_stats)


def test_plot_summary_with_missing_averages(stats, single_frame_stats, tmp_path):
    output = tmp_path / 'summary.png'
    plot_summary([stats, single_frame_stats], output_path=str(output))
    assert output.exists()
