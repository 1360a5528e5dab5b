import pandas as pd
import pytest

from conftest import FakeImageSource, FakeDetector, FakeDescriber, FakeMatcher
from FeatureTracking.core_data_structures import DetectorType as D, DescriptorType as S
from FeatureTracking.evaluation import build_evaluation_plan, run_evaluation_plan
from FeatureTracking.exceptions import ConfigurationError, InputError


def fake_providers():
    return {'detector': FakeDetector(), 'describer': FakeDescriber(), 'matcher': FakeMatcher()}


def test_plan_order():
    plan = build_evaluation_plan()
    assert len(plan) == 22
    assert plan[0] == (D.SIFT, S.SIFT)
    assert plan[1] == (D.AKAZE, S.AKAZE)
    assert plan[2:6] == [(D.SHITOMASI, S.BRISK), (D.SHITOMASI, S.ORB),
                         (D.SHITOMASI, S.BRIEF), (D.SHITOMASI, S.FREAK)]
    assert plan[-1] == (D.ORB, S.FREAK)
    assert len(set(plan)) == 22


def test_full_plan_with_fake_providers(quiet_config):
    plan_result = run_evaluation_plan(dict(quiet_config, frame_index_range=[0, 2]),
                                      FakeImageSource(), **fake_providers())

    assert plan_result.succeeded
    assert len(plan_result.results) == 22
    assert [(r.detector, r.descriptor) for r in plan_result.results] == build_evaluation_plan()
    for result in plan_result.results:
        assert result.matched_count == 2
        assert result.skipped_match_count == 1

    assert plan_result.result_for('harris', 'brief').detector is D.HARRIS
    assert plan_result.csv_path is None


def test_failure_is_raised_by_default(quiet_config):
    plan = [(D.FAST, S.BRISK), (D.ORB, S.ORB)]
    with pytest.raises(InputError):
        run_evaluation_plan(quiet_config, FakeImageSource(missing={5}), plan=plan, **fake_providers())


def test_continue_on_error_records_failures(quiet_config):
    plan = [(D.FAST, S.BRISK), (D.SIFT, S.BRISK), (D.ORB, S.ORB)]
    plan_result = run_evaluation_plan(dict(quiet_config, frame_index_range=[0, 1]), FakeImageSource(),
                                      plan=plan, continue_on_error=True, **fake_providers())

    assert not plan_result.succeeded
    assert len(plan_result.results) == 2
    (combination, error), = plan_result.failures
    assert combination == (D.SIFT, S.BRISK)
    assert isinstance(error, ConfigurationError)


def test_summary_export(quiet_config, tmp_path):
    config = dict(quiet_config, frame_index_range=[0, 2],
                  export={'output_dir': str(tmp_path), 'csv': True, 'plot': True})
    plan = [(D.FAST, S.BRISK), (D.FAST, S.ORB)]
    plan_result = run_evaluation_plan(config, FakeImageSource(), plan=plan, **fake_providers())

    assert plan_result.csv_path.exists()
    assert plan_result.plot_path.exists()
    df = pd.read_csv(plan_result.csv_path)
    assert list(df['descriptor']) == ['BRISK', 'ORB']


def test_summary_table_printed_after_all_runs(quiet_config, capsys):
    config = dict(quiet_config, frame_index_range=[0, 2],
                  print_per_frame_report=True, print_summary_report=True)
    plan = [(D.FAST, S.BRISK), (D.FAST, S.ORB)]
    run_evaluation_plan(config, FakeImageSource(), plan=plan, **fake_providers())

    lines = capsys.readouterr().out.strip().splitlines()
    # two breakdowns of five rows, then header and one row per combination
    assert lines[-3].startswith("| Detector | Descriptor |")
    assert lines[-2].startswith("| FAST | BRISK |")
    assert lines[-1].startswith("| FAST | ORB |")
    assert sum(line.startswith("| Detector |") for line in lines) == 1
    assert all("# keypoints" not in line for line in lines[-3:])


def test_no_summary_table_when_disabled(quiet_config, capsys):
    plan = [(D.FAST, S.BRISK)]
    run_evaluation_plan(dict(quiet_config, frame_index_range=[0, 1]), FakeImageSource(),
                        plan=plan, **fake_providers())
    assert capsys.readouterr().out == ""
