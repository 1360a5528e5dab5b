import json

import pytest

from FeatureTracking.config import (
    TrackingConfig, get_default_config, merge_configs, validate_config,
    create_config_from_preset, save_config, load_config, get_detector_config
)
from FeatureTracking.core_data_structures import (
    DetectorType, DescriptorType, MatcherBackend, SelectorType
)
from FeatureTracking.exceptions import ConfigurationError
from FeatureTracking.roi_filter import RegionOfInterest


def test_defaults_are_valid():
    result = validate_config(get_default_config())
    assert result['errors'] == []


def test_from_dict_defaults():
    config = TrackingConfig.from_dict({})
    assert config.detector_type is DetectorType.FAST
    assert config.descriptor_type is DescriptorType.BRISK
    assert config.frame_index_range == (0, 9)
    assert list(config.frame_indices) == list(range(10))
    assert config.roi_rectangle == RegionOfInterest(535, 180, 180, 150)
    assert config.matcher_backend is MatcherBackend.BRUTE_FORCE
    assert config.selector_type is SelectorType.KNN
    assert config.ratio_threshold == 0.8
    assert config.detector_params == get_detector_config('FAST')


def test_detector_params_override():
    config = TrackingConfig.from_dict({
        'detector_type': 'HARRIS',
        'detector_params': {'HARRIS': {'min_response': 80}},
    })
    assert config.detector_params['min_response'] == 80
    assert config.detector_params['aperture_size'] == 3


def test_merge_configs_is_deep_and_does_not_mutate():
    base = get_default_config()
    merged = merge_configs(base, {'export': {'output_dir': 'out'}})
    assert merged['export'] == {'output_dir': 'out', 'csv': True, 'plot': False}
    assert base['export']['output_dir'] is None


@pytest.mark.parametrize("override, fragment", [
    ({'detector_type': 'SURF'}, 'DetectorType'),
    ({'detector_type': 'SIFT', 'descriptor_type': 'BRISK'}, 'cannot be combined'),
    ({'buffer_capacity': 0}, 'buffer_capacity'),
    ({'frame_index_range': [5, 2]}, 'frame_index_range'),
    ({'frame_index_range': [0]}, 'frame_index_range'),
    ({'roi_rectangle': [0, 0, 0, 10]}, 'roi_rectangle'),
    ({'ratio_threshold': 1.5}, 'ratio_threshold'),
    ({'matcher_backend': 'MAT_XX'}, 'MatcherBackend'),
    ({'limit_keypoints': True, 'max_keypoints': 0}, 'max_keypoints'),
    ({'visualize': 'yes'}, 'visualize'),
])
def test_invalid_configuration(override, fragment):
    config = merge_configs(get_default_config(), override)
    errors = validate_config(config)['errors']
    assert any(fragment in error for error in errors)

    with pytest.raises(ConfigurationError):
        TrackingConfig.from_dict(override)


def test_warnings():
    assert validate_config(merge_configs(get_default_config(), {'buffer_capacity': 4}))['warnings']
    assert validate_config(merge_configs(get_default_config(), {'frame_index_range': [3, 3]}))['warnings']


def test_presets():
    quick = create_config_from_preset('quick')
    assert quick['frame_index_range'] == [0, 3]
    assert create_config_from_preset('headless')['print_summary_report'] is False
    with pytest.raises(ConfigurationError):
        create_config_from_preset('fastest')


def test_save_and_load(tmp_path):
    path = tmp_path / 'config.json'
    config = merge_configs(get_default_config(), {'detector_type': 'ORB'})
    save_config(config, str(path))
    assert load_config(str(path)) == config


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.json'))

    broken = tmp_path / 'broken.json'
    broken.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_config(str(broken))


def test_config_file_is_plain_json(tmp_path):
    path = tmp_path / 'config.json'
    save_config(get_default_config(), str(path))
    assert json.loads(path.read_text())['roi_rectangle'] == [535, 180, 180, 150]
