import cv2
import numpy as np
import pytest

from FeatureTracking.exceptions import ConfigurationError, InputError
from FeatureTracking.image_loader import ImageSequenceSource, InMemoryImageSource


def test_in_memory_frames_are_copies():
    stored = np.arange(12, dtype=np.uint8).reshape(3, 4)
    source = InMemoryImageSource([stored])

    loaded = source.load(0)
    assert np.array_equal(loaded, stored)
    assert loaded is not stored
    assert not np.shares_memory(loaded, stored)

    # drawing on a loaded frame leaves the stored one untouched
    loaded[:] = 255
    assert source.load(0)[0, 0] == 0


def test_in_memory_color_frames_become_grayscale():
    source = InMemoryImageSource({5: np.zeros((4, 6, 3), dtype=np.uint8)})
    assert source.load(5).shape == (4, 6)
    assert len(source) == 1


def test_in_memory_missing_frame():
    with pytest.raises(InputError) as excinfo:
        InMemoryImageSource([]).load(3)
    assert excinfo.value.frame_index == 3


def test_sequence_path_padding():
    source = ImageSequenceSource('/data', prefix='seq/img_', file_type='.png', fill_width=4)
    assert str(source.path_for(7)).endswith('seq/img_0007.png')


def test_sequence_loads_grayscale(tmp_path):
    cv2.imwrite(str(tmp_path / 'img_0001.png'), np.full((8, 10, 3), 100, dtype=np.uint8))
    image = ImageSequenceSource(tmp_path, prefix='img_').load(1)
    assert image.shape == (8, 10)


def test_sequence_missing_file(tmp_path):
    with pytest.raises(InputError) as excinfo:
        ImageSequenceSource(tmp_path, prefix='img_').load(2)
    assert excinfo.value.frame_index == 2


def test_invalid_fill_width():
    with pytest.raises(ConfigurationError):
        ImageSequenceSource('/data', fill_width=0)
