import numpy as np
import pytest

from FeatureTracking.core_data_structures import FrameRecord
from FeatureTracking.exceptions import ConfigurationError, PreconditionError
from FeatureTracking.frame_buffer import FrameBuffer


def record(index):
    return FrameRecord(image=np.zeros((4, 4), dtype=np.uint8), frame_index=index)


@pytest.mark.parametrize("capacity", [1, 2, 3, 5])
def test_buffer_holds_most_recent_frames_in_arrival_order(capacity):
    buffer = FrameBuffer(capacity)
    for k in range(8):
        buffer.push(record(k))
        assert buffer.size() <= capacity
        expected = list(range(k + 1))[-min(k + 1, capacity):]
        assert buffer.frame_indices() == expected


def test_push_returns_evicted_record():
    buffer = FrameBuffer(2)
    first = record(0)
    assert buffer.push(first) is None
    assert buffer.push(record(1)) is None
    assert buffer.push(record(2)) is first
    assert buffer.evicted_count == 1


def test_latest_and_second_latest():
    buffer = FrameBuffer(2)
    buffer.push(record(0))
    buffer.push(record(1))
    buffer.push(record(2))
    assert buffer.latest().frame_index == 2
    assert buffer.second_latest().frame_index == 1
    assert buffer.has_predecessor()


def test_accessors_on_short_buffer_raise():
    buffer = FrameBuffer(2)
    with pytest.raises(PreconditionError):
        buffer.latest()

    buffer.push(record(0))
    assert buffer.latest().frame_index == 0
    assert not buffer.has_predecessor()
    with pytest.raises(PreconditionError):
        buffer.second_latest()


def test_capacity_one_never_has_predecessor():
    buffer = FrameBuffer(1)
    for k in range(3):
        buffer.push(record(k))
        assert not buffer.has_predecessor()
    assert buffer.frame_indices() == [2]


@pytest.mark.parametrize("capacity", [0, -1, 2.5, True, None])
def test_invalid_capacity(capacity):
    with pytest.raises(ConfigurationError):
        FrameBuffer(capacity)


def test_clear():
    buffer = FrameBuffer(2)
    buffer.push(record(0))
    buffer.clear()
    assert len(buffer) == 0
    assert list(buffer) == []
