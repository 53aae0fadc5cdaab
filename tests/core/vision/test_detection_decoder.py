"""Tests for raw tensor decoding into candidate boxes."""

from __future__ import annotations

import numpy as np
import pytest

from core.vision.detected_object import FRONT, LEFT, RIGHT
from core.vision.detection_decoder import (
    DetectionDecoder,
    DetectorConfigurationError,
    load_labels,
    resolve_input_size,
)
from utils.config_sections import DetectionConfig

LABELS = ["person", "bicycle", "car", "dog", "bottle", "chair"]


def make_tensor(elements, num_classes=len(LABELS)):
    """elements: list of (cx, cy, w, h, {class_index: score})."""
    table = np.zeros((4 + num_classes, len(elements)), dtype=np.float32)
    for index, (cx, cy, w, h, scores) in enumerate(elements):
        table[0:4, index] = (cx, cy, w, h)
        for class_index, score in scores.items():
            table[4 + class_index, index] = score
    return table


@pytest.fixture()
def decoder() -> DetectionDecoder:
    return DetectionDecoder(LABELS, DetectionConfig())


def test_valid_box_is_kept(decoder: DetectionDecoder):
    result = decoder.decode(make_tensor([(0.5, 0.5, 0.6, 0.4, {0: 0.8})]))

    assert result is not None and len(result) == 1
    box = result[0]
    assert box.x1 == pytest.approx(0.2)
    assert box.x2 == pytest.approx(0.8)
    assert box.class_name == "person"
    assert box.confidence == pytest.approx(0.8)
    assert box.direction == FRONT
    assert box.distance_cm == 0.0


def test_box_outside_frame_is_rejected(decoder: DetectionDecoder):
    result = decoder.decode(make_tensor([(0.5, 0.5, 1.5, 0.4, {0: 0.8})]))

    assert result is None


def test_threshold_is_strict(decoder: DetectionDecoder):
    assert decoder.decode(make_tensor([(0.5, 0.5, 0.2, 0.2, {2: 0.3})])) is None
    assert decoder.decode(make_tensor([(0.5, 0.5, 0.2, 0.2, {2: 0.31})])) is not None


def test_highest_score_selects_class(decoder: DetectionDecoder):
    result = decoder.decode(make_tensor([(0.5, 0.5, 0.2, 0.2, {1: 0.4, 3: 0.7, 5: 0.6})]))

    assert result[0].class_index == 3
    assert result[0].class_name == "dog"


def test_equal_scores_pick_first_class(decoder: DetectionDecoder):
    result = decoder.decode(make_tensor([(0.5, 0.5, 0.2, 0.2, {2: 0.5, 4: 0.5})]))

    assert result[0].class_index == 2


@pytest.mark.parametrize(
    "cx, expected",
    [(0.2, LEFT), (0.329, LEFT), (0.33, FRONT), (0.5, FRONT), (0.66, RIGHT), (0.8, RIGHT)],
)
def test_direction_buckets(decoder: DetectionDecoder, cx: float, expected: str):
    result = decoder.decode(make_tensor([(cx, 0.5, 0.1, 0.1, {0: 0.9})]))

    assert result[0].direction == expected


def test_mixed_elements_only_keep_valid(decoder: DetectionDecoder):
    tensor = make_tensor([
        (0.5, 0.5, 0.6, 0.4, {0: 0.9}),
        (0.5, 0.5, 1.5, 0.4, {1: 0.9}),
        (0.2, 0.5, 0.1, 0.1, {2: 0.1}),
        (0.8, 0.5, 0.2, 0.2, {5: 0.95}),
    ])

    result = decoder.decode(tensor)

    assert sorted(box.class_name for box in result) == ["chair", "person"]


def test_flat_buffer_is_channel_major(decoder: DetectionDecoder):
    table = make_tensor([
        (0.1, 0.1, 0.05, 0.05, {}),
        (0.5, 0.5, 0.2, 0.2, {4: 0.9}),
    ])
    flat = table.reshape(-1)
    num_channels, num_elements = table.shape

    # element 1 of channel 4 + 4 (bottle) lives at 1 + N * 8
    assert flat[1 + num_elements * 8] == pytest.approx(0.9)

    result = decoder.decode(flat, num_channels, num_elements)
    assert len(result) == 1
    assert result[0].class_name == "bottle"


def test_batched_output_is_accepted(decoder: DetectionDecoder):
    table = make_tensor([(0.5, 0.5, 0.2, 0.2, {0: 0.9})])

    result = decoder.decode(table[np.newaxis, ...])

    assert len(result) == 1


def test_flat_buffer_size_mismatch_raises(decoder: DetectionDecoder):
    with pytest.raises(ValueError):
        decoder.decode(np.zeros(10, dtype=np.float32), 10, 5)


def test_out_of_range_class_is_configuration_error():
    decoder = DetectionDecoder(["person", "car"], DetectionConfig())
    tensor = make_tensor([(0.5, 0.5, 0.2, 0.2, {3: 0.9})], num_classes=4)

    with pytest.raises(DetectorConfigurationError):
        decoder.decode(tensor)


def test_non_finite_geometry_is_rejected(decoder: DetectionDecoder):
    tensor = make_tensor([(np.nan, 0.5, 0.2, 0.2, {0: 0.9})])

    assert decoder.decode(tensor) is None


def test_empty_label_list_is_rejected():
    with pytest.raises(DetectorConfigurationError):
        DetectionDecoder([])


def test_load_labels_stops_at_first_empty_line(tmp_path):
    path = tmp_path / "labels.txt"
    path.write_text("person\n bicycle \ncar\n\nignored\n", encoding="utf-8")

    assert load_labels(path) == ["person", "bicycle", "car"]


def test_load_labels_empty_file_raises(tmp_path):
    path = tmp_path / "labels.txt"
    path.write_text("\n", encoding="utf-8")

    with pytest.raises(DetectorConfigurationError):
        load_labels(path)


def test_resolve_input_size_handles_both_layouts():
    assert resolve_input_size((1, 3, 480, 640)) == (640, 480)
    assert resolve_input_size((1, 320, 416, 3)) == (416, 320)

    with pytest.raises(ValueError):
        resolve_input_size((3, 640, 640))
