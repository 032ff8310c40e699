import json

import pytest

from simdrome.messages import (
    MalformedMessage,
    StatusMessage,
    StreamFrame,
    classify_line,
    parse_message,
)


def test_status_message():
    msg = classify_line('{"status": "simulation started"}')
    assert msg == StatusMessage(status="simulation started")


def test_frame_message():
    line = json.dumps({
        "objects": [[[7000, 0, 0], [0, 7, 0]], [[0, 8000, 10], [1, 2, 3]]],
        "object_count": 2,
        "total_num_collisions": 4,
        "step_num_collision": 1,
    })
    frame = classify_line(line)
    assert isinstance(frame, StreamFrame)
    assert len(frame) == 2
    assert frame.positions_km.tolist() == [[7000, 0, 0], [0, 8000, 10]]
    assert frame.velocities_km_s.tolist() == [[0, 7, 0], [1, 2, 3]]
    assert frame.stats.total_num_collisions == 4
    assert frame.stats.step_num_collision == 1


def test_frame_counters_default():
    frame = classify_line('{"objects": [[[1, 2, 3], [4, 5, 6]]]}')
    assert frame.object_count == 1
    assert frame.total_num_collisions == 0
    assert frame.step_num_collision == 0


def test_empty_frame():
    frame = classify_line('{"objects": [], "object_count": 0}')
    assert isinstance(frame, StreamFrame)
    assert len(frame) == 0


@pytest.mark.parametrize("line", [
    "not json",
    "[1, 2, 3]",
    '"just a string"',
    '{"foo": 1}',
    '{"objects": "nope"}',
    '{"objects": [[[1, 2], [3, 4]]]}',
    '{"objects": [[[1, 2, 3]]]}',
    '{"objects": [[[1, 2, 3], [4, 5, 6]], [[1, 2, 3]]]}',
    '{"objects": [[["a", 2, 3], [4, 5, 6]]]}',
    '{"objects": [[[NaN, 2, 3], [4, 5, 6]]]}',
    '{"objects": [[[1, 2, 3], [4, 5, 6]]], "total_num_collisions": "3"}',
    '{"objects": [[[1, 2, 3], [4, 5, 6]]], "step_num_collision": true}',
    '{"objects": [[["7000", 0, 0], [0, 7, 0]]]}',
    '{"objects": [[[true, 0, 0], [0, 7, 0]]]}',
    '{"objects": [[[1e306, 0, 0], [0, 7, 0]]]}',
    '{"objects": [[[1' + '0' * 400 + ', 0, 0], [0, 7, 0]]]}',
])
def test_unusable_lines_are_dropped(line, caplog):
    assert classify_line(line) is None
    assert "Skipping malformed stream line" in caplog.text


def test_parse_message_raises_for_garbage():
    with pytest.raises(MalformedMessage):
        parse_message("{")


def test_status_takes_precedence_over_objects():
    msg = classify_line('{"status": "done", "objects": []}')
    assert isinstance(msg, StatusMessage)


def test_deeply_nested_line_is_dropped():
    assert classify_line("[" * 100000 + "]" * 100000) is None
