import pytest

from procsuite.tload import SystemLoadAvg
from procsuite.tload_tui import chart_points, header_lines, render_frame, y_axis_labels


def _history(*loads):
    return [SystemLoadAvg(load, load, load) for load in loads]


def test_header_lines_show_newest_sample():
    history = [SystemLoadAvg(9.0, 9.0, 9.0), SystemLoadAvg(0.52, 0.58, 0.59)]
    lines = header_lines(history)
    assert lines[0] == "Last 1 min load:    0.52"
    assert lines[1].endswith("0.58")
    assert lines[2].startswith("Last 10 min load:")
    assert lines[2].endswith("0.59")


def test_header_lines_empty_history():
    with pytest.raises(ValueError):
        header_lines([])


def test_chart_points_keep_newest_within_width():
    history = _history(1.0, 2.0, 3.0)
    assert chart_points(history, 2) == [(0.0, 2.0), (1.0, 3.0)]
    assert chart_points(history, 10) == [(0.0, 1.0), (1.0, 2.0), (2.0, 3.0)]
    assert chart_points(history, 0) == []


def test_y_axis_labels_have_headroom():
    assert y_axis_labels([(0.0, 1.0)]) == ["0.0", "0.6", "1.2"]


def test_y_axis_labels_without_points():
    assert y_axis_labels([]) == ["0.0", "0.0", "0.0"]


def test_y_axis_labels_ordered():
    labels = y_axis_labels([(0.0, 3.3), (1.0, 7.1)])
    values = [float(label) for label in labels]
    assert values == sorted(values)
    assert values[2] > 7.1


@pytest.mark.parametrize("width,height", [(80, 24), (40, 12), (30, 5), (20, 3)])
def test_render_frame_dimensions(width, height):
    frame = render_frame(_history(0.5, 1.5, 0.75), width, height)
    lines = frame.split("\n")
    assert len(lines) == height
    assert all(len(line) == width for line in lines)


def test_render_frame_contents():
    frame = render_frame(_history(0.5, 2.5), 60, 20)
    assert "System load history" in frame
    assert "Last 1 min load:" in frame
    assert "Time(per delay)" in frame
    assert "•" in frame


def test_render_frame_empty_history():
    with pytest.raises(ValueError):
        render_frame([], 80, 24)