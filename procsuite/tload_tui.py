"""Text rendering of the system load history drawn by tload."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, Sequence

_HEADER_HEIGHT = 5
_TITLE = "System load history"
_Y_TITLE = "System Load"
_X_TITLE = "Time(per delay)"
_MARK = "•"


class _LoadSample(Protocol):
    last_1: float
    last_5: float
    last_10: float


def _format_load(value: float) -> str:
    if value != value or value in (float("inf"), float("-inf")):
        return str(value)
    if float(value).is_integer():
        return str(int(value))
    text = repr(float(value))
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


def header_lines(history: Sequence[_LoadSample]) -> list[str]:
    """The three summary lines describing the newest sample."""
    if not history:
        raise ValueError("load history is empty")
    newest = history[-1]
    return [
        f"Last 1 min load:   {_format_load(newest.last_1):>5}",
        f"Last 5 min load:   {_format_load(newest.last_5):>5}",
        f"Last 10 min load:  {_format_load(newest.last_10):>5}",
    ]


def chart_points(history: Sequence[_LoadSample], width: int) -> list[tuple[float, float]]:
    """The newest ``width`` one-minute loads, numbered from 0."""
    width = max(int(width), 0)
    recent = list(history)[max(len(history) - width, 0):]
    return [(float(index), float(sample.last_1)) for index, sample in enumerate(recent)]


def _upper_bound(points: Sequence[tuple[float, float]]) -> float:
    highest = max((y for _, y in points), default=0.0)
    # Leave a fifth of headroom so the line never touches the top edge.
    return highest + highest * 0.2


def y_axis_labels(points: Sequence[tuple[float, float]]) -> list[str]:
    """Labels for the bottom, middle and top of the load axis."""
    upper = _upper_bound(points)
    return ["0.0", f"{upper / 2.0:.1f}", f"{upper:.1f}"]


def _fit(line: str, width: int) -> str:
    return line[:width].ljust(width)


def _header_box(history: Sequence[_LoadSample], width: int) -> list[str]:
    inner = max(width - 2, 0)
    top = "┌" + _TITLE[:inner] + "─" * max(inner - len(_TITLE), 0) + "┐"
    body = ["│" + text[:inner].ljust(inner) + "│" for text in header_lines(history)]
    bottom = "└" + "─" * inner + "┘"
    return [top, *body, bottom]


def _chart(history: Sequence[_LoadSample], width: int, height: int) -> list[str]:
    points = chart_points(history, width)
    labels = y_axis_labels(points)
    upper = _upper_bound(points)
    label_width = max(len(label) for label in labels)
    plot_width = max(width - label_width - 1, 0)
    rows = max(height - 4, 0)

    grid = [[" "] * plot_width for _ in range(rows)]
    if rows and plot_width:
        for x, y in points:
            column = round(x / width * (plot_width - 1)) if width and plot_width > 1 else 0
            level = round(y / upper * (rows - 1)) if upper > 0 and rows > 1 else 0
            column = min(max(column, 0), plot_width - 1)
            level = min(max(level, 0), rows - 1)
            grid[rows - 1 - level][column] = _MARK

    def row_label(row: int) -> str:
        if row == 0:
            return labels[2]
        if row == rows - 1:
            return labels[0]
        if rows > 2 and row == (rows - 1) // 2:
            return labels[1]
        return ""

    lines = [_Y_TITLE]
    lines += [row_label(row).rjust(label_width) + "│" + "".join(cells) for row, cells in enumerate(grid)]
    lines.append(" " * label_width + "└" + "─" * plot_width)

    x_labels = [" "] * plot_width
    for text, start in (
        ("0", 0),
        (str(width // 2), plot_width // 2 - len(str(width // 2)) // 2),
        (str(width), plot_width - len(str(width))),
    ):
        for offset, char in enumerate(text):
            position = start + offset
            if 0 <= position < plot_width:
                x_labels[position] = char
    lines.append(" " * (label_width + 1) + "".join(x_labels))
    lines.append(_X_TITLE.rjust(width))
    return lines[:height]


def render_frame(history: Sequence[_LoadSample], width: int, height: int) -> str:
    """Draw the summary box and load chart into exactly ``height`` lines of ``width`` columns."""
    if not history:
        raise ValueError("load history is empty")
    width = max(int(width), 0)
    height = max(int(height), 0)
    lines = _header_box(history, width)[:height]
    chart_height = height - _HEADER_HEIGHT
    if chart_height > 0:
        lines += _chart(history, width, chart_height)
    lines += [""] * (height - len(lines))
    return "\n".join(_fit(line, width) for line in lines)