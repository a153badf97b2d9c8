"""
charts.py
---------

Chart renderers for the dashboard. Each renderer is a pure function from
aggregated data to a drawing: a list of vector primitives in SVG user
units. The Jinja macros in ``templates/_charts.html`` turn drawings into
inline SVG, so the geometry can be tested without a browser.
"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from .analytics import Breakdown, CumulativeSeries
from .numbers import format_currency

Coord = Tuple[float, float]

# bar chart layout
GROUP_WIDTH = 60
BAR_WIDTH = 30
LANE_HEIGHT = 80
BAR_PADDING = 10
LABEL_HEIGHT = 20

# line chart layout
LINE_WIDTH = 300
LINE_HEIGHT = 200
LINE_PADDING = 10


def _fmt(v: float) -> str:
    return f"{round(v, 2):g}"


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    css_class: str = ""
    kind: str = field(default="rect", init=False)


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    css_class: str = ""
    kind: str = field(default="line", init=False)


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    css_class: str = ""
    kind: str = field(default="text", init=False)


@dataclass(frozen=True)
class Polyline:
    coords: Tuple[Coord, ...]
    css_class: str = ""
    kind: str = field(default="polyline", init=False)

    @property
    def points_attr(self) -> str:
        """SVG ``points`` attribute: 'x,y x,y ...'."""
        return " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in self.coords)


@dataclass(frozen=True)
class Polygon(Polyline):
    kind: str = field(default="polygon", init=False)


@dataclass(frozen=True)
class BarGroup:
    label: str
    result: float
    count: int
    tooltip: str
    bar: Optional[Rect]
    caption: Text


@dataclass(frozen=True)
class BarChart:
    title: str
    width: float
    height: float
    groups: Tuple[BarGroup, ...] = ()
    axis: Optional[Line] = None

    @property
    def empty(self) -> bool:
        return not self.groups

    @property
    def view_box(self) -> str:
        return f"0 0 {_fmt(self.width)} {_fmt(self.height)}"


@dataclass(frozen=True)
class LineChart:
    title: str
    width: float = LINE_WIDTH
    height: float = LINE_HEIGHT
    zero_line: Optional[Line] = None
    area: Optional[Polygon] = None
    trend: Optional[Polyline] = None

    @property
    def empty(self) -> bool:
        return self.trend is None

    @property
    def view_box(self) -> str:
        return f"0 0 {_fmt(self.width)} {_fmt(self.height)}"

    @property
    def elements(self) -> List[object]:
        """Draw order: zero line, area, trend line."""
        return [e for e in (self.zero_line, self.area, self.trend) if e is not None]


def bar_chart(data: Breakdown, title: str, lang: str = "pt", labels: Optional[Mapping[str, str]] = None) -> BarChart:
    """One bar group per category, gains above the axis and losses below.

    Bar height is |result| / max(max |result|, 1) of a lane. A category
    whose result is exactly zero gets no bar. ``labels`` optionally maps
    category keys to display names (used for translated sides).
    """
    height = 2 * BAR_PADDING + 2 * LANE_HEIGHT + LABEL_HEIGHT
    entries = list(data.items())
    if not entries:
        return BarChart(title=title, width=LINE_WIDTH, height=height)

    labels = labels or {}
    max_abs = max([abs(v["result"]) for _, v in entries] + [1])
    axis_y = BAR_PADDING + LANE_HEIGHT
    width = GROUP_WIDTH * len(entries)

    groups = []
    for i, (key, value) in enumerate(entries):
        result = value["result"]
        bar_height = abs(result) / max_abs * LANE_HEIGHT
        x = i * GROUP_WIDTH + (GROUP_WIDTH - BAR_WIDTH) / 2
        bar = None
        if result > 0:
            bar = Rect(x, axis_y - bar_height, BAR_WIDTH, bar_height, "bar bar-gain")
        elif result < 0:
            bar = Rect(x, axis_y, BAR_WIDTH, bar_height, "bar bar-loss")
        label = labels.get(key, key)
        groups.append(
            BarGroup(
                label=label,
                result=result,
                count=int(value["count"]),
                tooltip=f"{label}: {format_currency(result, lang)} ({int(value['count'])} ops)",
                bar=bar,
                caption=Text(i * GROUP_WIDTH + GROUP_WIDTH / 2, height - BAR_PADDING, label, "bar-label"),
            )
        )
    return BarChart(
        title=title,
        width=width,
        height=height,
        groups=tuple(groups),
        axis=Line(0, axis_y, width, axis_y, "zero-axis"),
    )


def line_chart(series: CumulativeSeries, title: str) -> LineChart:
    """Cumulative result as a trend line over a filled area.

    Needs at least two points. The y domain always includes zero so the
    zero reference line stays visible.
    """
    values: Sequence[float] = series.values
    if len(values) < 2:
        return LineChart(title=title)

    chart_w = LINE_WIDTH - 2 * LINE_PADDING
    chart_h = LINE_HEIGHT - 2 * LINE_PADDING
    lo = min(min(values), 0)
    hi = max(max(values), 0)
    span = (hi - lo) or 1
    bottom = LINE_PADDING + chart_h

    def y_for(v: float) -> float:
        return bottom - (v - lo) / span * chart_h

    coords = tuple(
        (LINE_PADDING + i / (len(values) - 1) * chart_w, y_for(v))
        for i, v in enumerate(values)
    )
    area = coords + ((LINE_PADDING + chart_w, bottom), (LINE_PADDING, bottom))
    zero_y = y_for(0)
    return LineChart(
        title=title,
        zero_line=Line(LINE_PADDING, zero_y, LINE_WIDTH - LINE_PADDING, zero_y, "zero-axis"),
        area=Polygon(area, "line-area"),
        trend=Polyline(coords, "line-path"),
    )
