"""AR overlay: analysis + mode + current step -> layered screen-space scene.

``render_scene`` is pure. It projects every board-surface coordinate through
:func:`circuitsense.projection.project` and returns declarative primitives
grouped into named layers, composited in order:

    board -> thermal -> flow -> nets -> components -> probes

``scene_to_svg`` turns a scene into an SVG document over an optional photo.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, Union
from xml.sax.saxutils import escape, quoteattr

from .models import (
    AnalysisResult,
    AssistantMode,
    Corners,
    NetCategory,
    Point,
    ThermalLevel,
)
from .projection import project_box, project_point

THERMAL_PALETTE = {
    ThermalLevel.COOL: "#3b82f6",
    ThermalLevel.NOMINAL: "#10b981",
    ThermalLevel.WARM: "#fbbf24",
    ThermalLevel.HOT: "#f97316",
    ThermalLevel.CRITICAL: "#ef4444",
}
THERMAL_FALLBACK = "#64748b"

NET_PALETTE = {
    NetCategory.GND: "#94a3b8",
    NetCategory.VCC: "#ef4444",
    NetCategory.V3V3: "#f97316",
    NetCategory.V5: "#facc15",
    NetCategory.SIGNAL: "#22d3ee",
    NetCategory.BUS: "#a855f7",
    NetCategory.PROTECTION: "#10b981",
}

NEUTRAL_COLOR = "#3b82f6"
ALERT_COLOR = "#f43f5e"
FAILURE_SNIPPET_CHARS = 30
PROBE_ARC_LIFT = 120.0


# ---- primitives ----

@dataclass(frozen=True)
class Polygon:
    points: Tuple[Point, ...]
    stroke: str
    stroke_width: float = 1.5
    fill: str = "none"
    dash: Optional[str] = None
    pulse: bool = False


@dataclass(frozen=True)
class Line:
    start: Point
    end: Point
    stroke: str
    stroke_width: float = 2.0
    dash: Optional[str] = None


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float
    fill: str = "none"
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    opacity: float = 1.0
    glow: Optional[str] = None
    pulse: bool = False


@dataclass(frozen=True)
class Text:
    anchor: Point
    text: str
    fill: str = "white"
    size: float = 12.0
    bold: bool = False
    align: str = "middle"


@dataclass(frozen=True)
class Curve:
    """Quadratic Bezier from ``start`` to ``end`` through ``control``."""

    start: Point
    control: Point
    end: Point
    stroke: str = "white"
    stroke_width: float = 2.0
    dash: Optional[str] = None
    opacity: float = 1.0


@dataclass(frozen=True)
class LabelBox:
    """Rectangle whose top-left sits at ``anchor``, with stacked text lines."""

    anchor: Point
    width: float
    height: float
    lines: Tuple[str, ...]
    fill: str
    stroke: Optional[str] = None


Primitive = Union[Polygon, Line, Circle, Text, Curve, LabelBox]


@dataclass(frozen=True)
class Layer:
    name: str
    primitives: Tuple[Primitive, ...] = field(default_factory=tuple)


Scene = Tuple[Layer, ...]


# ---- layers ----

def _board_layer(corners: Corners) -> Layer:
    outline = Polygon(
        points=corners.as_tuple(),
        stroke="rgba(59, 130, 246, 0.2)",
        stroke_width=1.0,
        fill="rgba(59, 130, 246, 0.01)",
        dash="5,15",
    )
    return Layer("board", (outline,))


def _thermal_layer(result: AnalysisResult, corners: Corners) -> Layer:
    prims: List[Primitive] = []
    for comp in result.components:
        p = project_point(comp.centroid, corners)
        color = THERMAL_PALETTE.get(comp.thermal_signature, THERMAL_FALLBACK)
        prims.append(Circle(center=p, radius=60.0, fill=color, opacity=0.4, glow="blur-thermal", pulse=True))
        if comp.thermal_signature == ThermalLevel.CRITICAL:
            prims.append(Text(anchor=Point(x=p.x, y=p.y - 40), text="CRITICAL_TEMP", bold=True))
    return Layer("thermal", tuple(prims))


def _flow_layer(result: AnalysisResult, corners: Corners) -> Layer:
    prims: List[Primitive] = []
    stages = result.sorted_stages()
    for prev, curr in zip(stages, stages[1:]):
        if not prev.components or not curr.components:
            continue
        prev_comp = result.component(prev.components[0])
        curr_comp = result.component(curr.components[0])
        if prev_comp is None or curr_comp is None:
            continue
        p1 = project_point(prev_comp.centroid, corners)
        p2 = project_point(curr_comp.centroid, corners)
        prims.append(Line(start=p1, end=p2, stroke="rgba(255,255,255,0.4)", stroke_width=2.0, dash="10,5"))
        prims.append(Circle(center=p2, radius=5.0, fill="white", pulse=True))
    return Layer("flow", tuple(prims))


def _net_layer(result: AnalysisResult, corners: Corners, category: NetCategory) -> Layer:
    prims: List[Primitive] = []
    for net in result.nets:
        if net.category != category or len(net.points) < 2:
            continue
        color = NET_PALETTE.get(net.category, NEUTRAL_COLOR)
        pts = [project_point(p, corners) for p in net.points]
        for a, b in zip(pts, pts[1:]):
            prims.append(Line(start=a, end=b, stroke=color, stroke_width=3.0))
        prims.append(Text(anchor=pts[0], text=net.label, fill=color, size=9.0, align="start"))
    return Layer("nets", tuple(prims))


def _truncate(text: Optional[str], limit: int = FAILURE_SNIPPET_CHARS) -> str:
    return f"{(text or '')[:limit]}..."


def _component_layer(result: AnalysisResult, corners: Corners, mode: AssistantMode) -> Layer:
    prims: List[Primitive] = []
    tutorial = mode == AssistantMode.TUTORIAL
    for comp in result.components:
        box = project_box(comp.xmin, comp.ymin, comp.xmax, comp.ymax, corners)
        color = ALERT_COLOR if comp.is_suspect else NEUTRAL_COLOR
        prims.append(
            Polygon(
                points=box,
                stroke=color,
                stroke_width=4.0 if tutorial else 1.5,
                pulse=comp.is_suspect,
            )
        )
        tl = box[0]
        if tutorial:
            prims.append(
                LabelBox(
                    anchor=Point(x=tl.x, y=tl.y - 50),
                    width=220.0,
                    height=45.0,
                    lines=(comp.name.upper(), f'"{comp.causal_role}"'),
                    fill="rgba(15, 23, 42, 0.95)",
                    stroke=color,
                )
            )
        elif comp.is_suspect:
            prims.append(
                LabelBox(
                    anchor=Point(x=tl.x, y=tl.y - 45),
                    width=180.0,
                    height=40.0,
                    lines=(f"SUSPECT: {comp.name}".upper(), _truncate(comp.failure_analysis)),
                    fill=ALERT_COLOR,
                )
            )
    return Layer("components", tuple(prims))


def probe_arc_control(black: Point, red: Point) -> Point:
    return Point(x=(black.x + red.x) / 2, y=min(black.y, red.y) - PROBE_ARC_LIFT)


def _probe_layer(result: AnalysisResult, corners: Corners, step_index: int) -> Layer:
    if not 0 <= step_index < len(result.steps):
        return Layer("probes")
    step = result.steps[step_index]
    red = project_point(step.red_probe, corners)
    black = project_point(step.black_probe, corners)
    prims: Tuple[Primitive, ...] = (
        Curve(start=black, control=probe_arc_control(black, red), end=red, dash="8,8", opacity=0.3),
        Circle(center=black, radius=20.0, fill="#0f172a", stroke="#475569", stroke_width=4.0),
        Circle(center=red, radius=20.0, fill="#dc2626", stroke="white", stroke_width=4.0, glow="glow-red"),
        Circle(center=red, radius=50.0, stroke="#ef4444", stroke_width=2.0, pulse=True),
    )
    return Layer("probes", prims)


def render_scene(
    result: Optional[AnalysisResult],
    mode: AssistantMode,
    step_index: int,
    active_net_filter: Optional[NetCategory] = None,
) -> Scene:
    if result is None or result.board_pose is None:
        return ()
    corners = result.board_pose.corners
    layers: List[Layer] = [_board_layer(corners)]
    if mode == AssistantMode.THERMAL:
        layers.append(_thermal_layer(result, corners))
    if mode == AssistantMode.TUTORIAL:
        layers.append(_flow_layer(result, corners))
    if mode != AssistantMode.THERMAL:
        if active_net_filter is not None:
            layers.append(_net_layer(result, corners, active_net_filter))
        layers.append(_component_layer(result, corners, mode))
    if mode == AssistantMode.MEASUREMENT:
        layers.append(_probe_layer(result, corners, step_index))
    return tuple(layers)


def layer(scene: Scene, name: str) -> Optional[Layer]:
    for lyr in scene:
        if lyr.name == name:
            return lyr
    return None


# ---- SVG ----

_SVG_DEFS = (
    "<defs>"
    '<filter id="blur-thermal" x="-50%" y="-50%" width="200%" height="200%">'
    '<feGaussianBlur stdDeviation="30" result="blur"/>'
    '<feComposite in="SourceGraphic" in2="blur" operator="over"/></filter>'
    '<filter id="glow-red" x="-50%" y="-50%" width="200%" height="200%">'
    '<feGaussianBlur stdDeviation="10" result="blur"/>'
    '<feComposite in="SourceGraphic" in2="blur" operator="over"/></filter>'
    "</defs>"
)

_PULSE = '<animate attributeName="opacity" values="1;0.35;1" dur="1.6s" repeatCount="indefinite"/>'


def _num(v: float) -> str:
    return f"{v:.2f}".rstrip("0").rstrip(".")


def _pts(points: Iterable[Point]) -> str:
    return " ".join(f"{_num(p.x)},{_num(p.y)}" for p in points)


def _dash(dash: Optional[str]) -> str:
    return f' stroke-dasharray="{dash}"' if dash else ""


def _element(prim: Primitive) -> str:
    if isinstance(prim, Polygon):
        body = _PULSE if prim.pulse else ""
        return (
            f'<polygon points="{_pts(prim.points)}" fill={quoteattr(prim.fill)} stroke={quoteattr(prim.stroke)} '
            f'stroke-width="{_num(prim.stroke_width)}"{_dash(prim.dash)}>{body}</polygon>'
        )
    if isinstance(prim, Line):
        return (
            f'<line x1="{_num(prim.start.x)}" y1="{_num(prim.start.y)}" x2="{_num(prim.end.x)}" y2="{_num(prim.end.y)}" '
            f'stroke={quoteattr(prim.stroke)} stroke-width="{_num(prim.stroke_width)}"{_dash(prim.dash)}/>'
        )
    if isinstance(prim, Circle):
        attrs = f'cx="{_num(prim.center.x)}" cy="{_num(prim.center.y)}" r="{_num(prim.radius)}" fill={quoteattr(prim.fill)}'
        if prim.stroke:
            attrs += f' stroke={quoteattr(prim.stroke)} stroke-width="{_num(prim.stroke_width)}"'
        if prim.opacity < 1.0:
            attrs += f' opacity="{_num(prim.opacity)}"'
        if prim.glow:
            attrs += f' filter="url(#{prim.glow})"'
        body = _PULSE if prim.pulse else ""
        return f"<circle {attrs}>{body}</circle>"
    if isinstance(prim, Text):
        weight = ' font-weight="bold"' if prim.bold else ""
        return (
            f'<text x="{_num(prim.anchor.x)}" y="{_num(prim.anchor.y)}" fill={quoteattr(prim.fill)} '
            f'font-size="{_num(prim.size)}" font-family="monospace" text-anchor="{prim.align}"{weight}>'
            f"{escape(prim.text)}</text>"
        )
    if isinstance(prim, Curve):
        d = (
            f"M {_num(prim.start.x)} {_num(prim.start.y)} "
            f"Q {_num(prim.control.x)} {_num(prim.control.y)} {_num(prim.end.x)} {_num(prim.end.y)}"
        )
        return (
            f'<path d="{d}" fill="none" stroke={quoteattr(prim.stroke)} stroke-width="{_num(prim.stroke_width)}"'
            f'{_dash(prim.dash)} opacity="{_num(prim.opacity)}"/>'
        )
    if isinstance(prim, LabelBox):
        x, y = prim.anchor.x, prim.anchor.y
        stroke = f" stroke={quoteattr(prim.stroke)}" if prim.stroke else ""
        parts = [
            f'<g transform="translate({_num(x)}, {_num(y)})">',
            f'<rect width="{_num(prim.width)}" height="{_num(prim.height)}" rx="6" fill={quoteattr(prim.fill)}{stroke}/>',
        ]
        for i, line in enumerate(prim.lines):
            size = 10 if i == 0 else 8
            fill = "white" if i == 0 else "rgba(255,255,255,0.7)"
            weight = ' font-weight="900"' if i == 0 else ""
            parts.append(
                f'<text x="10" y="{18 + 15 * i}" fill="{fill}" font-size="{size}" font-family="monospace"{weight}>'
                f"{escape(line)}</text>"
            )
        parts.append("</g>")
        return "".join(parts)
    raise TypeError(f"unsupported primitive: {type(prim).__name__}")


def scene_to_svg(
    scene: Sequence[Layer],
    width: float = 1000.0,
    height: float = 1000.0,
    background: Optional[bytes] = None,
    background_mime: str = "image/jpeg",
) -> str:
    """Render ``scene`` as a standalone SVG document.

    The view box is ``width`` x ``height`` screen pixels. When ``background``
    image bytes are given they are embedded as a data URL underneath the
    overlay, stretched to the view box.
    """
    out = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {_num(width)} {_num(height)}" '
        f'preserveAspectRatio="none" width="100%">',
        _SVG_DEFS,
    ]
    if background is not None:
        b64 = base64.b64encode(background).decode("ascii")
        out.append(
            f'<image href="data:{background_mime};base64,{b64}" x="0" y="0" '
            f'width="{_num(width)}" height="{_num(height)}" preserveAspectRatio="none"/>'
        )
    for lyr in scene:
        out.append(f'<g id="layer-{lyr.name}">')
        out.extend(_element(p) for p in lyr.primitives)
        out.append("</g>")
    out.append("</svg>")
    return "\n".join(out)
