import pytest

from circuitsense.models import AnalysisResult, AssistantMode, NetCategory, ThermalLevel
from circuitsense.overlay import (
    ALERT_COLOR,
    NET_PALETTE,
    THERMAL_PALETTE,
    Circle,
    Curve,
    LabelBox,
    Line,
    Polygon,
    Text,
    layer,
    render_scene,
    scene_to_svg,
)


def _names(scene):
    return [lyr.name for lyr in scene]


def _xy(p):
    return (pytest.approx(p.x), pytest.approx(p.y))


def test_no_analysis_renders_nothing():
    assert render_scene(None, AssistantMode.INSPECTION, 0) == ()


@pytest.mark.parametrize(
    "mode,names",
    [
        (AssistantMode.INSPECTION, ["board", "components"]),
        (AssistantMode.REPAIR, ["board", "components"]),
        (AssistantMode.VALIDATION, ["board", "components"]),
        (AssistantMode.THERMAL, ["board", "thermal"]),
        (AssistantMode.TUTORIAL, ["board", "flow", "components"]),
        (AssistantMode.MEASUREMENT, ["board", "components", "probes"]),
    ],
)
def test_layers_per_mode(analysis, mode, names):
    assert _names(render_scene(analysis, mode, 0)) == names


def test_board_outline_uses_detected_corners(analysis):
    outline = layer(render_scene(analysis, AssistantMode.INSPECTION, 0), "board").primitives[0]
    assert isinstance(outline, Polygon)
    assert outline.points == analysis.board_pose.corners.as_tuple()


def test_components_highlight_suspects(analysis):
    comps = layer(render_scene(analysis, AssistantMode.INSPECTION, 0), "components").primitives
    boxes = [p for p in comps if isinstance(p, Polygon)]
    labels = [p for p in comps if isinstance(p, LabelBox)]
    assert len(boxes) == 4
    assert [b.stroke == ALERT_COLOR for b in boxes] == [False, True, True, False]
    assert all(b.stroke_width == 1.5 for b in boxes)

    # U1 spans 400-600 on the surface -> 420-580 on screen
    assert _xy(boxes[0].points[0]) == (420, 420)
    assert _xy(boxes[0].points[2]) == (580, 580)

    assert len(labels) == 2
    vr1, c3 = labels
    failure = analysis.component("VR1").failure_analysis
    assert vr1.lines[0] == "SUSPECT: AMS1117"
    assert vr1.lines[1] == failure[:30] + "..."
    assert len(vr1.lines[1]) == 33
    assert c3.lines == ("SUSPECT: C3 10UF", "...")


def test_tutorial_labels_every_component(analysis):
    comps = layer(render_scene(analysis, AssistantMode.TUTORIAL, 0), "components").primitives
    boxes = [p for p in comps if isinstance(p, Polygon)]
    labels = [p for p in comps if isinstance(p, LabelBox)]
    assert all(b.stroke_width == 4.0 for b in boxes)
    assert len(labels) == 4
    assert labels[0].lines == ("ATMEGA328P", '"Runs the firmware"')


def test_thermal_glows_by_signature(analysis):
    prims = layer(render_scene(analysis, AssistantMode.THERMAL, 0), "thermal").primitives
    glows = [p for p in prims if isinstance(p, Circle)]
    texts = [p for p in prims if isinstance(p, Text)]
    assert [g.fill for g in glows] == [
        THERMAL_PALETTE[ThermalLevel.NOMINAL],
        THERMAL_PALETTE[ThermalLevel.CRITICAL],
        THERMAL_PALETTE[ThermalLevel.WARM],
        THERMAL_PALETTE[ThermalLevel.COOL],
    ]
    assert all(g.radius == 60.0 for g in glows)
    assert _xy(glows[0].center) == (500, 500)
    assert len(texts) == 1
    assert texts[0].text == "CRITICAL_TEMP"
    assert _xy(texts[0].anchor) == (220, 180)


def test_flow_follows_stage_order(analysis):
    prims = layer(render_scene(analysis, AssistantMode.TUTORIAL, 0), "flow").primitives
    lines = [p for p in prims if isinstance(p, Line)]
    assert len(lines) == 2
    # Power Input (J1) -> Regulation (VR1) -> Logic (U1)
    assert _xy(lines[0].start) == (140, 820)
    assert _xy(lines[0].end) == (220, 220)
    assert _xy(lines[1].end) == (500, 500)
    dots = [p for p in prims if isinstance(p, Circle)]
    assert [_xy(d.center) for d in dots] == [(220, 220), (500, 500)]


def test_flow_skips_empty_or_unknown_stages(analysis_payload):
    analysis_payload["logicFlow"][2]["components"] = []  # Regulation
    analysis_payload["logicFlow"][0]["components"] = ["NOPE"]  # Logic
    result = AnalysisResult.model_validate(analysis_payload)
    prims = layer(render_scene(result, AssistantMode.TUTORIAL, 0), "flow").primitives
    assert prims == ()


def test_probes_for_current_step(analysis):
    prims = layer(render_scene(analysis, AssistantMode.MEASUREMENT, 0), "probes").primitives
    curve = prims[0]
    assert isinstance(curve, Curve)
    assert _xy(curve.start) == (140, 820)
    assert _xy(curve.end) == (220, 220)
    assert _xy(curve.control) == (180, 100)
    markers = [p for p in prims if isinstance(p, Circle)]
    assert [m.radius for m in markers] == [20.0, 20.0, 50.0]
    assert markers[1].glow == "glow-red"


def test_probes_empty_when_step_out_of_range(analysis):
    probes = layer(render_scene(analysis, AssistantMode.MEASUREMENT, 7), "probes")
    assert probes is not None
    assert probes.primitives == ()


def test_net_filter(analysis):
    scene = render_scene(analysis, AssistantMode.INSPECTION, 0, NetCategory.V5)
    assert _names(scene) == ["board", "nets", "components"]
    prims = layer(scene, "nets").primitives
    lines = [p for p in prims if isinstance(p, Line)]
    assert len(lines) == 2
    assert all(ln.stroke == NET_PALETTE[NetCategory.V5] for ln in lines)
    assert [p.text for p in prims if isinstance(p, Text)] == ["+5V"]

    # thermal view never shows nets
    assert layer(render_scene(analysis, AssistantMode.THERMAL, 0, NetCategory.V5), "nets") is None


def test_svg_output(analysis):
    svg = scene_to_svg(render_scene(analysis, AssistantMode.MEASUREMENT, 0), background=b"\x89PNG", background_mime="image/png")
    assert svg.startswith("<svg")
    assert svg.rstrip().endswith("</svg>")
    assert "data:image/png;base64,iVBORw==" in svg
    assert svg.index('id="layer-board"') < svg.index('id="layer-components"') < svg.index('id="layer-probes"')
    assert "SUSPECT: AMS1117" in svg
    assert 'filter="url(#glow-red)"' in svg


def test_svg_escapes_label_text(analysis_payload):
    analysis_payload["components"][0]["causalRole"] = "Keeps <reset> & clock"
    result = AnalysisResult.model_validate(analysis_payload)
    svg = scene_to_svg(render_scene(result, AssistantMode.TUTORIAL, 0))
    assert "&lt;reset&gt; &amp; clock" in svg
