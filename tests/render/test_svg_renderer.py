#!filepath: tests/render/test_svg_renderer.py
import itertools
import xml.etree.ElementTree as ET

import pytest

from lanetrace.config.render_config import RenderConfig
from lanetrace.render.svg_renderer import SVGRenderer, clip_interval
from lanetrace.timeline.interpreter import EventInterpreter
from lanetrace.timeline.model import Interval, TimelineModel, Window
from lanetrace.utils.errors import SemanticError, TimelineIOError

SVG = "{http://www.w3.org/2000/svg}"

# RenderConfig 默认值：margin 10 + label_width 120
PLOT_X0 = 130.0
PLOT_WIDTH = 1000.0


def build_model(events) -> TimelineModel:
    interp = EventInterpreter(TimelineModel())
    for ev in events:
        interp.process(ev)
    return interp.finish()


def parse(svg: str) -> ET.Element:
    return ET.fromstring(svg.encode("utf-8"))


def interval_rects(root: ET.Element) -> list:
    return [r for r in root.iter(f"{SVG}rect") if r.get("class", "").startswith("interval")]


def instant_lines(root: ET.Element) -> list:
    return [l for l in root.iter(f"{SVG}line") if l.get("class", "").startswith("instant")]


def span_ms(rect: ET.Element, window: Window) -> tuple:
    """像素 → 毫秒（反推裁剪后的时间范围）"""
    scale = PLOT_WIDTH / (window.to_ms - window.from_ms)
    x = float(rect.get("x"))
    w = float(rect.get("width"))
    start = window.from_ms + (x - PLOT_X0) / scale
    return start, start + w / scale


# ------------------------------------------------------------
# clipping
# ------------------------------------------------------------
@pytest.mark.contract
def test_clip_interval_property():
    points = [0, 3, 5, 10, 12, 20]
    for (s, e), (wf, wt) in itertools.product(
        itertools.combinations(points, 2), itertools.combinations(points, 2)
    ):
        interval = Interval(lane="A", start=s, end=e, state="x")
        clipped = clip_interval(interval, Window(wf, wt))
        lo, hi = max(s, wf), min(e, wt)
        if lo < hi:
            assert clipped == (lo, hi)
        else:
            assert clipped is None


def test_clip_instant_marker_is_inclusive():
    marker = Interval(lane="A", start=5, end=5, state="tick", instant=True)
    assert clip_interval(marker, Window(5, 10)) == (5, 5)
    assert clip_interval(marker, Window(0, 5)) == (5, 5)
    assert clip_interval(marker, Window(6, 10)) is None


def test_zero_length_interval_is_dropped():
    interval = Interval(lane="A", start=5, end=5, state="x")
    assert clip_interval(interval, Window(0, 10)) is None


# ------------------------------------------------------------
# scenarios
# ------------------------------------------------------------
def test_scenario_full_window(scenario_events):
    model = build_model(scenario_events)
    window = Window(0, 20)
    root = parse(SVGRenderer().render(model, window))

    rects = interval_rects(root)
    assert len(rects) == 1
    assert span_ms(rects[0], window) == pytest.approx((0, 10), abs=1e-2)

    texts = [t.text for t in root.iter(f"{SVG}text")]
    assert "A" in texts


def test_scenario_left_clipped(scenario_events):
    model = build_model(scenario_events)
    window = Window(5, 20)
    rects = interval_rects(parse(SVGRenderer().render(model, window)))

    assert len(rects) == 1
    assert span_ms(rects[0], window) == pytest.approx((5, 10), abs=1e-2)


def test_scenario_unset_window_uses_observed_range(scenario_events):
    model = build_model(scenario_events)
    root = parse(SVGRenderer().render(model, Window.from_args(-1, -1)))

    rects = interval_rects(root)
    assert len(rects) == 1
    assert float(rects[0].get("x")) == pytest.approx(PLOT_X0)
    assert float(rects[0].get("width")) == pytest.approx(PLOT_WIDTH)


def test_interval_outside_window_is_omitted(scenario_events):
    model = build_model(scenario_events)
    root = parse(SVGRenderer().render(model, Window(10, 20)))
    assert interval_rects(root) == []


def test_lanes_rendered_in_registration_order(rich_events):
    model = build_model(rich_events)
    root = parse(SVGRenderer().render(model, Window()))

    groups = [g for g in root.iter(f"{SVG}g") if g.get("class") == "lane"]
    labels = [g.find(f"{SVG}text").text for g in groups]
    assert labels == ["display", "gpu", "cpu"]


def test_instant_markers_and_state_classes(rich_events):
    model = build_model(rich_events)
    root = parse(SVGRenderer().render(model, Window(0, 20)))

    # vblank@2、vblank@18 在窗口内，flip@30 不在
    lines = instant_lines(root)
    assert len(lines) == 2
    assert all("state-vblank" in l.get("class") for l in lines)

    classes = {r.get("class") for r in interval_rects(root)}
    assert "interval state-render" in classes


def test_same_state_same_color(rich_events):
    model = build_model(rich_events)
    root = parse(SVGRenderer().render(model, Window()))

    fills = {}
    for rect in interval_rects(root):
        fills.setdefault(rect.get("class"), set()).add(rect.get("fill"))
    assert all(len(v) == 1 for v in fills.values())
    assert len({next(iter(v)) for v in fills.values()}) == len(fills)


def test_axis_ticks(scenario_events):
    model = build_model(scenario_events)
    cfg = RenderConfig(tick_count=4)
    root = parse(SVGRenderer(cfg).render(model, Window(0, 20)))

    labels_group = next(g for g in root.iter(f"{SVG}g") if g.get("class") == "tick-labels")
    assert [t.text for t in labels_group] == ["0", "5", "10", "15", "20"]


# ------------------------------------------------------------
# determinism / edge cases
# ------------------------------------------------------------
@pytest.mark.contract
def test_rendering_is_deterministic(rich_events):
    r = SVGRenderer()
    first = r.render(build_model(rich_events), Window(3, 27))
    second = r.render(build_model(rich_events), Window(3, 27))
    assert first == second


def test_empty_model_renders_valid_document():
    model = TimelineModel()
    model.finalize(None)
    root = parse(SVGRenderer().render(model, Window()))

    assert root.tag == f"{SVG}svg"
    assert interval_rects(root) == []


def test_unfinalized_model_is_rejected():
    with pytest.raises(SemanticError):
        SVGRenderer().render(TimelineModel(), Window())


def test_write_creates_file(tmp_path, scenario_events):
    model = build_model(scenario_events)
    out = tmp_path / "nested" / "out.svg"

    n = SVGRenderer().write(model, Window(0, 20), out)

    assert out.exists()
    assert out.stat().st_size == n
    assert out.read_text(encoding="utf-8").startswith("<?xml")
    assert not (tmp_path / "nested" / "out.svg.tmp").exists()


def test_write_failure_is_io_error(tmp_path, scenario_events):
    model = build_model(scenario_events)
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")

    with pytest.raises(TimelineIOError) as exc:
        SVGRenderer().write(model, Window(0, 20), blocker / "out.svg")

    assert exc.value.operation == "write"
